import concurrent.futures
import os
import shutil
import signal
import time

import pytest

from showast.session import SH_CONFIG, ScriptRunner, SessionError

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(shutil.which("sh") is None, reason="sh not available"),
]


@pytest.fixture
def runner():
    runner = ScriptRunner(SH_CONFIG)
    yield runner
    runner.dispose()


def _wait_until(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class TestScriptRunner:
    def test_concurrent_invokes_never_swap(self, runner: ScriptRunner) -> None:
        hello = runner.invoke("echo hello")
        world = runner.invoke("echo world")

        assert hello.result(timeout=10) == "hello"
        assert world.result(timeout=10) == "world"

    def test_many_queued_commands_keep_order(self, runner: ScriptRunner) -> None:
        futures = [runner.invoke(f"echo line-{i}") for i in range(50)]

        assert [f.result(timeout=10) for f in futures] == [f"line-{i}" for i in range(50)]

    def test_multiline_output_is_trimmed(self, runner: ScriptRunner) -> None:
        assert runner.run("printf '\\n  a\\nb  \\n\\n'", timeout=10) == "a\nb"

    def test_process_stays_alive_between_commands(self, runner: ScriptRunner) -> None:
        runner.run("X=42", timeout=10)

        assert runner.run("echo $X", timeout=10) == "42"

    def test_stderr_only_rejects(self, runner: ScriptRunner) -> None:
        with pytest.raises(SessionError, match="broken"):
            runner.run("echo broken >&2; sleep 0.2", timeout=10)

    def test_exit_rejects_then_respawns(self, runner: ScriptRunner) -> None:
        first_pid = runner.pid
        dying = runner.invoke("exit 3")

        with pytest.raises(SessionError) as exc_info:
            dying.result(timeout=10)
        assert exc_info.value.code == 3
        assert "exited unexpectedly with code 3" in exc_info.value.message
        assert _wait_until(lambda: not runner.is_running)

        assert runner.run("echo again", timeout=10) == "again"
        assert runner.pid != first_pid

    @pytest.mark.skipif(not hasattr(signal, "SIGKILL"), reason="needs SIGKILL")
    def test_invoke_right_after_kill_respawns(self, runner: ScriptRunner) -> None:
        for _ in range(20):
            assert runner.run("echo warm", timeout=10) == "warm"
            pid = runner.pid
            assert pid is not None

            os.kill(pid, signal.SIGKILL)
            time.sleep(0.001)

            assert runner.run("echo after", timeout=10) == "after"
            assert runner.pid != pid

    def test_exit_fails_requests_queued_behind_it(self, runner: ScriptRunner) -> None:
        dying = runner.invoke("exit 4")
        queued = runner.invoke("echo never")

        with pytest.raises(SessionError):
            dying.result(timeout=10)
        with pytest.raises(SessionError):
            queued.result(timeout=10)

    def test_timeout_raises_and_keeps_runner_usable(self, runner: ScriptRunner) -> None:
        with pytest.raises(SessionError, match="timed out"):
            runner.run("sleep 0.5; echo slow", timeout=0.05)

        # The late "slow" response is dropped; the next command gets its own output.
        assert runner.run("echo fast", timeout=10) == "fast"

    def test_dispose_fails_pending_and_later_invokes(self) -> None:
        runner = ScriptRunner(SH_CONFIG)
        pending = runner.invoke("sleep 5; echo late")

        runner.dispose()

        with pytest.raises(SessionError, match="disposed"):
            pending.result(timeout=10)
        later = runner.invoke("echo hello")
        with pytest.raises(SessionError, match="disposed"):
            later.result(timeout=1)
        assert runner.is_disposed
        assert not runner.is_running

    def test_start_failure_is_delivered_through_future(self) -> None:
        runner = ScriptRunner(SH_CONFIG, executable="/nonexistent/showast-sh")
        try:
            future = runner.invoke("echo hello")

            with pytest.raises(SessionError, match="not found"):
                future.result(timeout=1)
        finally:
            runner.dispose()

    def test_invoke_returns_future(self, runner: ScriptRunner) -> None:
        future = runner.invoke("echo ok")

        assert isinstance(future, concurrent.futures.Future)
        assert future.result(timeout=10) == "ok"
