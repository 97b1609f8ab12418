import atexit
import concurrent.futures
import logging
import subprocess  # nosec B404 - required for interpreter communication
import threading
import time

from showast.config import settings
from showast.session.interpreters.base import InterpreterConfig
from showast.session.logging import (
    log_invoke_error,
    log_session_error,
    log_session_start,
    log_session_stop,
)
from showast.session.process_runtime import (
    close_process_streams,
    kill_process_tree,
    resolve_command,
    start_interpreter_process,
)
from showast.session.transport import SentinelTransport
from showast.session.types import SessionError

logger = logging.getLogger(__name__)

_READ_CHUNK_SIZE = 8192
_THREAD_JOIN_TIMEOUT = 1.0


def _failed_future(error: Exception) -> concurrent.futures.Future[str]:
    future: concurrent.futures.Future[str] = concurrent.futures.Future()
    future.set_exception(error)
    return future


class ScriptRunner:
    """Long-lived interpreter process that answers exactly one response per command.

    The process is started once and reused; every command is followed by a
    sentinel so its output can be cut out of the shared stdout stream.
    Public methods are thread-safe. Background threads read stdout and drain
    stderr; each process gets a fresh transport so a late event from a dead
    process never reaches requests sent to its replacement.
    """

    def __init__(
        self,
        config: InterpreterConfig,
        *,
        executable: str | None = None,
        cwd: str | None = None,
    ) -> None:
        self._config = config.with_executable(executable) if executable else config
        self._cwd = cwd
        self._lock = threading.RLock()
        self._send_lock = threading.Lock()

        self._process: subprocess.Popen[bytes] | None = None
        self._transport: SentinelTransport | None = None
        self._stdout_thread: threading.Thread | None = None
        self._stderr_thread: threading.Thread | None = None
        self._generation = 0
        self._disposed = False

        self._atexit_cleanup_handler = self.dispose
        atexit.register(self._atexit_cleanup_handler)

    @property
    def config(self) -> InterpreterConfig:
        return self._config

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._process is not None

    @property
    def is_disposed(self) -> bool:
        with self._lock:
            return self._disposed

    @property
    def pid(self) -> int | None:
        with self._lock:
            return self._process.pid if self._process else None

    def pending_count(self) -> int:
        with self._lock:
            transport = self._transport
        return transport.pending_count() if transport else 0

    def start(self) -> None:
        """Start the interpreter if it is not already running."""
        with self._lock:
            if self._disposed:
                raise SessionError(f"{self._config.display_name} runner is disposed")
            if self._process is not None:
                return
            self._spawn_locked()

    def _spawn_locked(self) -> tuple[subprocess.Popen[bytes], SentinelTransport]:
        command = resolve_command(self._config.command, self._config.install_hint)
        started = time.perf_counter()
        try:
            process = start_interpreter_process(command, cwd=self._cwd, env=self._config.env)
        except OSError as e:
            log_session_error(self._config.name, str(e), type(e).__name__)
            raise SessionError(f"Failed to start {self._config.display_name}: {e}") from e

        self._generation += 1
        transport = SentinelTransport(
            config=self._config,
            lock=self._lock,
            send_lock=self._send_lock,
            read_chunk_size=_READ_CHUNK_SIZE,
        )
        self._process = process
        self._transport = transport
        generation = self._generation

        self._stdout_thread = threading.Thread(
            target=self._read_stdout,
            args=(process, transport, generation),
            name=f"showast-{self._config.name}-stdout",
            daemon=True,
        )
        self._stderr_thread = threading.Thread(
            target=transport.drain_stderr_loop,
            args=(process,),
            name=f"showast-{self._config.name}-stderr",
            daemon=True,
        )
        self._stdout_thread.start()
        self._stderr_thread.start()

        log_session_start(
            self._config.name, command, (time.perf_counter() - started) * 1000, process.pid
        )
        logger.debug("Started %s (pid %s)", self._config.display_name, process.pid)
        return process, transport

    def _ensure_started_locked(self) -> tuple[subprocess.Popen[bytes], SentinelTransport]:
        process = self._process
        transport = self._transport
        if process is not None and transport is not None:
            exit_code = process.poll()
            if exit_code is None:
                return process, transport
            # Exited before the stdout reader noticed.
            self._process = None
            self._report_process_lost(process, transport, exit_code, None)

        if self._generation:
            logger.info("%s process is gone, restarting...", self._config.display_name)
        return self._spawn_locked()

    def _discard_process(
        self, process: subprocess.Popen[bytes], transport: SentinelTransport
    ) -> None:
        with self._lock:
            if self._process is not process:
                return
            self._process = None
            kill_process_tree(process.pid)
            try:
                exit_code = process.wait(timeout=settings.PROCESS_EXIT_WAIT_SECONDS)
            except subprocess.TimeoutExpired:
                exit_code = None
            self._report_process_lost(process, transport, exit_code, None)

    def _read_stdout(
        self,
        process: subprocess.Popen[bytes],
        transport: SentinelTransport,
        generation: int,
    ) -> None:
        transport.read_stdout_loop(
            process,
            lambda error: self._handle_process_closed(process, transport, generation, error),
        )

    def _handle_process_closed(
        self,
        process: subprocess.Popen[bytes],
        transport: SentinelTransport,
        generation: int,
        error: BaseException | None,
    ) -> None:
        exit_code: int | None = None
        try:
            exit_code = process.wait(timeout=settings.PROCESS_EXIT_WAIT_SECONDS)
        except subprocess.TimeoutExpired:
            logger.debug("%s closed stdout but is still running", self._config.display_name)

        with self._lock:
            if generation != self._generation or self._process is not process:
                # Disposed, or already replaced.
                return
            self._process = None

        self._report_process_lost(process, transport, exit_code, error)

    def _report_process_lost(
        self,
        process: subprocess.Popen[bytes],
        transport: SentinelTransport,
        exit_code: int | None,
        error: BaseException | None,
    ) -> None:
        name = self._config.display_name
        if error is not None:
            message = f"{name} stream error: {error}"
        else:
            message = f"{name} process exited unexpectedly with code {exit_code}"
        logger.warning(message)
        log_session_error(
            self._config.name,
            message,
            type(error).__name__ if error else "ProcessExited",
            exit_code,
        )

        transport.clear_buffers()
        transport.fail_oldest_pending(
            SessionError(message, exit_code),
            SessionError(f"{name} process exited before the command completed", exit_code),
        )
        if process.stdin:
            try:
                process.stdin.close()
            except OSError:
                pass

    def _send(self, command: str) -> concurrent.futures.Future[str]:
        with self._lock:
            if self._disposed:
                return _failed_future(
                    SessionError(f"{self._config.display_name} runner is disposed")
                )
            try:
                process, transport = self._ensure_started_locked()
            except SessionError as e:
                log_invoke_error(self._config.name, e.message, type(e).__name__)
                return _failed_future(e)

        try:
            return transport.send_command(process, command)
        except SessionError:
            self._discard_process(process, transport)
            raise

    def invoke(self, command: str) -> concurrent.futures.Future[str]:
        """Send ``command`` and return a future for its trimmed stdout.

        Never raises; failures are delivered through the future. A runner that
        lost its process restarts it here, and a write to a process that died
        under it is retried once on a fresh one.
        """
        try:
            return self._send(command)
        except SessionError as e:
            logger.info("%s, restarting...", e.message)

        try:
            return self._send(command)
        except SessionError as e:
            log_invoke_error(self._config.name, e.message, type(e).__name__)
            return _failed_future(e)

    def run(self, command: str, *, timeout: float | None = None) -> str:
        """Invoke ``command`` and block for its output.

        Raises:
            SessionError: On process failure, interpreter error output or timeout.
        """
        future = self.invoke(command)
        try:
            return future.result(timeout=timeout)
        except TimeoutError:
            # Keeps its queue slot; the late response will be dropped.
            future.cancel()
            log_invoke_error(self._config.name, f"timed out after {timeout}s", "TimeoutError")
            raise SessionError(
                f"{self._config.display_name} command timed out after {timeout}s"
            ) from None
        except concurrent.futures.CancelledError:
            raise SessionError(f"{self._config.display_name} command was cancelled") from None

    def dispose(self) -> None:
        """Terminate the interpreter; every later invoke fails immediately."""
        try:
            atexit.unregister(self._atexit_cleanup_handler)
        except Exception:  # nosec B110 - best-effort cleanup
            pass

        with self._lock:
            already_disposed = self._disposed
            self._disposed = True
            self._generation += 1
            process = self._process
            self._process = None
            transport = self._transport
            stdout_thread = self._stdout_thread
            stderr_thread = self._stderr_thread
            self._stdout_thread = None
            self._stderr_thread = None

        if transport:
            transport.fail_all_pending(
                SessionError(f"{self._config.display_name} runner is disposed")
            )

        if process:
            try:
                kill_process_tree(process.pid)
            except Exception:  # nosec B110 - best-effort cleanup
                pass
            try:
                process.wait(timeout=settings.PROCESS_EXIT_WAIT_SECONDS)
            except subprocess.TimeoutExpired:
                logger.debug("%s did not exit after kill", self._config.display_name)

        for thread in (stdout_thread, stderr_thread):
            if thread and thread is not threading.current_thread():
                thread.join(timeout=_THREAD_JOIN_TIMEOUT)

        if process:
            close_process_streams(process)

        if transport:
            transport.clear_buffers()

        if not already_disposed:
            log_session_stop(self._config.name, "disposed")


__all__ = ["ScriptRunner"]
