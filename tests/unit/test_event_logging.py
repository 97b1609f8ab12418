import json
from pathlib import Path
from unittest.mock import patch

from showast.analysis.logging import log_analysis_complete, log_analysis_error
from showast.observability import (
    clear_context,
    get_trace_id,
    log_event,
    new_trace_id,
    redact_value,
    set_operation_context,
)
from showast.observability.events import rotate_log_if_needed
from showast.session.logging import (
    log_invoke_error,
    log_session_error,
    log_session_start,
    log_session_stop,
)


def _events(path: Path) -> list[dict]:
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


class TestSessionLogging:
    def test_session_start_writes_event(self, mock_log_path: Path) -> None:
        log_session_start("powershell", ["/usr/bin/pwsh", "-NoLogo"], 812.7, 4242)

        payload = _events(mock_log_path)[0]
        assert payload["kind"] == "session_start"
        assert payload["interpreter"] == "powershell"
        assert payload["command_preview"] == "/usr/bin/pwsh"
        assert payload["latency_ms"] == 812
        assert payload["pid"] == 4242
        assert payload["level"] == "info"

    def test_session_stop_writes_event(self, mock_log_path: Path) -> None:
        log_session_stop("powershell", "disposed")

        payload = _events(mock_log_path)[0]
        assert payload["kind"] == "session_stop"
        assert payload["reason"] == "disposed"

    def test_session_error_keeps_classification(self, mock_log_path: Path) -> None:
        log_session_error("powershell", "exited with code 3", "ProcessExited", 3)

        payload = _events(mock_log_path)[0]
        assert payload["kind"] == "session_error"
        assert payload["level"] == "error"
        assert payload["error_type"] == "ProcessExited"
        assert payload["exit_code"] == 3
        assert payload["error"].startswith("[REDACTED len=")

    def test_invoke_error_is_warning(self, mock_log_path: Path) -> None:
        log_invoke_error("powershell", "timed out after 5s", "TimeoutError")

        assert _events(mock_log_path)[0]["level"] == "warning"


class TestAnalysisLogging:
    def test_analysis_complete(self, mock_log_path: Path) -> None:
        log_analysis_complete("a.ps1", 3, 120, 1, 0, 55.9)

        payload = _events(mock_log_path)[0]
        assert payload["kind"] == "analysis_complete"
        assert payload["epoch"] == 3
        assert payload["node_count"] == 120
        assert payload["parse_error_count"] == 1
        assert payload["latency_ms"] == 55

    def test_analysis_error_keeps_stage(self, mock_log_path: Path) -> None:
        log_analysis_error("a.ps1", "json", "Parser output is not valid JSON", 10.0)

        payload = _events(mock_log_path)[0]
        assert payload["stage"] == "json"
        assert payload["error"].startswith("[REDACTED")


class TestLogEvent:
    def test_disabled_logging_writes_nothing(self, mock_log_path: Path) -> None:
        with patch("showast.config.settings.SHOWAST_LOGGING", False):
            log_event({"kind": "session_start"})

        assert not mock_log_path.exists()

    def test_full_mode_keeps_values(self, mock_log_path: Path) -> None:
        with patch("showast.config.settings.SHOWAST_LOG_REDACT", False):
            log_event({"kind": "invoke_error", "error": "boom"})

        payload = _events(mock_log_path)[0]
        assert payload["error"] == "boom"
        assert payload["level"] == "error"

    def test_safe_mode_redacts_only_output_fields(self, mock_log_path: Path) -> None:
        log_event({"kind": "stderr_discarded", "interpreter": "sh", "stderr": "warning: x", "output_chars": 3})

        payload = _events(mock_log_path)[0]
        assert payload["stderr"].startswith("[REDACTED len=10")
        assert payload["interpreter"] == "sh"
        assert payload["output_chars"] == 3

    def test_enriches_with_trace_and_operation(self, mock_log_path: Path) -> None:
        tid = set_operation_context("describe")
        try:
            log_event({"kind": "session_stop"})
        finally:
            clear_context()

        payload = _events(mock_log_path)[0]
        assert payload["trace_id"] == tid
        assert payload["operation"] == "describe"
        assert "timestamp" in payload

    def test_debug_events_are_sampled(self, mock_log_path: Path) -> None:
        with patch("showast.observability.events.should_sample", return_value=False):
            log_event({"kind": "noise", "level": "debug"})
            log_event({"kind": "failure", "level": "warn"})

        events = _events(mock_log_path)
        assert [e["kind"] for e in events] == ["failure"]
        assert events[0]["level"] == "warning"

    def test_rotation_keeps_new_writes(self, mock_log_path: Path) -> None:
        mock_log_path.write_text("x" * 64, encoding="utf-8")
        with patch("showast.config.settings.MAX_LOG_SIZE_BYTES", 10):
            rotate_log_if_needed()

        assert not mock_log_path.exists()
        rotated = list(mock_log_path.parent.glob("showast.*.log"))
        assert len(rotated) == 1


class TestContext:
    def test_trace_id_is_stable_until_cleared(self) -> None:
        tid = new_trace_id()
        assert get_trace_id() == tid

        clear_context()
        assert get_trace_id() != tid

    def test_redact_value(self) -> None:
        assert redact_value("") == ""
        assert redact_value("secret").startswith("[REDACTED len=6")
        with patch("showast.config.settings.SHOWAST_LOG_REDACT", False):
            assert redact_value("short") == "short"
            assert "truncated, len=500" in redact_value("a" * 500)
