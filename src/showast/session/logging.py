from showast.observability import log_event


def log_session_start(
    interpreter: str,
    command: list[str],
    latency_ms: float,
    pid: int | None,
) -> None:
    log_event(
        {
            "kind": "session_start",
            "level": "info",
            "interpreter": interpreter,
            "command_preview": command[0] if command else "",
            "pid": pid,
            "latency_ms": int(latency_ms),
        }
    )


def log_session_stop(
    interpreter: str,
    reason: str,
) -> None:
    log_event(
        {
            "kind": "session_stop",
            "level": "info",
            "interpreter": interpreter,
            "reason": reason,
        }
    )


def log_session_error(
    interpreter: str,
    error: str,
    error_type: str,
    exit_code: int | None = None,
) -> None:
    log_event(
        {
            "kind": "session_error",
            "level": "error",
            "interpreter": interpreter,
            "error": error,
            "error_type": error_type,
            "exit_code": exit_code,
        }
    )


def log_invoke_error(
    interpreter: str,
    error: str,
    error_type: str,
) -> None:
    log_event(
        {
            "kind": "invoke_error",
            "level": "warning",
            "interpreter": interpreter,
            "error": error,
            "error_type": error_type,
        }
    )


def log_discarded_stderr(
    interpreter: str,
    stderr: str,
    output_chars: int,
) -> None:
    log_event(
        {
            "kind": "stderr_discarded",
            "level": "warning",
            "interpreter": interpreter,
            "stderr": stderr,
            "output_chars": output_chars,
        }
    )
