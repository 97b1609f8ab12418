import glob
import hashlib
import json
import logging
import threading
from datetime import UTC, datetime
from typing import Any

from ..config import settings
from .context import get_trace_id, operation_name
from .settings import should_sample

logger = logging.getLogger(__name__)

MAX_ROTATED_LOGS = 5
_LOG_LOCK = threading.Lock()

_LEVEL_RANK: dict[str, int] = {
    "debug": 10,
    "info": 20,
    "warning": 30,
    "error": 40,
}

# Event fields whose values carry interpreter output or script-derived text.
_SENSITIVE_KEYS: frozenset[str] = frozenset({"error", "stderr"})


def _make_placeholder(value: str) -> str:
    hex12 = hashlib.sha256(value.encode("utf-8")).hexdigest()[:12]
    return f"[REDACTED len={len(value)} sha256={hex12}]"


def _sanitize_event(event: dict[str, Any]) -> dict[str, Any]:
    if not settings.SHOWAST_LOG_REDACT:
        return event
    # Events are flat; only top-level string fields need redacting.
    return {
        key: _make_placeholder(value)
        if key in _SENSITIVE_KEYS and isinstance(value, str)
        else value
        for key, value in event.items()
    }


def _normalize_level(value: object, *, default: str) -> str:
    if value is None:
        return default
    text = str(value).strip().lower()
    if text in _LEVEL_RANK:
        return text
    if text == "warn":
        return "warning"
    return default


def _level_rank(level: str) -> int:
    return _LEVEL_RANK.get(level, _LEVEL_RANK["info"])


def _should_log_event(level: str) -> bool:
    # Sampling only thins out debug chatter; warnings and errors always land.
    if _level_rank(level) > _level_rank("debug"):
        return True
    return should_sample()


def redact_value(value: str, max_len: int = 200) -> str:
    if not value:
        return value
    if settings.SHOWAST_LOG_REDACT:
        return _make_placeholder(value)
    # Full mode: truncate for readability but keep content
    if len(value) <= max_len:
        return value
    suffix = f"... [truncated, len={len(value)}]"
    if max_len <= len(suffix):
        return value[:max_len]
    return f"{value[: max_len - len(suffix)]}{suffix}"


def rotate_log_if_needed() -> None:
    try:
        log_path = settings.LOG_PATH
        if log_path.exists() and log_path.stat().st_size > settings.MAX_LOG_SIZE_BYTES:
            ts = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
            stem = log_path.stem
            suffix = log_path.suffix
            rotated_path = log_path.with_name(f"{stem}.{ts}{suffix}")
            log_path.rename(rotated_path)
            logger.debug("Rotated log file to %s", rotated_path)

            pattern = f"{glob.escape(stem)}.*{glob.escape(suffix)}"
            rotated_logs = sorted(log_path.parent.glob(pattern), reverse=True)
            for old_log in rotated_logs[MAX_ROTATED_LOGS:]:
                old_log.unlink(missing_ok=True)
                logger.debug("Cleaned up old log file: %s", old_log)
    except Exception as exc:
        logger.warning("Failed to rotate log file: %s", exc)


def log_event(event: dict[str, Any]) -> None:
    """Write a single JSON event to local log file.

    Args:
        event: Event data to log. Will be enriched with timestamp, trace_id, operation, level.
    """
    if not settings.SHOWAST_LOGGING:
        return

    event = dict(event)
    try:
        if "timestamp" not in event:
            event["timestamp"] = datetime.now(UTC).isoformat()
        if "trace_id" not in event:
            event["trace_id"] = get_trace_id()
        if "operation" not in event:
            current = operation_name.get()
            if current:
                event["operation"] = current
        if "level" not in event:
            kind = str(event.get("kind", "")).lower()
            event["level"] = "error" if kind.endswith("error") else "info"

        level = _normalize_level(event.get("level"), default="info")
        event["level"] = level
        if not _should_log_event(level):
            return

        event = _sanitize_event(event)

        with _LOG_LOCK:
            if settings.LOG_PATH.is_dir():
                logger.warning("Log path is a directory, skipping log write")
                return
            settings.LOG_PATH.parent.mkdir(parents=True, exist_ok=True)
            try:
                settings.LOG_PATH.parent.chmod(0o700)
            except OSError:
                pass
            rotate_log_if_needed()
            if settings.LOG_PATH.exists():
                try:
                    settings.LOG_PATH.chmod(0o600)
                except OSError:
                    pass
            with open(settings.LOG_PATH, "a", encoding="utf-8") as f:
                f.write(json.dumps(event, ensure_ascii=False, default=str) + "\n")
    except Exception as exc:
        logger.warning("Failed to write event log: %s", exc)
