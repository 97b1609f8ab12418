import logging
import os
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_state_dir

from .compat import env_bool, getenv_with_fallback

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_FLAVOR",
    "EXPAND_DELAY_SECONDS",
    "LOG_DIR",
    "LOG_PATH",
    "MAX_LOG_SIZE_BYTES",
    "SHOWAST_LOGGING",
    "SHOWAST_LOG_REDACT",
    "ShowAstConfig",
]

# PowerShell flavor: "core" (pwsh) or "desktop" (Windows PowerShell 5.1)
SUPPORTED_FLAVORS = ("core", "desktop")
DEFAULT_FLAVOR = "core"

# Delay between staged expand calls (presentation helpers)
EXPAND_DELAY_SECONDS = 0.01

# Select the first root after every analysis
SELECT_ROOT_ON_ANALYZE = env_bool("SHOWAST_SELECT_ROOT", default=True)

# Exit code wait after the interpreter closes stdout
PROCESS_EXIT_WAIT_SECONDS = 5.0

# Local file logging mode (default: off)
# Options: off (disabled), safe (enabled with redaction), full (enabled without redaction)
_SHOWAST_LOGGING_RAW = os.getenv("SHOWAST_LOGGING", "off").strip().lower()
SHOWAST_LOGGING = _SHOWAST_LOGGING_RAW in ("safe", "full", "1", "true", "yes")
SHOWAST_LOG_REDACT = _SHOWAST_LOGGING_RAW != "full"

# Logging - Cross-platform state directory:
# - Linux: ~/.local/state/showast
# - macOS: ~/Library/Application Support/showast
# - Windows: %LOCALAPPDATA%\showast
# Note: Directory is created lazily in observability.events when actually writing logs
LOG_DIR = Path(user_state_dir("showast", appauthor=False))
LOG_PATH = LOG_DIR / "showast.log"
MAX_LOG_SIZE_BYTES = 10 * 1024 * 1024


def _parse_timeout(raw: str) -> float | None:
    raw = raw.strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        raise RuntimeError(f"SHOWAST_INVOKE_TIMEOUT must be a number, got: {raw!r}") from None
    if value < 0:
        raise RuntimeError(f"SHOWAST_INVOKE_TIMEOUT must be >= 0, got: {raw!r}")
    # 0 means wait forever
    return value or None


@dataclass(frozen=True)
class ShowAstConfig:
    flavor: str = DEFAULT_FLAVOR
    executable: str | None = None  # Optional; resolved from PATH when not set
    invoke_timeout: float | None = None  # None waits until the sentinel arrives
    docs_path: Path | None = None  # Optional; packaged docs are used when not set

    @classmethod
    def from_env(cls) -> "ShowAstConfig":
        flavor = (
            getenv_with_fallback("SHOWAST_POWERSHELL_FLAVOR", "POWERSHELL_AST_FLAVOR", DEFAULT_FLAVOR)
            .strip()
            .lower()
        )
        if flavor not in SUPPORTED_FLAVORS:
            raise RuntimeError(
                f"SHOWAST_POWERSHELL_FLAVOR must be one of {', '.join(SUPPORTED_FLAVORS)}, "
                f"got: {flavor!r}"
            )

        executable = os.getenv("SHOWAST_POWERSHELL_PATH", "").strip() or None
        if executable:
            logger.debug("Using SHOWAST_POWERSHELL_PATH: %s", executable)

        invoke_timeout = _parse_timeout(os.getenv("SHOWAST_INVOKE_TIMEOUT", ""))

        docs_raw = os.getenv("SHOWAST_AST_DOCS", "").strip()
        docs_path: Path | None = None
        if docs_raw:
            docs_path = Path(docs_raw).expanduser()
            if not docs_path.is_file():
                raise RuntimeError(f"SHOWAST_AST_DOCS does not exist or is not a file: {docs_raw}")

        return cls(
            flavor=flavor,
            executable=executable,
            invoke_timeout=invoke_timeout,
            docs_path=docs_path,
        )
