"""Configuration module for showast."""

from .settings import (
    DEFAULT_FLAVOR,
    EXPAND_DELAY_SECONDS,
    LOG_DIR,
    LOG_PATH,
    MAX_LOG_SIZE_BYTES,
    SHOWAST_LOG_REDACT,
    SHOWAST_LOGGING,
    ShowAstConfig,
)

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
