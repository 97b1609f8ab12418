from showast.session.interpreters.base import InterpreterConfig
from showast.session.interpreters.posix import SH_CONFIG
from showast.session.interpreters.powershell import POWERSHELL_CONFIG, powershell_config

# Registry of supported interpreter profiles
INTERPRETER_CONFIGS: dict[str, InterpreterConfig] = {
    "powershell": POWERSHELL_CONFIG,
    "sh": SH_CONFIG,
}


def get_interpreter_config(name: str) -> InterpreterConfig | None:
    """Get an interpreter profile by name."""
    return INTERPRETER_CONFIGS.get(name)


__all__ = [
    "INTERPRETER_CONFIGS",
    "InterpreterConfig",
    "POWERSHELL_CONFIG",
    "SH_CONFIG",
    "get_interpreter_config",
    "powershell_config",
]
