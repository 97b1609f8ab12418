from showast.session.interpreters import (
    INTERPRETER_CONFIGS,
    POWERSHELL_CONFIG,
    SH_CONFIG,
    InterpreterConfig,
    get_interpreter_config,
    powershell_config,
)
from showast.session.process_runtime import resolve_interpreter_executable
from showast.session.runner import ScriptRunner
from showast.session.types import SessionError

__all__ = [
    # Runner
    "ScriptRunner",
    # Configuration
    "InterpreterConfig",
    "INTERPRETER_CONFIGS",
    "POWERSHELL_CONFIG",
    "SH_CONFIG",
    "get_interpreter_config",
    "powershell_config",
    "resolve_interpreter_executable",
    # Types
    "SessionError",
]
