import os

from showast.session.interpreters.base import InterpreterConfig

_SENTINEL = "__SHOWAST_END_OF_COMMAND__"


def powershell_arguments() -> list[str]:
    """Arguments for an interactive PowerShell reading commands from stdin."""
    args = ["-NoLogo", "-NoProfile", "-NoExit", "-Command", "-"]
    if os.name == "nt":
        args[:0] = ["-ExecutionPolicy", "Bypass"]
    return args


def powershell_config(executable: str = "pwsh") -> InterpreterConfig:
    return InterpreterConfig(
        name="powershell",
        display_name="PowerShell",
        command=[executable, *powershell_arguments()],
        sentinel=_SENTINEL,
        sentinel_suffix="; Write-Output ('__SHOWAST_END_' + 'OF_COMMAND__')",
        install_hint="https://aka.ms/install-powershell",
        # Keep formatting output free of ANSI styling.
        env={"NO_COLOR": "1", "TERM": "dumb"},
    )


POWERSHELL_CONFIG = powershell_config()
