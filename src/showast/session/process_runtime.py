import logging
import os
import shutil
import subprocess  # nosec B404 - required for interpreter communication
import sys
from pathlib import Path

import psutil

from showast.session.types import SessionError

logger = logging.getLogger(__name__)

# snap installs a shim that cannot be exec'd directly by child processes
_SNAP_SHIM = "/snap/bin/pwsh"
_SNAP_BINARY = "/snap/powershell/current/opt/powershell/pwsh"

_POSIX_CANDIDATES = (
    _SNAP_BINARY,
    "/usr/local/bin/pwsh",
    "/usr/bin/pwsh",
    "/opt/homebrew/bin/pwsh",  # Apple Silicon Homebrew
    "/opt/microsoft/powershell/7/pwsh",
)


def is_executable(path: str) -> bool:
    try:
        return os.path.isfile(path) and os.access(path, os.X_OK)
    except OSError as e:
        logger.debug("File %s is not executable: %s", path, e)
        return False


def _which_executable(name: str) -> str | None:
    found = shutil.which(name)
    if found and is_executable(found):
        logger.debug("Found %s at: %s", name, found)
        return found
    return None


def resolve_interpreter_executable(
    flavor: str, explicit: str | None = None, *, platform: str | None = None
) -> str:
    """Locate the PowerShell executable for ``flavor`` ("core" or "desktop").

    Always returns something to launch; when nothing is found the bare
    executable name is returned and spawning reports the failure.
    """
    if explicit:
        if is_executable(explicit):
            return explicit
        logger.warning("Configured PowerShell path is not executable: %s", explicit)

    platform = platform or sys.platform
    logger.debug("Resolving PowerShell executable for flavor: %s (%s)", flavor, platform)

    if platform == "win32":
        if flavor == "desktop":
            order = ("powershell.exe", "pwsh.exe")
        else:
            order = ("pwsh.exe", "powershell.exe")
        for name in order:
            found = _which_executable(name)
            if found:
                return found
        logger.debug("Falling back to default %s", order[0])
        return order[0]

    if flavor == "desktop":
        logger.warning("PowerShell Desktop is only available on Windows. Using PowerShell Core.")

    found = _which_executable("pwsh")
    if found:
        if found != _SNAP_SHIM:
            return found
        if is_executable(_SNAP_BINARY):
            return _SNAP_BINARY

    for candidate in _POSIX_CANDIDATES:
        if is_executable(candidate):
            return candidate

    logger.debug("Falling back to default pwsh")
    return "pwsh"


def resolve_command(command: list[str], install_hint: str) -> list[str]:
    if not command:
        raise SessionError("Interpreter command is empty")

    executable = command[0]
    if not executable:
        raise SessionError("Interpreter executable is empty")

    hint = install_hint.strip()
    suffix = f". Install from: {hint}" if hint else ""

    if any(sep in executable for sep in (os.sep, "/", "\\")):
        path = Path(executable)
        if path.exists():
            return [str(path), *command[1:]]
        raise SessionError(f"Interpreter '{executable}' not found{suffix}")

    resolved = shutil.which(executable)
    if resolved:
        return [resolved, *command[1:]]

    raise SessionError(f"Interpreter '{executable}' not found on PATH{suffix}")


def start_interpreter_process(
    command: list[str], *, cwd: str | None = None, env: dict[str, str] | None = None
) -> subprocess.Popen[bytes]:
    logger.debug("Starting interpreter: %s", " ".join(command))
    process_env = None
    if env:
        process_env = {**os.environ, **env}
    return subprocess.Popen(  # nosec B603 - trusted command
        command,
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        cwd=cwd,
        env=process_env,
    )


def kill_process_tree(pid: int) -> None:
    try:
        parent = psutil.Process(pid)
    except psutil.Error:
        return

    for child in parent.children(recursive=True):
        try:
            child.kill()
        except psutil.Error:
            pass
    try:
        parent.kill()
    except psutil.Error:
        pass


def close_process_streams(process: subprocess.Popen[bytes]) -> None:
    for stream in (process.stdin, process.stdout, process.stderr):
        try:
            if stream:
                stream.close()
        except Exception:  # nosec B110 - best-effort cleanup
            pass


__all__ = [
    "close_process_streams",
    "is_executable",
    "kill_process_tree",
    "resolve_command",
    "resolve_interpreter_executable",
    "start_interpreter_process",
]
