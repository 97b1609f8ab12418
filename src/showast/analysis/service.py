import base64
import logging
import threading
from pathlib import Path

from showast.analysis.errors import STAGE_INVOKE, STAGE_START, AnalysisError
from showast.config import ShowAstConfig
from showast.session import (
    ScriptRunner,
    SessionError,
    powershell_config,
    resolve_interpreter_executable,
)

logger = logging.getLogger(__name__)

PARSER_SCRIPT_PATH = Path(__file__).parent.parent / "scripts" / "AstParse.ps1"


def _quote_powershell(value: str) -> str:
    """Single-quoted PowerShell string literal."""
    return "'" + value.replace("'", "''") + "'"


def build_parse_command(script_path: Path | str, source_text: str) -> str:
    """Command line that runs the parser script on ``source_text``.

    The source travels base64 encoded so no quoting of script content is needed.
    """
    encoded = base64.b64encode(source_text.encode("utf-8")).decode("ascii")
    return f"& {_quote_powershell(str(script_path))} -Base64Content '{encoded}'"


class ParserService:
    """Runs the packaged AstParse.ps1 inside one long-lived PowerShell session."""

    def __init__(
        self,
        config: ShowAstConfig | None = None,
        *,
        runner: ScriptRunner | None = None,
        script_path: Path | None = None,
    ) -> None:
        self._config = config or ShowAstConfig.from_env()
        self._script_path = script_path or PARSER_SCRIPT_PATH
        self._runner = runner
        self._lock = threading.Lock()
        self._disposed = False

    @property
    def config(self) -> ShowAstConfig:
        return self._config

    @property
    def script_path(self) -> Path:
        return self._script_path

    def _ensure_runner(self) -> ScriptRunner:
        with self._lock:
            if self._disposed:
                raise AnalysisError(STAGE_START, "Parser service is disposed")
            if self._runner is None:
                executable = resolve_interpreter_executable(
                    self._config.flavor, self._config.executable
                )
                logger.info(
                    "Starting PowerShell process using: %s (flavor: %s)",
                    executable,
                    self._config.flavor,
                )
                self._runner = ScriptRunner(powershell_config(executable))
            return self._runner

    def start(self) -> None:
        """Start the interpreter now instead of on the first analysis."""
        runner = self._ensure_runner()
        try:
            runner.start()
        except SessionError as e:
            raise AnalysisError(STAGE_START, f"Failed to start PowerShell: {e.message}") from e

    def analyze_raw(self, source_text: str) -> str:
        """Run the parser script and return its raw JSON output.

        Raises:
            AnalysisError: stage ``start`` if PowerShell cannot be launched,
                stage ``invoke`` if the command fails.
        """
        runner = self._ensure_runner()
        if not runner.is_running:
            self.start()

        command = build_parse_command(self._script_path, source_text)
        logger.info("Invoking AST analysis...")
        try:
            result = runner.run(command, timeout=self._config.invoke_timeout)
        except SessionError as e:
            logger.warning("PowerShell invocation failed: %s", e.message)
            raise AnalysisError(STAGE_INVOKE, f"PowerShell invocation failed: {e.message}") from e
        logger.info("Analysis completed.")
        return result

    def dispose(self) -> None:
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            runner = self._runner
            self._runner = None

        if runner:
            logger.info("Terminating PowerShell process...")
            runner.dispose()
            logger.info("PowerShell process terminated.")


__all__ = ["PARSER_SCRIPT_PATH", "ParserService", "build_parse_command"]
