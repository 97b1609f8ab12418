from dataclasses import dataclass

# Pipeline stages named in error messages
STAGE_START = "start"
STAGE_INVOKE = "invoke"
STAGE_JSON = "json"
STAGE_PARSE = "parse"


@dataclass
class AnalysisError(Exception):
    """Analysis pipeline failure tagged with the stage that failed."""

    stage: str
    message: str

    def __str__(self) -> str:
        return f"{self.stage}: {self.message}"

    def __reduce__(self) -> tuple[type, tuple[str, str]]:
        """Enable proper pickling for dataclass Exception subclass."""
        return (type(self), (self.stage, self.message))


class AnalysisInProgressError(AnalysisError):
    """Raised when an analysis is requested while another one is running."""

    def __init__(self, message: str = "Analysis already in progress") -> None:
        super().__init__(stage=STAGE_START, message=message)

    def __reduce__(self) -> tuple[type, tuple[str]]:
        return (type(self), (self.message,))
