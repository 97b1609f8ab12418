from dataclasses import dataclass


@dataclass
class SessionError(Exception):
    """Interpreter session error."""

    message: str
    code: int | None = None

    def __str__(self) -> str:
        if self.code is not None:
            return f"Session Error (exit code {self.code}): {self.message}"
        return f"Session Error: {self.message}"

    def __reduce__(self) -> tuple[type, tuple[str, int | None]]:
        """Enable proper pickling for dataclass Exception subclass."""
        return (type(self), (self.message, self.code))
