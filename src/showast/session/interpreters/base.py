from dataclasses import dataclass, field


@dataclass
class InterpreterConfig:
    """Configuration for an interactive interpreter.

    Defines how to start a long-lived interpreter and how to make it
    announce the end of each command's output.
    """

    name: str
    """Short identifier (e.g., "powershell", "sh")."""

    display_name: str
    """Human-readable name used in error messages."""

    command: list[str]
    """Executable and arguments that start a REPL reading commands from stdin."""

    sentinel: str
    """Marker printed after every command; must not occur in normal output."""

    sentinel_suffix: str
    """Statement appended to each command that prints ``sentinel``.

    Built so the literal sentinel never appears in the command text.
    """

    install_hint: str = ""
    """Install instructions for the interpreter executable."""

    env: dict[str, str] = field(default_factory=dict)
    """Extra environment variables for the interpreter process."""

    def wrap_command(self, command: str) -> str:
        """Return the full line written to stdin for ``command``."""
        return f"{command}{self.sentinel_suffix}\n"

    def with_executable(self, executable: str) -> "InterpreterConfig":
        """Copy of this config launching ``executable`` with the same arguments."""
        return InterpreterConfig(
            name=self.name,
            display_name=self.display_name,
            command=[executable, *self.command[1:]],
            sentinel=self.sentinel,
            sentinel_suffix=self.sentinel_suffix,
            install_hint=self.install_hint,
            env=dict(self.env),
        )
