from showast.session.interpreters.base import InterpreterConfig

# POSIX shell profile; used for diagnostics and runner tests.
SH_CONFIG = InterpreterConfig(
    name="sh",
    display_name="sh",
    command=["sh"],
    sentinel="__SHOWAST_END_OF_COMMAND__",
    sentinel_suffix="; printf '%s%s\\n' '__SHOWAST_END_' 'OF_COMMAND__'",
)
