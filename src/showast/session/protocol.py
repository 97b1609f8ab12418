import re

_ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")


def normalize_response(text: str) -> str:
    """Strip ANSI escape codes, normalise line endings and trim."""
    return _ANSI_ESCAPE_RE.sub("", text).replace("\r\n", "\n").strip()


class SentinelBuffer:
    """Accumulates decoded output and splits it into sentinel-terminated responses."""

    def __init__(self, sentinel: str) -> None:
        if not sentinel:
            raise ValueError("sentinel must be a non-empty string")
        self._sentinel = sentinel
        self._parts: list[str] = []
        self._text = ""

    @property
    def sentinel(self) -> str:
        return self._sentinel

    def append(self, text: str) -> None:
        if text:
            self._parts.append(text)

    def _flatten(self) -> str:
        if self._parts:
            self._text += "".join(self._parts)
            self._parts.clear()
        return self._text

    def try_take_response(self) -> str | None:
        """Return the raw body before the first sentinel, or None if none is buffered.

        Text after the sentinel (normally just a line break) stays buffered as the
        start of the next response.
        """
        text = self._flatten()
        body, sep, rest = text.partition(self._sentinel)
        if not sep:
            return None
        self._text = rest
        return body

    def clear(self) -> None:
        self._parts.clear()
        self._text = ""


__all__ = ["SentinelBuffer", "normalize_response"]
