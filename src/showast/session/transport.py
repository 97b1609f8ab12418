import codecs
import concurrent.futures
import logging
import os
import threading
from collections import deque
from collections.abc import Callable
from typing import Any

from showast.session.interpreters.base import InterpreterConfig
from showast.session.logging import log_discarded_stderr
from showast.session.protocol import SentinelBuffer, normalize_response
from showast.session.types import SessionError

logger = logging.getLogger(__name__)


def _set_result(future: concurrent.futures.Future[str], value: str) -> None:
    try:
        future.set_result(value)
    except concurrent.futures.InvalidStateError:
        # Cancelled by a caller-side timeout; the response is dropped.
        logger.debug("Dropping response for an abandoned request")


def _set_exception(future: concurrent.futures.Future[str], error: BaseException) -> None:
    try:
        future.set_exception(error)
    except concurrent.futures.InvalidStateError:
        logger.debug("Dropping error for an abandoned request: %s", error)


class SentinelTransport:
    """Thread-safe, sentinel-framed command transport over stdio.

    Commands are answered strictly in submission order: every pending future
    sits in a FIFO queue and is completed by the next sentinel seen on stdout.
    """

    def __init__(
        self,
        *,
        config: InterpreterConfig,
        lock: threading.RLock,
        send_lock: threading.Lock,
        read_chunk_size: int,
    ) -> None:
        self._config = config
        self._lock = lock
        self._send_lock = send_lock
        self._read_chunk_size = read_chunk_size
        self._stdout = SentinelBuffer(config.sentinel)
        self._stderr_parts: list[str] = []
        self._pending: deque[concurrent.futures.Future[str]] = deque()

    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def clear_buffers(self) -> None:
        with self._lock:
            self._stdout.clear()
            self._stderr_parts.clear()

    def _take_pending(self) -> list[concurrent.futures.Future[str]]:
        with self._lock:
            pending = list(self._pending)
            self._pending.clear()
        return pending

    def fail_all_pending(self, error: Exception) -> None:
        for fut in self._take_pending():
            if fut.done():
                continue
            _set_exception(fut, error)

    def fail_oldest_pending(self, error: Exception, followup_error: Exception) -> None:
        """Fail the in-flight request with ``error`` and everything queued behind it."""
        pending = self._take_pending()
        if not pending:
            return
        _set_exception(pending[0], error)
        for fut in pending[1:]:
            _set_exception(fut, followup_error)

    def _complete(
        self, future: concurrent.futures.Future[str], body: str, stderr_text: str
    ) -> None:
        output = normalize_response(body)
        errors = normalize_response(stderr_text)

        if errors and not output:
            _set_exception(future, SessionError(errors))
            return

        if errors:
            logger.warning("%s reported on stderr: %s", self._config.display_name, errors)
            log_discarded_stderr(self._config.name, errors, len(output))
        _set_result(future, output)

    def feed_stdout(self, text: str) -> None:
        completed: list[tuple[concurrent.futures.Future[str], str, str]] = []
        with self._lock:
            self._stdout.append(text)
            while True:
                body = self._stdout.try_take_response()
                if body is None:
                    break
                stderr_text = "".join(self._stderr_parts)
                self._stderr_parts.clear()
                if not self._pending:
                    logger.debug("Sentinel received with no pending request; dropping output")
                    continue
                completed.append((self._pending.popleft(), body, stderr_text))

        for future, body, stderr_text in completed:
            self._complete(future, body, stderr_text)

    def feed_stderr(self, text: str) -> None:
        if not text:
            return
        with self._lock:
            self._stderr_parts.append(text)
        logger.debug("%s stderr: %s", self._config.display_name, text.rstrip())

    def read_stdout_loop(
        self, process: Any, on_closed: Callable[[BaseException | None], None]
    ) -> None:
        if not process or not process.stdout:
            on_closed(None)
            return

        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        error: BaseException | None = None
        try:
            fd = process.stdout.fileno()
            while True:
                data = os.read(fd, self._read_chunk_size)
                if not data:
                    break
                self.feed_stdout(decoder.decode(data))
            self.feed_stdout(decoder.decode(b"", final=True))
        except (OSError, ValueError) as e:
            logger.debug("%s stdout reader stopped: %s", self._config.display_name, e)
            error = e
        finally:
            on_closed(error)

    def drain_stderr_loop(self, process: Any) -> None:
        if not process or not process.stderr:
            return

        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        try:
            fd = process.stderr.fileno()
            while True:
                data = os.read(fd, self._read_chunk_size)
                if not data:
                    break
                self.feed_stderr(decoder.decode(data))
        except (OSError, ValueError):
            return

    def send_command(self, process: Any, command: str) -> concurrent.futures.Future[str]:
        """Queue ``command`` and write it to ``process``.

        Raises:
            SessionError: If the process has no stdin or the write fails; the
                request is not left in the queue.
        """
        if not process or not process.stdin:
            raise SessionError(f"{self._config.display_name} is not running")

        future: concurrent.futures.Future[str] = concurrent.futures.Future()
        data = self._config.wrap_command(command).encode("utf-8")
        # Enqueue and write under one lock so queue order always matches wire order.
        with self._send_lock:
            with self._lock:
                self._pending.append(future)
            try:
                process.stdin.write(data)
                process.stdin.flush()
            except (OSError, ValueError) as e:
                with self._lock:
                    try:
                        self._pending.remove(future)
                    except ValueError:
                        pass
                raise SessionError(f"{self._config.display_name} stdin closed: {e}") from e
        return future


__all__ = ["SentinelTransport"]
