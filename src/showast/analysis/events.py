import logging
import threading
from collections.abc import Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Subscription:
    """Handle returned by :meth:`EventEmitter.subscribe`."""

    def __init__(self, unsubscribe: Callable[[], None]) -> None:
        self._unsubscribe = unsubscribe
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def dispose(self) -> None:
        if self._active:
            self._active = False
            self._unsubscribe()


class EventEmitter(Generic[T]):
    """Synchronous observer channel.

    Listeners run in registration order on the firing thread. Only the value
    being fired is delivered; late subscribers get nothing replayed.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._lock = threading.Lock()
        self._listeners: list[tuple[int, Callable[[T], None]]] = []
        self._next_id = 0

    def subscribe(self, listener: Callable[[T], None]) -> Subscription:
        with self._lock:
            listener_id = self._next_id
            self._next_id += 1
            self._listeners.append((listener_id, listener))

        def unsubscribe() -> None:
            with self._lock:
                self._listeners = [
                    entry for entry in self._listeners if entry[0] != listener_id
                ]

        return Subscription(unsubscribe)

    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def fire(self, value: T) -> None:
        with self._lock:
            listeners = [listener for _, listener in self._listeners]
        for listener in listeners:
            try:
                listener(value)
            except Exception:
                logger.warning("%s listener failed", self._name, exc_info=True)
