import logging
import threading
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StatePublisher(Generic[T]):
    """
    Lock-guarded holder for an immutable state value.

    Writers hand in a function that builds the next value from the current
    one; the swap happens under the lock, so writes are totally ordered and
    a reader never sees half of one update. Values are expected to be frozen
    dataclasses: `read()` hands out the current object, which later writes
    replace but never modify.
    """

    def __init__(self, initial: T):
        self._value = initial
        self._lock = threading.Lock()
        # Serialises writers so listeners still observe values in write order
        # while `_lock` stays free for readers.
        self._write_lock = threading.Lock()
        self._listeners: list[Callable[[T], None]] = []

    def read(self) -> T:
        with self._lock:
            return self._value

    def write(self, mutator: Callable[[T], T]) -> T:
        """
        Applies `mutator` to the current value and publishes the result.

        Listeners run after the swap, outside the read lock, so they may read
        the publisher themselves. They must not write to it. A failing
        listener is logged and skipped.
        """
        with self._write_lock:
            with self._lock:
                new_value = mutator(self._value)
                self._value = new_value
                listeners = list(self._listeners)
            for listener in listeners:
                try:
                    listener(new_value)
                except Exception:
                    logger.exception("State listener %r failed.", listener)
            return new_value

    def subscribe(self, listener: Callable[[T], None]) -> None:
        with self._lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[T], None]) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)
