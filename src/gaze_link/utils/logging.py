import time
import logging

class ThrottledLogger:
    """
    Rate-limits warnings raised from per-event code paths.

    A tracker delivers tens of events per second; a condition such as an
    unmapped host window would otherwise flood the log. Occurrences between
    two emitted lines are counted and reported with the next one.
    """
    def __init__(self, logger: logging.Logger, interval_sec: float = 5.0) -> None:
        self._logger = logger
        self._interval = interval_sec
        self._last_log_time: dict[str, float] = {}
        self._counter: dict[str, int] = {}

    def warning(self, message: str, *args, **kwargs) -> bool:
        """Returns True when the line was actually emitted."""
        self._counter[message] = self._counter.get(message, 0) + 1
        now = time.monotonic()
        last = self._last_log_time.get(message)

        if last is None or now - last >= self._interval:
            self._logger.warning("[%d] " + message, self._counter[message], *args, **kwargs)
            self._last_log_time[message] = now
            self._counter[message] = 0
            return True
        return False
