import logging
from collections import deque

from ..models import Sample

logger = logging.getLogger(__name__)


class BoundedHistoryAverager:
    """
    Equal-weight moving average over the last `capacity` samples.

    The window is a strict FIFO: once full, every push evicts the oldest
    sample. Not thread-safe; a session only touches it from the device's
    event thread.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"Averaging capacity must be at least 1, got {capacity}.")
        self._window: deque[Sample] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._window.maxlen

    def __len__(self) -> int:
        return len(self._window)

    def push(self, sample: Sample) -> None:
        self._window.append(sample)

    def mean(self) -> Sample:
        """
        Component-wise arithmetic mean of the held samples.

        Returns the zero sample when the window is empty. The timestamp of
        the result is that of the newest sample.
        """
        n = len(self._window)
        if n == 0:
            return Sample(0.0, 0.0, 0.0)

        sx = sy = sz = 0.0
        for s in self._window:
            sx += s.x
            sy += s.y
            sz += s.z

        return Sample(sx / n, sy / n, sz / n, self._window[-1].timestamp)

    def resize(self, capacity: int) -> None:
        """Changes the capacity, keeping the newest samples that still fit."""
        if capacity < 1:
            raise ValueError(f"Averaging capacity must be at least 1, got {capacity}.")
        if capacity == self._window.maxlen:
            return
        logger.debug("Resizing averaging window %d -> %d", self._window.maxlen, capacity)
        self._window = deque(self._window, maxlen=capacity)

    def clear(self) -> None:
        self._window.clear()
