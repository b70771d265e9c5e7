from .averager import BoundedHistoryAverager
from .mapping import INVALID, SENTINEL, MappedPoint, normalized_to_screen, to_window_local
