import math
from typing import NamedTuple, Optional

SENTINEL = -1


class MappedPoint(NamedTuple):
    x: int
    y: int
    valid: bool


INVALID = MappedPoint(SENTINEL, SENTINEL, False)


def to_window_local(
    screen_point: tuple[float, float],
    window_origin: Optional[tuple[int, int]],
    window_size: Optional[tuple[int, int]],
) -> MappedPoint:
    """
    Translates an absolute screen point into the host window's frame.

    The result is invalid when the window origin is unknown (window not
    realized or hidden) or when the translated point lies outside
    [0, width) x [0, height). Invalid results always carry (-1, -1).
    """
    if window_origin is None or window_size is None:
        return INVALID

    width, height = window_size
    x = math.floor(screen_point[0] - window_origin[0])
    y = math.floor(screen_point[1] - window_origin[1])

    if x < 0 or y < 0 or x >= width or y >= height:
        return INVALID

    return MappedPoint(x, y, True)


def normalized_to_screen(
    point: tuple[float, float],
    monitor_origin: tuple[int, int],
    monitor_size: tuple[int, int],
) -> tuple[float, float]:
    """Scales a (0-1) display-area point to absolute pixels on one monitor."""
    return (
        monitor_origin[0] + point[0] * monitor_size[0],
        monitor_origin[1] + point[1] * monitor_size[1],
    )
