import logging
import math
from typing import Optional

import tobii_research as tr
from screeninfo import get_monitors

from .base import DeviceAddress, DeviceProvider, TrackingDevice
from ..models import TrackingEvent
from ..processing import normalized_to_screen

logger = logging.getLogger(__name__)

# Discovery selectors. Tobii's SDK reports neither distance nor uptime, so
# 'nearest' and 'youngest' both settle for the first tracker found.
FIRST_SELECTORS = {"nearest", "first", "youngest", "any"}


def _mean_valid(data: dict, key: str, validity_key: str, dims: int) -> Optional[tuple[float, ...]]:
    points = [
        data[f"{eye}_{key}"]
        for eye in ("left", "right")
        if data.get(f"{eye}_{validity_key}")
    ]
    # The SDK reports NaN components for eyes it lost.
    points = [p for p in points if p is not None and not any(math.isnan(c) for c in p)]
    if not points:
        return None
    return tuple(sum(p[i] for p in points) / len(points) for i in range(dims))


class TobiiDevice(TrackingDevice):
    """
    Wraps a `tobii_research.EyeTracker`.

    Gaze comes in normalized to the display area and is converted to screen
    pixels of the configured monitor; the head position is the mean of the
    valid gaze origins, in millimeters in the tracker's user coordinates.
    """

    def __init__(self, tracker: tr.EyeTracker, monitor_origin: tuple[int, int], monitor_size: tuple[int, int]):
        super().__init__(f"{tracker.device_name} ({tracker.serial_number})")
        self.tracker = tracker
        self._monitor_origin = monitor_origin
        self._monitor_size = monitor_size
        self._last_head: tuple[float, float, float] = (0.0, 0.0, 0.0)
        self._subscribed = False

    def to_event(self, gaze_data: dict) -> TrackingEvent:
        gaze = _mean_valid(gaze_data, "gaze_point_on_display_area", "gaze_point_validity", 2)
        head = _mean_valid(gaze_data, "gaze_origin_in_user_coordinate_system", "gaze_origin_validity", 3)
        if head is not None:
            self._last_head = head

        return TrackingEvent(
            timestamp=gaze_data["system_time_stamp"],
            head_position=self._last_head,
            gaze_center=(
                normalized_to_screen(gaze, self._monitor_origin, self._monitor_size)
                if gaze is not None
                else None
            ),
        )

    def _gaze_data_callback(self, gaze_data: dict) -> None:
        """Called on the SDK's delivery thread."""
        try:
            event = self.to_event(gaze_data)
        except Exception:
            logger.exception("Error converting gaze data from Tobii callback.")
            return
        self._emit_tracking(event)

    def _on_first_listener(self) -> None:
        logger.info("Subscribing to gaze data stream...")
        self.tracker.subscribe_to(tr.EYETRACKER_GAZE_DATA, self._gaze_data_callback, as_dictionary=True)
        self._subscribed = True

    def _on_last_listener(self) -> None:
        if self._subscribed:
            logger.info("Unsubscribing from gaze data stream...")
            self.tracker.unsubscribe_from(tr.EYETRACKER_GAZE_DATA, self._gaze_data_callback)
            self._subscribed = False

    def close(self) -> None:
        try:
            self._on_last_listener()
        except Exception:
            logger.exception("Tobii SDK rejected unsubscribe on close.")


class TobiiDeviceProvider(DeviceProvider):
    """
    Opens Tobii Pro trackers.

    Accepts 'discover://<nearest|first|youngest|serial>' or a direct SDK
    address such as 'tet-tcp://10.46.32.51'.
    """

    def __init__(self, monitor_index: Optional[int] = None):
        self._monitor_index = monitor_index

    def _monitor_geometry(self) -> tuple[tuple[int, int], tuple[int, int]]:
        monitors = get_monitors()
        if not monitors:
            raise RuntimeError("No monitors reported by the OS.")
        if self._monitor_index is not None:
            m = monitors[self._monitor_index]
        else:
            m = next((m for m in monitors if m.is_primary), monitors[0])
        logger.info(f"Mapping gaze onto monitor {m.name or '?'}: {m.width}x{m.height} at ({m.x}, {m.y})")
        return (m.x, m.y), (m.width, m.height)

    def _find(self, address: DeviceAddress) -> Optional[tr.EyeTracker]:
        if not address.is_discovery:
            logger.info(f"Connecting to tracker at {address}...")
            return tr.EyeTracker(str(address))

        logger.info("Searching for eye trackers...")
        trackers = tr.find_all_eyetrackers()
        if not trackers:
            logger.error("No eye trackers found.")
            return None

        selector = address.selector.lower()
        if selector in FIRST_SELECTORS:
            if selector == "youngest":
                logger.warning("Tracker age is unknown to the SDK, using the first one found.")
            return trackers[0]

        for tracker in trackers:
            if tracker.serial_number == address.selector:
                return tracker
        logger.error(f"No tracker with serial number {address.selector!r} among {len(trackers)} found.")
        return None

    def open_device(self, address: str) -> Optional[TobiiDevice]:
        parsed = DeviceAddress.parse(address)
        try:
            tracker = self._find(parsed)
        except Exception as e:
            logger.error(f"Tobii SDK could not open {parsed}: {e}")
            return None

        if tracker is None:
            return None

        logger.info(f"Found tracker: {tracker.device_name} ({tracker.serial_number})")
        origin, size = self._monitor_geometry()
        return TobiiDevice(tracker, origin, size)
