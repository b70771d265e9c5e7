import logging
import math
import random
import threading
import time
from typing import Optional

from .base import DeviceAddress, DeviceProvider, FixationEvaluator, TrackingDevice
from ..configs import DummyDeviceSettings
from ..core.protocols import TrackingSource
from ..models import FixationEvent, FixationEventType, TrackingEvent

logger = logging.getLogger(__name__)


class DummyDevice(TrackingDevice):
    """
    Simulates a tracker for development without hardware.

    Emits raw events at a fixed frequency from a daemon thread while at least
    one listener is attached. The gaze follows a circular path in screen
    pixels with uniform jitter; the head sways slowly around 600 mm in front
    of the screen.
    """

    def __init__(self, settings: DummyDeviceSettings, seed: Optional[int] = None):
        super().__init__("DUM8-7RACKER")
        self._settings = settings
        self._interval_s = 1.0 / settings.frequency_hz
        self._rng = random.Random(seed)
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def sample_at(self, t: float) -> TrackingEvent:
        """Builds the event for `t` seconds after the stream started."""
        s = self._settings
        angle = t * s.speed_rps * 2 * math.pi
        cx, cy = s.center_px
        gaze = (
            cx + s.radius_px * math.cos(angle) + self._rng.uniform(-s.jitter_px, s.jitter_px),
            cy + s.radius_px * math.sin(angle) + self._rng.uniform(-s.jitter_px, s.jitter_px),
        )
        head = (20.0 * math.sin(angle / 3), 10.0 * math.cos(angle / 3), 600.0)
        return TrackingEvent(
            timestamp=int(t * 1_000_000),
            head_position=head,
            gaze_center=gaze,
        )

    def _run(self) -> None:
        start_time = time.monotonic()
        frame_counter = 0
        logger.info(f"{self.name} streaming at {self._settings.frequency_hz} Hz.")

        while not self._stop_event.is_set():
            target_time = start_time + frame_counter * self._interval_s
            self._emit_tracking(self.sample_at(time.monotonic() - start_time))
            frame_counter += 1

            sleep_duration = target_time + self._interval_s - time.monotonic()
            if sleep_duration > 0:
                self._stop_event.wait(sleep_duration)

        logger.info(f"{self.name} stream stopped.")

    def _on_first_listener(self) -> None:
        self._stop_event.clear()
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self._run, name="DummyDeviceStream", daemon=True)
        self._thread.start()

    def _on_last_listener(self) -> None:
        self._stop_event.set()

    def close(self) -> None:
        self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=1.0)
        self._thread = None


class DummyFixationEvaluator(FixationEvaluator):
    """
    Fakes fixation events from a device's raw stream.

    Every `every_n` raw samples a fixation starts at the current gaze point,
    continues for half the cycle and ends. There is no classification here;
    it only exercises the consumers of fixation events.
    """

    def __init__(self, device: TrackingSource, every_n: int):
        super().__init__()
        self._every_n = every_n
        self._count = 0
        self._center: Optional[tuple[float, float]] = None
        self._device = device
        device.add_tracking_listener(self._on_tracking)

    def _on_tracking(self, event: TrackingEvent) -> None:
        phase = self._count % self._every_n
        self._count += 1

        if phase == 0:
            if event.gaze_center is None:
                self._center = None
                return
            self._center = event.gaze_center
            kind = FixationEventType.START
        elif self._center is None:
            return
        elif phase == self._every_n // 2:
            kind = FixationEventType.END
        elif phase < self._every_n // 2:
            kind = FixationEventType.CONTINUED
        else:
            return

        self._emit_fixation(FixationEvent(event.timestamp, kind, self._center))

    def detach(self) -> None:
        self._device.remove_tracking_listener(self._on_tracking)


class DummyEvaluatorFactory:
    def __init__(self, settings: DummyDeviceSettings):
        self._settings = settings

    def create_evaluator(self, device: TrackingSource) -> DummyFixationEvaluator:
        return DummyFixationEvaluator(device, self._settings.fixation_every_n)


class DummyDeviceProvider(DeviceProvider):
    """
    Hands out DummyDevice instances for any well-formed address.

    With `available=False` every lookup comes back empty, which is what a
    provider reports when no tracking server answers.
    """

    def __init__(self, settings: DummyDeviceSettings, available: bool = True, seed: Optional[int] = None):
        self._settings = settings
        self._available = available
        self._seed = seed

    def open_device(self, address: str) -> Optional[DummyDevice]:
        parsed = DeviceAddress.parse(address)
        logger.info(f"Simulating discovery for {parsed}...")
        time.sleep(self._settings.discovery_delay_s)

        if not self._available:
            logger.warning(f"No simulated device answers at {parsed}.")
            return None
        return DummyDevice(self._settings, seed=self._seed)
