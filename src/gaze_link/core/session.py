import asyncio
import concurrent.futures
import logging
import threading
from dataclasses import replace
from typing import Callable, Optional

from .bridge import BackgroundLoop
from .protocols import DeviceSource, EvaluatorFactory, FixationSource, HostWindow, TrackingSource
from .publisher import StatePublisher
from .state import SessionState
from .._version import __version__
from ..configs import SessionSettings
from ..models import (
    FixationEvent,
    FixationEventType,
    GazeState,
    HeadPosition,
    PrecisionSnapshot,
    Sample,
    SessionStatus,
    TrackingEvent,
)
from ..processing import INVALID, BoundedHistoryAverager, MappedPoint, to_window_local
from ..utils import ThrottledLogger

logger = logging.getLogger(__name__)

MSG_CONSTRUCTED = (
    "Session constructed. Call start() with the tracking server's address "
    "(like 'tet-tcp://127.0.0.1') or a discovery string (like 'discover://nearest'). "
    "If in doubt, use the latter."
)
MSG_CONNECTING = (
    "Looking for a tracking device at {address}. This usually takes up to five "
    "seconds; if this message is still here after ten, something is wrong."
)
MSG_NOT_FOUND = (
    "Unable to find a tracking server at {address}. This does not mean there is "
    "no eye tracker, only that the server talking to it did not answer. Make sure "
    "it is running and that the network connection is up."
)
MSG_TIMEOUT = "No tracking device answered at {address} within {timeout:g} seconds."
MSG_CANCELLED = "Connection attempt to {address} was cancelled."
MSG_REJECTED = "Could not open {address}: {error}"
MSG_ATTACHING = "Device {device} opened. Attaching listeners."
MSG_ATTACH_FAILED = "Device {device} opened but listeners could not be attached: {error}"
MSG_WAITING = (
    "Setup appears fine, but no fixations have arrived yet. Either nobody is "
    "looking at the screen or the tracker does not see anyone."
)
MSG_NO_EVALUATOR = "Receiving raw data from {device}. No gaze evaluator is attached, so no fixations will arrive."
MSG_RECEIVING = "Receiving fixations. All is fine."
MSG_CLOSED = "Session closed."


class TrackingSession:
    """
    Connects a host window to an eye tracking device.

    `start()` opens the device on a background loop and returns right away.
    From then on the device's raw events feed two moving averages (head and
    gaze) and the fixation events of the evaluator decide where the user is
    looking. Everything the callbacks produce goes through one
    `StatePublisher`, so the application thread can poll `x`, `y`,
    `is_looking` or take a coherent `precision_snapshot()` at any time.

    Nothing raised in the background reaches the application: failures end
    up in `state` / `status()`, per-event problems in the validity flags.
    """

    def __init__(
        self,
        window: HostWindow,
        provider: DeviceSource,
        evaluators: Optional[EvaluatorFactory] = None,
        settings: Optional[SessionSettings] = None,
        loop: Optional[BackgroundLoop] = None,
        throttle_interval_s: float = 5.0,
    ):
        self._window = window
        self._provider = provider
        self._evaluators = evaluators
        self._settings = settings or SessionSettings()

        self._owns_loop = loop is None
        self._loop = loop or BackgroundLoop()

        self._start_lock = threading.Lock()
        self._started = False
        self._closed = False
        self._address: Optional[str] = None
        self._task: Optional[concurrent.futures.Future] = None

        self._status_lock = threading.Lock()
        self._status: tuple[SessionState, str] = (SessionState.UNCONFIGURED, MSG_CONSTRUCTED)
        self._fixation_seen = False

        self._device: Optional[TrackingSource] = None
        self._evaluator: Optional[FixationSource] = None

        # Only ever touched from the device's event thread.
        self._head_history = BoundedHistoryAverager(self._settings.averaging_head_position_size)
        self._gaze_history = BoundedHistoryAverager(self._settings.averaging_raw_gaze_data_size)

        self._publisher: StatePublisher[GazeState] = StatePublisher(GazeState())
        self._throttled = ThrottledLogger(logger, throttle_interval_s)
        self._closers: list[Callable[[], None]] = []

    # --- Configuration ---

    @property
    def settings(self) -> SessionSettings:
        return self._settings

    @property
    def averaging_head_position_size(self) -> int:
        return self._settings.averaging_head_position_size

    @averaging_head_position_size.setter
    def averaging_head_position_size(self, size: int) -> None:
        if size < 1:
            raise ValueError(f"Averaging size must be at least 1, got {size}.")
        self._settings = self._settings.model_copy(update={"averaging_head_position_size": size})

    @property
    def averaging_raw_gaze_data_size(self) -> int:
        return self._settings.averaging_raw_gaze_data_size

    @averaging_raw_gaze_data_size.setter
    def averaging_raw_gaze_data_size(self, size: int) -> None:
        if size < 1:
            raise ValueError(f"Averaging size must be at least 1, got {size}.")
        self._settings = self._settings.model_copy(update={"averaging_raw_gaze_data_size": size})

    # --- Lifecycle ---

    def start(self, address: Optional[str] = None) -> Optional[concurrent.futures.Future]:
        """
        Starts connecting to `address` in the background.

        Only the first call does anything; later calls return None. The
        returned future completes once the attempt has succeeded or failed
        and can be cancelled.
        """
        with self._start_lock:
            if self._started or self._closed:
                return None
            self._started = True

        self._address = address or self._settings.default_address
        self._task = self._loop.submit(self._connect(self._address))
        return self._task

    @property
    def task(self) -> Optional[concurrent.futures.Future]:
        return self._task

    def cancel(self) -> bool:
        """Cancels a connection attempt still in progress."""
        with self._status_lock:
            # Once a device is attached the attempt is over, even while the
            # future still waits for the loop to mark it done.
            if self._task is None or self._device is not None or self._status[0].is_terminal:
                return False
            if not self._task.cancel():
                return False
            self._status = (SessionState.FAILED, MSG_CANCELLED.format(address=self._address))
        logger.info(f"Connection attempt to {self._address} cancelled.")
        return True

    def close(self) -> None:
        """Cancels any pending attempt, detaches from the device and stops the loop."""
        with self._start_lock:
            if self._closed:
                return
            self._closed = True
        self.cancel()

        # Waits for an attach in progress; later ones see `_closed`.
        with self._start_lock:
            device, evaluator = self._device, self._evaluator
            self._device = self._evaluator = None
        try:
            if evaluator is not None:
                evaluator.remove_fixation_listener(self._on_fixation)
                if hasattr(evaluator, "detach"):
                    evaluator.detach()
            if device is not None:
                device.remove_tracking_listener(self._on_tracking)
                self._release(device)
        except Exception:
            logger.exception("Error while detaching from the tracking device.")

        for closer in self._closers:
            try:
                closer()
            except Exception:
                logger.exception("Error in close hook %r.", closer)

        if self._owns_loop:
            self._loop.stop()
        self._set_status(SessionState.FAILED, MSG_CLOSED)

    @staticmethod
    def _release(device: TrackingSource) -> None:
        if hasattr(device, "close"):
            device.close()

    async def _connect(self, address: str) -> None:
        self._set_status(SessionState.CONNECTING, MSG_CONNECTING.format(address=address))
        timeout = self._settings.connect_timeout_s

        try:
            device = await asyncio.wait_for(
                asyncio.to_thread(self._provider.open_device, address), timeout
            )
        except asyncio.TimeoutError:
            logger.error(f"Opening {address} timed out after {timeout}s.")
            self._set_status(SessionState.FAILED, MSG_TIMEOUT.format(address=address, timeout=timeout))
            return
        except asyncio.CancelledError:
            self._set_status(SessionState.FAILED, MSG_CANCELLED.format(address=address))
            raise
        except Exception as e:
            logger.exception(f"Device provider failed to open {address}.")
            self._set_status(SessionState.FAILED, MSG_REJECTED.format(address=address, error=e))
            return

        if device is None:
            logger.error(f"Error opening device {address}. Most likely there is no tracking server running.")
            self._set_status(SessionState.FAILED, MSG_NOT_FOUND.format(address=address))
            return

        self._attach(device)

    def _attach(self, device: TrackingSource) -> None:
        name = getattr(device, "name", type(device).__name__)

        # Held for the whole registration so close() cannot run in between.
        with self._start_lock:
            with self._status_lock:
                given_up = self._closed or self._status[0].is_terminal
                if not given_up:
                    self._device = device
            if given_up:
                logger.info(f"Session ended while {name} was being opened; releasing it.")
                self._release(device)
                return

            self._set_status(SessionState.CONNECTED, MSG_ATTACHING.format(device=name))
            try:
                device.add_tracking_listener(self._on_tracking)

                if self._evaluators is not None:
                    self._evaluator = self._evaluators.create_evaluator(device)
                    self._evaluator.add_fixation_listener(self._on_fixation)
                else:
                    logger.warning("No gaze evaluator configured; is_looking will stay False.")
            except Exception as e:
                logger.exception(f"Attaching listeners to {name} failed.")
                self._set_status(SessionState.FAILED, MSG_ATTACH_FAILED.format(device=name, error=e))
                return

            evaluator = self._evaluator

        # Decided under the lock so a fixation racing in cannot be overwritten.
        with self._status_lock:
            if evaluator is None:
                message = MSG_NO_EVALUATOR.format(device=name)
            else:
                message = MSG_RECEIVING if self._fixation_seen else MSG_WAITING
            if not self._status[0].is_terminal:
                self._status = (SessionState.RECEIVING, message)
        logger.info(f"Session attached to {name}.")

    # --- Event callbacks (device thread) ---

    def _window_geometry(self) -> tuple[Optional[tuple[int, int]], Optional[tuple[int, int]]]:
        try:
            origin = self._window.location_on_screen()
            size = self._window.size()
        except Exception as e:
            self._throttled.warning("Host window geometry unavailable: %s", e)
            return None, None

        if origin is None:
            self._throttled.warning("Host window is not on screen; gaze is reported as unknown.")
        return origin, size

    def _on_tracking(self, event: TrackingEvent) -> None:
        origin, size = self._window_geometry()

        # Pick up configuration changes made since the last event.
        self._head_history.resize(self._settings.averaging_head_position_size)
        self._gaze_history.resize(self._settings.averaging_raw_gaze_data_size)

        self._head_history.push(Sample(*event.head_position, timestamp=event.timestamp))
        h = self._head_history.mean()
        head = HeadPosition(h.x, h.y, h.z)

        gaze = event.gaze_center
        mapped: MappedPoint = INVALID
        if gaze is not None and gaze[0] > 0 and gaze[1] > 0:
            self._gaze_history.push(Sample(gaze[0], gaze[1], timestamp=event.timestamp))
            g = self._gaze_history.mean()
            mapped = to_window_local((g.x, g.y), origin, size)

        def update(state: GazeState) -> GazeState:
            return replace(
                state,
                head=head,
                precision=replace(
                    state.precision,
                    raw_timestamp=event.timestamp,
                    raw_valid=mapped.valid,
                    raw_x=mapped.x,
                    raw_y=mapped.y,
                ),
            )

        self._publisher.write(update)

    def _on_fixation(self, event: FixationEvent) -> None:
        if event.kind is not FixationEventType.START:
            return

        with self._status_lock:
            first = not self._fixation_seen
            self._fixation_seen = True
            if first and self._status[0] is SessionState.RECEIVING:
                self._status = (SessionState.RECEIVING, MSG_RECEIVING)
        if first:
            logger.info("First fixation received.")

        origin, size = self._window_geometry()
        mapped = to_window_local(event.center, origin, size)
        if not mapped.valid:
            logger.debug(f"Fixation at {event.center} is outside the host window.")

        def update(state: GazeState) -> GazeState:
            return replace(
                state,
                x=mapped.x,
                y=mapped.y,
                is_looking=mapped.valid,
                precision=replace(
                    state.precision,
                    fixation_timestamp=event.timestamp,
                    fixation_valid=mapped.valid,
                    fixation_x=mapped.x,
                    fixation_y=mapped.y,
                ),
            )

        self._publisher.write(update)

    # --- Read surface (any thread, never raises) ---

    def _set_status(self, state: SessionState, message: str) -> None:
        with self._status_lock:
            if self._status[0].is_terminal and not state.is_terminal:
                return
            self._status = (state, message)
        logger.debug(f"Session {state.name}: {message}")

    @property
    def state(self) -> SessionState:
        return self._status[0]

    def status(self) -> str:
        return self._status[1]

    def debug(self) -> None:
        """Logs the current status line."""
        state, message = self._status
        logger.info(f"[{state.name}] {message}")

    def version(self) -> str:
        return __version__

    def precision_snapshot(self) -> PrecisionSnapshot:
        return self._publisher.read().precision

    def gaze_state(self) -> GazeState:
        return self._publisher.read()

    @property
    def x(self) -> int:
        return self._publisher.read().x

    @property
    def y(self) -> int:
        return self._publisher.read().y

    @property
    def is_looking(self) -> bool:
        return self._publisher.read().is_looking

    @property
    def head_position(self) -> HeadPosition:
        return self._publisher.read().head

    def query(self) -> SessionStatus:
        state, message = self._status
        gaze = self._publisher.read()
        return SessionStatus(
            state=state,
            message=message,
            x=gaze.x,
            y=gaze.y,
            is_looking=gaze.is_looking,
            head=gaze.head,
            precision=gaze.precision,
        )

    def subscribe(self, listener: Callable[[GazeState], None]) -> None:
        """Calls `listener` with every published state, on the device thread."""
        self._publisher.subscribe(listener)

    def unsubscribe(self, listener: Callable[[GazeState], None]) -> None:
        self._publisher.unsubscribe(listener)

    def on_close(self, closer: Callable[[], None]) -> None:
        """Registers a function run once by `close()`."""
        self._closers.append(closer)
