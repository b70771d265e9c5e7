from typing import Callable, Optional, Protocol, runtime_checkable

from ..models import FixationEvent, TrackingEvent

TrackingListener = Callable[[TrackingEvent], None]
FixationListener = Callable[[FixationEvent], None]


@runtime_checkable
class HostWindow(Protocol):
    """
    Geometry of the application window gaze is reported against.

    Called from tracker threads, so implementations must not touch a UI
    toolkit that is bound to its own thread.
    """
    def location_on_screen(self) -> Optional[tuple[int, int]]: ...

    def size(self) -> tuple[int, int]: ...


@runtime_checkable
class TrackingSource(Protocol):
    """Anything delivering raw tracking events (a device)."""
    def add_tracking_listener(self, listener: TrackingListener) -> None: ...

    def remove_tracking_listener(self, listener: TrackingListener) -> None: ...


@runtime_checkable
class DeviceSource(Protocol):
    """Resolves an address such as 'discover://nearest' to a device."""
    def open_device(self, address: str) -> Optional[TrackingSource]: ...


@runtime_checkable
class FixationSource(Protocol):
    """A gaze evaluator delivering fixation events."""
    def add_fixation_listener(self, listener: FixationListener) -> None: ...

    def remove_fixation_listener(self, listener: FixationListener) -> None: ...


@runtime_checkable
class EvaluatorFactory(Protocol):
    """Builds a fixation source on top of an opened device."""
    def create_evaluator(self, device: TrackingSource) -> FixationSource: ...
