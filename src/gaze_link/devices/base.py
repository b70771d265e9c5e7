import logging
import re
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ..core.protocols import FixationListener, TrackingListener
from ..models import FixationEvent, TrackingEvent

logger = logging.getLogger(__name__)

_ADDRESS_RE = re.compile(r"^(?P<scheme>[A-Za-z][A-Za-z0-9+.\-]*)://(?P<selector>\S+)$")

DISCOVER_SCHEME = "discover"


@dataclass(slots=True, frozen=True)
class DeviceAddress:
    """
    A parsed '<scheme>://<selector>' device address.

    'discover://nearest' asks a provider to search for a device, anything
    else names one directly (e.g. 'tet-tcp://10.46.32.51').
    """
    scheme: str
    selector: str

    @classmethod
    def parse(cls, address: str) -> "DeviceAddress":
        match = _ADDRESS_RE.match(address.strip()) if address else None
        if match is None:
            raise ValueError(f"Malformed device address {address!r}, expected '<scheme>://<selector>'.")
        return cls(match["scheme"].lower(), match["selector"])

    @property
    def is_discovery(self) -> bool:
        return self.scheme == DISCOVER_SCHEME

    def __str__(self) -> str:
        return f"{self.scheme}://{self.selector}"


class TrackingDevice(ABC):
    """
    Base class for opened devices.

    Keeps the listener registry and fans events out; subclasses call
    `_emit_tracking` from whatever thread their SDK delivers data on.
    """

    def __init__(self, name: str):
        self.name = name
        self._lock = threading.Lock()
        self._tracking_listeners: list[TrackingListener] = []

    def add_tracking_listener(self, listener: TrackingListener) -> None:
        with self._lock:
            first = not self._tracking_listeners
            self._tracking_listeners.append(listener)
        if first:
            self._on_first_listener()

    def remove_tracking_listener(self, listener: TrackingListener) -> None:
        with self._lock:
            if listener not in self._tracking_listeners:
                return
            self._tracking_listeners.remove(listener)
            last = not self._tracking_listeners
        if last:
            self._on_last_listener()

    def _emit_tracking(self, event: TrackingEvent) -> None:
        with self._lock:
            listeners = list(self._tracking_listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("Tracking listener failed on %s.", self.name)

    @abstractmethod
    def _on_first_listener(self) -> None:
        """Start delivering data."""
        ...

    @abstractmethod
    def _on_last_listener(self) -> None:
        """Stop delivering data."""
        ...

    @abstractmethod
    def close(self) -> None:
        ...


class FixationEvaluator:
    """Listener registry shared by fixation sources."""

    def __init__(self):
        self._lock = threading.Lock()
        self._fixation_listeners: list[FixationListener] = []

    def add_fixation_listener(self, listener: FixationListener) -> None:
        with self._lock:
            self._fixation_listeners.append(listener)

    def remove_fixation_listener(self, listener: FixationListener) -> None:
        with self._lock:
            if listener in self._fixation_listeners:
                self._fixation_listeners.remove(listener)

    def _emit_fixation(self, event: FixationEvent) -> None:
        with self._lock:
            listeners = list(self._fixation_listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("Fixation listener failed.")


class DeviceProvider(ABC):
    """
    Resolves addresses to devices.

    `open_device` is blocking (discovery can take seconds) and returns None
    when nothing answers. A malformed address raises ValueError.
    """

    @abstractmethod
    def open_device(self, address: str) -> Optional[TrackingDevice]:
        ...
