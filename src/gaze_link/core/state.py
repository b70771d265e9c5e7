from enum import Enum, auto


class SessionState(Enum):
    """
    Lifecycle of a single TrackingSession.

    FAILED is terminal: a session never reconnects on its own, the
    application opens a new one instead.
    """
    UNCONFIGURED = auto()  # Constructed, start() not called yet.
    CONNECTING = auto()  # Background task is looking for the device.
    CONNECTED = auto()  # Device obtained, listeners being attached.
    RECEIVING = auto()  # Listeners attached, events may flow.
    FAILED = auto()  # Not found, timed out, cancelled or rejected.

    @property
    def is_terminal(self) -> bool:
        return self is SessionState.FAILED
