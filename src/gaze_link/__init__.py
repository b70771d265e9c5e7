from ._version import __version__
from .configs import DEFAULT_ADDRESS, AppSettings, SessionSettings
from .core import SessionState, StatePublisher
from .core.session import TrackingSession
from .factories import create_provider, open_session
from .models import (
    FixationEvent,
    FixationEventType,
    GazeState,
    HeadPosition,
    PrecisionSnapshot,
    Sample,
    SessionStatus,
    TrackingEvent,
)
from .processing import BoundedHistoryAverager, MappedPoint, to_window_local
from .ui.host_window import StaticHostWindow, TkinterHostWindow
