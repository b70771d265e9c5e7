from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from ..core.state import SessionState


@dataclass(slots=True, frozen=True)
class Sample:
    """
    A single point fed into a moving-average window.

    Gaze samples leave `z` at 0.0; head samples use all three components.
    """
    x: float
    y: float
    z: float = 0.0
    timestamp: int = 0


@dataclass(slots=True, frozen=True)
class HeadPosition:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass(slots=True, frozen=True)
class TrackingEvent:
    """
    A raw, unfiltered sample delivered by a tracking device.

    `gaze_center` is in absolute screen pixels and is None when the device
    lost both eyes for this sample.
    """
    timestamp: int
    head_position: tuple[float, float, float]
    gaze_center: Optional[tuple[float, float]]


class FixationEventType(Enum):
    START = auto()
    CONTINUED = auto()
    END = auto()


@dataclass(slots=True, frozen=True)
class FixationEvent:
    """A fixation notification as classified by a gaze evaluator."""
    timestamp: int
    kind: FixationEventType
    center: tuple[float, float]


@dataclass(slots=True, frozen=True)
class PrecisionSnapshot:
    """
    Coherent view of the latest raw and fixation measurements.

    Writers replace the whole object, so a reference obtained from a read
    never changes underneath the caller. A `*_valid` flag is only True when
    the matching coordinates came from a successful window mapping in the
    same update.
    """
    raw_timestamp: int = 0
    raw_valid: bool = False
    raw_x: int = -1
    raw_y: int = -1
    fixation_timestamp: int = 0
    fixation_valid: bool = False
    fixation_x: int = -1
    fixation_y: int = -1


@dataclass(slots=True, frozen=True)
class GazeState:
    """Everything the tracker callbacks publish, guarded by a single lock."""
    precision: PrecisionSnapshot = field(default_factory=PrecisionSnapshot)
    x: int = -1
    y: int = -1
    is_looking: bool = False
    head: HeadPosition = field(default_factory=HeadPosition)


@dataclass(slots=True, frozen=True)
class SessionStatus:
    """Read-only answer to `TrackingSession.query()`."""
    state: SessionState
    message: str
    x: int
    y: int
    is_looking: bool
    head: HeadPosition
    precision: PrecisionSnapshot
