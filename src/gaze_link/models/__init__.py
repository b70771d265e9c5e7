from .gaze import (
    FixationEvent,
    FixationEventType,
    GazeState,
    HeadPosition,
    PrecisionSnapshot,
    Sample,
    SessionStatus,
    TrackingEvent,
)
