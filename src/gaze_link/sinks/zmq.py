import logging
import struct
import threading
from typing import Final

import zmq

from ..models import GazeState

logger = logging.getLogger(__name__)

class SnapshotBroadcaster:
    """
    Relays every published GazeState over ZMQ PUB/SUB.

    Lets a second process (a recorder, a game engine) follow the session
    without linking against it. Subscribe with the topic filter b"gaze".

    Wire Format (43 bytes + 4 byte topic):
    - Topic: 'gaze' (4 bytes)
    - Raw TS: int64, Raw X: int32, Raw Y: int32, Raw Valid: bool
    - Fixation TS: int64, Fixation X: int32, Fixation Y: int32, Fixation Valid: bool
    - Is Looking: bool, X: int32, Y: int32
    """

    # ! = Network (Big Endian)
    _PACKER: Final[struct.Struct] = struct.Struct("!qii?qii??ii")
    _TOPIC: Final[bytes] = b"gaze"

    def __init__(self, host: str = "tcp://*:5556", context: zmq.Context | None = None):
        self.host = host
        self._owns_ctx = context is None
        self._ctx = context or zmq.Context()
        self._sock = self._ctx.socket(zmq.PUB)
        # Raw and fixation callbacks may come from different SDK threads.
        self._lock = threading.Lock()
        self._closed = False

        # Keep at most ~10 seconds of 120 Hz updates for slow subscribers.
        self._sock.setsockopt(zmq.SNDHWM, 120 * 10)

    @classmethod
    def pack(cls, state: GazeState) -> bytes:
        p = state.precision
        return cls._TOPIC + cls._PACKER.pack(
            p.raw_timestamp, p.raw_x, p.raw_y, p.raw_valid,
            p.fixation_timestamp, p.fixation_x, p.fixation_y, p.fixation_valid,
            state.is_looking, state.x, state.y,
        )

    @classmethod
    def unpack(cls, message: bytes) -> dict:
        if not message.startswith(cls._TOPIC):
            raise ValueError("Not a gaze message.")
        fields = cls._PACKER.unpack(message[len(cls._TOPIC):])
        keys = (
            "raw_timestamp", "raw_x", "raw_y", "raw_valid",
            "fixation_timestamp", "fixation_x", "fixation_y", "fixation_valid",
            "is_looking", "x", "y",
        )
        return dict(zip(keys, fields))

    def start(self) -> None:
        try:
            self._sock.bind(self.host)
            logger.info(f"SnapshotBroadcaster bound to {self.host}")
        except zmq.ZMQError as e:
            logger.error(f"Failed to bind SnapshotBroadcaster to {self.host}: {e}")
            raise

    def __call__(self, state: GazeState) -> None:
        """Publisher listener. Never raises into the tracker thread."""
        try:
            payload = self.pack(state)
            with self._lock:
                if self._closed:
                    return
                self._sock.send(payload, zmq.NOBLOCK)
        except zmq.Again:
            logger.debug("Gaze broadcast dropped: high water mark reached.")
        except Exception as e:
            logger.error(f"ZMQ broadcast failed: {e}")

    def close(self) -> None:
        logger.info("Closing SnapshotBroadcaster...")
        with self._lock:
            self._closed = True
            self._sock.close(linger=0)
        if self._owns_ctx:
            self._ctx.term()
