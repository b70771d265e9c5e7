from .zmq import SnapshotBroadcaster
