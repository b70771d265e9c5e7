import threading
from dataclasses import replace

from gaze_link.core import StatePublisher
from gaze_link.models import GazeState, PrecisionSnapshot

def test_read_is_not_affected_by_later_writes():
    pub = StatePublisher(PrecisionSnapshot())
    before = pub.read()
    pub.write(lambda s: replace(s, raw_x=10, raw_y=20, raw_valid=True))

    assert before == PrecisionSnapshot()
    assert pub.read().raw_x == 10

def test_write_returns_new_value():
    pub = StatePublisher(GazeState())
    new = pub.write(lambda s: replace(s, x=3, y=4, is_looking=True))
    assert new is pub.read()
    assert (new.x, new.y, new.is_looking) == (3, 4, True)

def test_listeners_see_every_write_in_order():
    pub = StatePublisher(0)
    seen = []
    pub.subscribe(seen.append)
    for _ in range(5):
        pub.write(lambda v: v + 1)
    assert seen == [1, 2, 3, 4, 5]

    pub.unsubscribe(seen.append)
    pub.write(lambda v: v + 1)
    assert seen == [1, 2, 3, 4, 5]

def test_failing_listener_does_not_break_writes():
    pub = StatePublisher(0)

    def broken(_):
        raise RuntimeError("boom")

    seen = []
    pub.subscribe(broken)
    pub.subscribe(seen.append)
    assert pub.write(lambda v: v + 1) == 1
    assert seen == [1]

def test_concurrent_readers_never_see_torn_updates():
    pub = StatePublisher(PrecisionSnapshot())
    stop = threading.Event()
    torn = []

    def writer(offset):
        i = 0
        while not stop.is_set():
            i += 1
            value = offset + i
            pub.write(lambda s: replace(s, raw_x=value, raw_y=value, raw_valid=True))

    def reader():
        for _ in range(20_000):
            snap = pub.read()
            if snap.raw_valid and snap.raw_x != snap.raw_y:
                torn.append(snap)

    writers = [threading.Thread(target=writer, args=(n * 1_000_000,)) for n in range(2)]
    for t in writers:
        t.start()
    try:
        reader()
    finally:
        stop.set()
        for t in writers:
            t.join()

    assert torn == []

def test_listener_can_read_the_publisher():
    pub = StatePublisher(0)
    seen = []
    pub.subscribe(lambda v: seen.append((v, pub.read())))

    writer = threading.Thread(target=pub.write, args=(lambda v: v + 1,))
    writer.start()
    writer.join(timeout=2)

    assert not writer.is_alive()
    assert seen == [(1, 1)]
