import random

import pytest

from gaze_link.models import Sample
from gaze_link.processing import BoundedHistoryAverager

def test_mean_of_full_window():
    avg = BoundedHistoryAverager(3)
    for x in (0, 2, 4):
        avg.push(Sample(x, 0, 0))
    assert avg.mean() == Sample(2.0, 0.0, 0.0, 0)

def test_oldest_sample_is_evicted():
    avg = BoundedHistoryAverager(3)
    for x in range(5):
        avg.push(Sample(x, 0, 0))
    assert len(avg) == 3
    assert avg.mean().x == 3.0

def test_empty_window_gives_zero_sample():
    assert BoundedHistoryAverager(4).mean() == Sample(0.0, 0.0, 0.0)

def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        BoundedHistoryAverager(0)

def test_mean_matches_last_n_pushed():
    rng = random.Random(7)
    for capacity in range(1, 7):
        avg = BoundedHistoryAverager(capacity)
        pushed = []
        for _ in range(rng.randint(0, 15)):
            s = Sample(rng.uniform(-100, 100), rng.uniform(-100, 100), rng.uniform(0, 800))
            avg.push(s)
            pushed.append(s)

        kept = pushed[-capacity:] if pushed else []
        assert len(avg) == min(len(pushed), capacity)
        if kept:
            m = avg.mean()
            assert m.x == pytest.approx(sum(s.x for s in kept) / len(kept))
            assert m.y == pytest.approx(sum(s.y for s in kept) / len(kept))
            assert m.z == pytest.approx(sum(s.z for s in kept) / len(kept))

def test_mean_carries_newest_timestamp():
    avg = BoundedHistoryAverager(2)
    avg.push(Sample(1, 1, timestamp=10))
    avg.push(Sample(3, 3, timestamp=20))
    assert avg.mean().timestamp == 20

def test_resize_keeps_newest_samples():
    avg = BoundedHistoryAverager(4)
    for x in (1, 2, 3, 4):
        avg.push(Sample(x, 0))
    avg.resize(2)
    assert avg.capacity == 2
    assert avg.mean().x == 3.5

    avg.resize(5)
    avg.push(Sample(10, 0))
    assert len(avg) == 3

def test_clear():
    avg = BoundedHistoryAverager(2)
    avg.push(Sample(5, 5))
    avg.clear()
    assert len(avg) == 0
