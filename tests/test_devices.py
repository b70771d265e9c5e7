import threading

import pytest

from conftest import FakeDevice
from gaze_link.configs import DummyDeviceSettings
from gaze_link.devices import DeviceAddress, DummyDevice, DummyDeviceProvider, DummyFixationEvaluator
from gaze_link.models import FixationEventType, TrackingEvent

def quiet_settings(**kwargs):
    base = dict(discovery_delay_s=0, jitter_px=0, center_px=(960.0, 540.0), radius_px=300.0)
    base.update(kwargs)
    return DummyDeviceSettings(**base)

def test_parse_discovery_address():
    addr = DeviceAddress.parse("discover://nearest")
    assert (addr.scheme, addr.selector, addr.is_discovery) == ("discover", "nearest", True)
    assert str(addr) == "discover://nearest"

def test_parse_direct_address():
    addr = DeviceAddress.parse("tet-tcp://10.46.32.51")
    assert addr.scheme == "tet-tcp"
    assert addr.selector == "10.46.32.51"
    assert not addr.is_discovery

@pytest.mark.parametrize("bad", ["", "nearest", "://nearest", "discover://", "discover:// near"])
def test_malformed_addresses(bad):
    with pytest.raises(ValueError):
        DeviceAddress.parse(bad)

def test_dummy_sample_follows_circle():
    device = DummyDevice(quiet_settings())
    event = device.sample_at(0.0)
    assert event.gaze_center == pytest.approx((1260.0, 540.0))
    assert event.head_position[2] == 600.0
    assert event.timestamp == 0

def test_dummy_device_streams_while_listened():
    device = DummyDevice(quiet_settings(frequency_hz=200))
    received = []
    enough = threading.Event()

    def listener(event):
        received.append(event)
        if len(received) >= 3:
            enough.set()

    device.add_tracking_listener(listener)
    try:
        assert enough.wait(5)
    finally:
        device.remove_tracking_listener(listener)
        device.close()

    assert all(isinstance(e, TrackingEvent) for e in received)
    timestamps = [e.timestamp for e in received]
    assert timestamps == sorted(timestamps)

def test_dummy_evaluator_cycle():
    source = FakeDevice()
    evaluator = DummyFixationEvaluator(source, every_n=4)
    events = []
    evaluator.add_fixation_listener(events.append)

    for i in range(8):
        source.emit(TrackingEvent(i, (0.0, 0.0, 600.0), (100.0 + i, 200.0)))

    assert [e.kind for e in events] == [
        FixationEventType.START, FixationEventType.CONTINUED, FixationEventType.END,
        FixationEventType.START, FixationEventType.CONTINUED, FixationEventType.END,
    ]
    # A fixation keeps the centre it started at.
    assert events[0].center == events[1].center == (100.0, 200.0)
    assert events[3].center == (104.0, 200.0)

    evaluator.detach()
    assert source.listeners == []

def test_dummy_evaluator_skips_cycle_without_gaze():
    source = FakeDevice()
    evaluator = DummyFixationEvaluator(source, every_n=2)
    events = []
    evaluator.add_fixation_listener(events.append)

    source.emit(TrackingEvent(0, (0.0, 0.0, 600.0), None))
    source.emit(TrackingEvent(1, (0.0, 0.0, 600.0), (5.0, 5.0)))
    assert events == []

def test_dummy_provider():
    provider = DummyDeviceProvider(quiet_settings())
    device = provider.open_device("discover://nearest")
    assert isinstance(device, DummyDevice)
    device.close()

    assert DummyDeviceProvider(quiet_settings(), available=False).open_device("discover://nearest") is None

    with pytest.raises(ValueError):
        provider.open_device("nearest")
