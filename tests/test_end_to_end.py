import time

from conftest import FakeDevice, FakeProvider
from gaze_link import AppSettings, SessionState, StaticHostWindow, open_session
from gaze_link.configs import DummyDeviceSettings, SessionSettings

def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False

def test_dummy_session_reports_fixations():
    settings = AppSettings(
        use_dummy_mode=True,
        dummy=DummyDeviceSettings(
            frequency_hz=200,
            discovery_delay_s=0,
            center_px=(960.0, 540.0),
            radius_px=0,
            jitter_px=0,
            fixation_every_n=4,
        ),
    )
    session = open_session(StaticHostWindow((0, 0), (1920, 1080)), settings=settings)
    try:
        session.task.result(timeout=5)
        assert session.state is SessionState.RECEIVING

        assert wait_for(lambda: session.is_looking)
        assert (session.x, session.y) == (960, 540)
        assert wait_for(lambda: session.precision_snapshot().raw_valid)
        snap = session.precision_snapshot()
        assert (snap.raw_x, snap.raw_y) == (960, 540)
        assert session.head_position.z == 600.0
    finally:
        session.close()

def test_open_session_without_address_does_not_start():
    settings = AppSettings(use_dummy_mode=True, dummy=DummyDeviceSettings(discovery_delay_s=0))
    session = open_session(StaticHostWindow((0, 0), (100, 100)), address=None, settings=settings)
    try:
        assert session.task is None
        assert session.state is SessionState.UNCONFIGURED
    finally:
        session.close()

def test_open_session_defaults_to_configured_address():
    provider = FakeProvider(FakeDevice())
    settings = AppSettings(session=SessionSettings(default_address="discover://youngest"))
    session = open_session(StaticHostWindow((0, 0), (100, 100)), settings=settings, provider=provider)
    try:
        session.task.result(timeout=5)
        assert provider.addresses == ["discover://youngest"]
    finally:
        session.close()
