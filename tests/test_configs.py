import pytest
from pydantic import ValidationError

from gaze_link.configs import AppSettings, BroadcastConfig, SessionSettings

def test_defaults():
    settings = AppSettings()
    assert settings.session.default_address == "discover://nearest"
    assert settings.session.averaging_head_position_size >= 1
    assert settings.session.averaging_raw_gaze_data_size >= 1
    assert not settings.broadcast.enabled

def test_nested_environment_overrides(monkeypatch):
    monkeypatch.setenv("GAZE_LINK__SESSION__AVERAGING_HEAD_POSITION_SIZE", "7")
    monkeypatch.setenv("GAZE_LINK__USE_DUMMY_MODE", "true")
    settings = AppSettings()
    assert settings.session.averaging_head_position_size == 7
    assert settings.use_dummy_mode

def test_averaging_sizes_must_be_positive():
    with pytest.raises(ValidationError):
        SessionSettings(averaging_raw_gaze_data_size=0)

def test_timeout_can_be_disabled():
    assert SessionSettings(connect_timeout_s=None).connect_timeout_s is None

def test_broadcast_host_must_be_endpoint():
    with pytest.raises(ValidationError):
        BroadcastConfig(host="localhost:5556")
