from .app import DEFAULT_ADDRESS, AppSettings, BroadcastConfig, DummyDeviceSettings, SessionSettings
from .utils import LoggingConfig
