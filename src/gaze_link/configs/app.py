import logging
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, PositiveInt, PositiveFloat, Field, field_validator

from .utils import LoggingConfig

logger = logging.getLogger(__name__)

DEFAULT_ADDRESS = "discover://nearest"

class SessionSettings(BaseModel):
    """Smoothing and connection behaviour of a TrackingSession."""
    averaging_head_position_size: PositiveInt = Field(10, description="Number of raw head positions averaged.")
    averaging_raw_gaze_data_size: PositiveInt = Field(5, description="Number of raw gaze points averaged.")
    default_address: str = Field(DEFAULT_ADDRESS, description="Address connected to when start() or open_session() is given no address.")
    connect_timeout_s: Optional[PositiveFloat] = Field(
        10.0,
        description="Give up on the device after this many seconds. None waits forever."
    )

class DummyDeviceSettings(BaseModel):
    """Simulated tracker used when no hardware is around."""
    frequency_hz: PositiveInt = 60
    discovery_delay_s: float = Field(0.5, ge=0)
    center_px: tuple[float, float] = (960.0, 540.0)
    radius_px: float = Field(300.0, ge=0)
    speed_rps: float = Field(0.1, description="Revolutions per second along the circle.")
    jitter_px: float = Field(4.0, ge=0, description="Uniform noise added to every raw gaze point.")
    fixation_every_n: PositiveInt = Field(30, description="Raw samples per simulated fixation.")

class BroadcastConfig(BaseModel):
    enabled: bool = False
    host: str = "tcp://*:5556"

    @field_validator("host")
    @classmethod
    def validate_host(cls, value: str) -> str:
        if "://" not in value:
            raise ValueError("Broadcast host must be a ZMQ endpoint like 'tcp://*:5556'.")
        return value

class AppSettings(BaseSettings):
    """
    Main settings, loaded from environment variables and defaults.
    """
    use_dummy_mode: bool = False

    session: SessionSettings = Field(default_factory=SessionSettings)
    dummy: DummyDeviceSettings = Field(default_factory=DummyDeviceSettings)
    broadcast: BroadcastConfig = Field(default_factory=BroadcastConfig)

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_prefix="GAZE_LINK__",
        env_file=".env",
        env_nested_delimiter='__',
        case_sensitive=False
    )
