import logging
from typing import Optional, Union

from .configs import AppSettings
from .core.protocols import DeviceSource, EvaluatorFactory, HostWindow
from .core.session import TrackingSession
from .devices import DummyDeviceProvider, DummyEvaluatorFactory
from .sinks import SnapshotBroadcaster

logger = logging.getLogger(__name__)

# Stands for "no address given"; None means "do not start".
_SETTINGS_ADDRESS = object()

def create_provider(settings: AppSettings) -> tuple[DeviceSource, Optional[EvaluatorFactory]]:
    """
    Picks the device provider (and its gaze evaluator, if any) from settings.
    """
    if settings.use_dummy_mode:
        logger.warning("Using the DUMMY device provider (simulation mode)")
        return DummyDeviceProvider(settings.dummy), DummyEvaluatorFactory(settings.dummy)

    # Imported here so the vendor SDK is only required when actually used.
    from .devices.tobii import TobiiDeviceProvider

    logger.info("Using the TOBII device provider")
    return TobiiDeviceProvider(), None

def open_session(
    window: HostWindow,
    address: Union[str, None, object] = _SETTINGS_ADDRESS,
    settings: Optional[AppSettings] = None,
    provider: Optional[DeviceSource] = None,
    evaluators: Optional[EvaluatorFactory] = None,
) -> TrackingSession:
    """
    Creates a session for `window` and starts connecting in the background.

    Without an `address` the session connects to
    `settings.session.default_address`. Passing None leaves the session
    unstarted.
    """
    settings = settings or AppSettings()

    if provider is None:
        provider, default_evaluators = create_provider(settings)
        evaluators = evaluators or default_evaluators

    session = TrackingSession(
        window,
        provider,
        evaluators=evaluators,
        settings=settings.session,
        throttle_interval_s=settings.logging.throttle_interval_s,
    )

    if settings.broadcast.enabled:
        broadcaster = SnapshotBroadcaster(settings.broadcast.host)
        broadcaster.start()
        session.subscribe(broadcaster)
        session.on_close(broadcaster.close)

    if address is _SETTINGS_ADDRESS:
        address = settings.session.default_address
    if address is not None:
        session.start(address)

    return session
