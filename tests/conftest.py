import threading

import pytest

from gaze_link.configs import SessionSettings
from gaze_link.core.session import TrackingSession
from gaze_link.devices import DeviceAddress
from gaze_link.ui.host_window import StaticHostWindow


class FakeDevice:
    name = "fake-tracker"

    def __init__(self):
        self.listeners = []
        self.closed = False

    def add_tracking_listener(self, listener):
        self.listeners.append(listener)

    def remove_tracking_listener(self, listener):
        self.listeners.remove(listener)

    def emit(self, event):
        for listener in list(self.listeners):
            listener(event)

    def close(self):
        self.closed = True


class FakeEvaluator:
    def __init__(self):
        self.listeners = []

    def add_fixation_listener(self, listener):
        self.listeners.append(listener)

    def remove_fixation_listener(self, listener):
        self.listeners.remove(listener)

    def emit(self, event):
        for listener in list(self.listeners):
            listener(event)


class FakeEvaluatorFactory:
    def __init__(self):
        self.evaluator = FakeEvaluator()
        self.devices = []

    def create_evaluator(self, device):
        self.devices.append(device)
        return self.evaluator


class FakeProvider:
    """Returns `device` after an optional gate opens."""

    def __init__(self, device=None, gate=None):
        self.device = device
        self.gate = gate
        self.entered = threading.Event()
        self.addresses = []

    def open_device(self, address):
        DeviceAddress.parse(address)
        self.addresses.append(address)
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(5)
        return self.device


@pytest.fixture
def window():
    return StaticHostWindow((100, 100), (200, 200))


@pytest.fixture
def device():
    return FakeDevice()


@pytest.fixture
def evaluators():
    return FakeEvaluatorFactory()


@pytest.fixture
def make_session(window, device, evaluators):
    sessions = []

    def factory(provider=None, settings=None, evaluator_factory=evaluators, host=window):
        session = TrackingSession(
            host,
            provider or FakeProvider(device),
            evaluators=evaluator_factory,
            settings=settings or SessionSettings(),
        )
        sessions.append(session)
        return session

    yield factory

    for session in sessions:
        session.close()


@pytest.fixture
def connected(make_session, device, evaluators):
    session = make_session()
    session.start("discover://nearest").result(timeout=5)
    return session, device, evaluators.evaluator
