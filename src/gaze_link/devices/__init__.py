# The Tobii adapter is imported on demand (see factories.create_provider) so
# the package works without the vendor SDK installed.
from .base import DeviceAddress, DeviceProvider, FixationEvaluator, TrackingDevice
from .dummy import DummyDevice, DummyDeviceProvider, DummyEvaluatorFactory, DummyFixationEvaluator
