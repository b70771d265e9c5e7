from .bridge import BackgroundLoop
from .publisher import StatePublisher
from .state import SessionState
