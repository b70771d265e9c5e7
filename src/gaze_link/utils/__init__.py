from .logging import ThrottledLogger
