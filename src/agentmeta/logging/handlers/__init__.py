from .stream import LogStreamFormatter, LogStreamHandler

__all__ = [
    "LogStreamFormatter",
    "LogStreamHandler",
]
