import logging
from typing import Optional

from agentmeta.settings import app_settings
from .base import MetadataLogger
from .handlers import LogStreamHandler

logging.setLoggerClass(MetadataLogger)

CONFIGURED_MARKER = "_agentmeta_configured"


def get_logger(
        name: Optional[str] = None,
        use_stream: bool = True,
        level: Optional[int | str] = None
) -> logging.Logger:
    """
    Get a logger with agent context injection and the colorized stream handler

    Args:
        name: Logger name. If None, uses calling module's __name__
        use_stream: Whether to add console output handler
        level: Logging level

    Returns:
        Configured logger
    """
    if name is None:
        import inspect
        frame = inspect.currentframe().f_back
        name = frame.f_globals.get('__name__', 'unknown')

    logger = logging.getLogger(name)

    # Configure only if not already configured
    if not _is_logger_configured(logger):
        _configure_logger(logger=logger, use_stream=use_stream, level=level)

    return logger


def _is_logger_configured(logger: logging.Logger) -> bool:
    return getattr(logger, CONFIGURED_MARKER, False)


def _configure_logger(
        logger: logging.Logger,
        use_stream: bool,
        level: Optional[int | str] = None
) -> None:
    logger.setLevel(level or app_settings.log_level)

    if use_stream:
        logger.addHandler(LogStreamHandler())
        # Own handler attached; avoid duplicate lines through the root logger
        logger.propagate = False

    setattr(logger, CONFIGURED_MARKER, True)
