import logging

import pytest

from helpers import FakeClock, FakeMetadataStreamFactory


@pytest.fixture
def anyio_backend():
    """Restrict AnyIO tests to the asyncio backend to avoid trio dependency."""
    return "asyncio"


@pytest.fixture
def stream_factory() -> FakeMetadataStreamFactory:
    return FakeMetadataStreamFactory()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def agentmeta_caplog(caplog):
    """
    Capture records of agentmeta loggers.

    agentmeta loggers do not propagate to the root logger, so the capture
    handler is attached to them directly.
    """
    loggers = [
        logging.getLogger(name)
        for name in ("agentmeta.decoder", "agentmeta.subscription", "agentmeta.watcher")
    ]
    for logger in loggers:
        logger.addHandler(caplog.handler)
    yield caplog
    for logger in loggers:
        logger.removeHandler(caplog.handler)
