from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncIterator, Union

__all__ = [
    "DATA_EVENT",
    "ERROR_EVENT",
    "StreamEvent",
    "IMetadataStream",
    "IMetadataStreamFactory",
]

DATA_EVENT = "data"
ERROR_EVENT = "error"


@dataclass(frozen=True)
class StreamEvent:
    """
    One named event delivered by a metadata stream.

    Attributes:
        type: Event name. ``data`` carries a JSON snapshot, ``error`` a failure.
        data: Event payload, opaque for anything but ``data`` events
    """
    type: str
    data: Union[str, bytes] = ""


class IMetadataStream(ABC):
    """Long-lived server push channel for a single agent's metadata."""

    @abstractmethod
    def events(self) -> AsyncIterator[StreamEvent]:
        """
        Iterate over events in arrival order.

        Transport failures are delivered as ``error`` events or raised from
        the iterator; the iterator ends when the stream is closed.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """End delivery and release the underlying connection."""
        ...


class IMetadataStreamFactory(ABC):
    """Abstract factory opening metadata streams by agent id."""

    @abstractmethod
    async def open_stream(self, agent_id: str) -> IMetadataStream:
        ...
