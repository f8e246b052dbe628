"""Test doubles and builders shared by the test suite."""

import asyncio
import json
from typing import Any, Dict, List, Optional

from agentmeta.interfaces import IMetadataStream, IMetadataStreamFactory, StreamEvent


def make_item(
        key: str = "cpu",
        display_name: Optional[str] = None,
        interval: float = 10,
        timeout: float = 5,
        value: str = "42%",
        error: str = "",
        age: float = 1,
        script: str = "echo value",
) -> Dict[str, Any]:
    """Build a raw metadata item as it appears on the wire."""
    return {
        "description": {
            "key": key,
            "display_name": display_name or key.upper(),
            "script": script,
            "interval": interval,
            "timeout": timeout,
        },
        "result": {
            "value": value,
            "error": error,
            "age": age,
            "collected_at": "2024-05-01T12:00:00Z",
        },
    }


def data_event(*items: Dict[str, Any]) -> StreamEvent:
    return StreamEvent(type="data", data=json.dumps(list(items)))


async def settle(rounds: int = 5) -> None:
    """Let background reader tasks process queued events."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeMetadataStream(IMetadataStream):
    """In-memory stream fed by tests."""

    _CLOSED = object()

    def __init__(self, agent_id: str, initial_events: Optional[List[StreamEvent]] = None):
        self.agent_id = agent_id
        self.closed = False
        self.close_calls = 0
        self._queue: asyncio.Queue = asyncio.Queue()
        for event in initial_events or []:
            self._queue.put_nowait(event)

    def push(self, event: StreamEvent) -> None:
        self._queue.put_nowait(event)

    def fail(self, error: Exception) -> None:
        self._queue.put_nowait(error)

    async def events(self):
        while True:
            event = await self._queue.get()
            if event is self._CLOSED:
                return
            if isinstance(event, Exception):
                raise event
            yield event

    async def close(self) -> None:
        self.closed = True
        self.close_calls += 1
        self._queue.put_nowait(self._CLOSED)


class FakeMetadataStreamFactory(IMetadataStreamFactory):
    """Factory recording every stream it opens."""

    def __init__(self, initial_events: Optional[Dict[str, List[StreamEvent]]] = None):
        self.initial_events = initial_events or {}
        self.streams: List[FakeMetadataStream] = []

    async def open_stream(self, agent_id: str) -> FakeMetadataStream:
        stream = FakeMetadataStream(agent_id, self.initial_events.get(agent_id))
        self.streams.append(stream)
        return stream

    def last(self, agent_id: Optional[str] = None) -> FakeMetadataStream:
        streams = [s for s in self.streams if agent_id is None or s.agent_id == agent_id]
        return streams[-1]


class FailingStreamFactory(IMetadataStreamFactory):
    async def open_stream(self, agent_id: str) -> IMetadataStream:
        raise ConnectionError("connection refused")


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
