"""Server-sent events transport for agent metadata streams."""

import asyncio
from contextlib import suppress
from typing import AsyncIterator, Dict, List, Optional

import httpx

from agentmeta.interfaces import ERROR_EVENT, IMetadataStream, IMetadataStreamFactory, StreamEvent
from agentmeta.logging import get_logger
from agentmeta.settings import AgentMetadataSettings, metadata_settings

logger = get_logger(__name__)

__all__ = [
    "SESSION_TOKEN_HEADER",
    "SseMetadataStream",
    "SseMetadataStreamFactory",
    "iter_sse_events",
]

SESSION_TOKEN_HEADER = "Coder-Session-Token"
DEFAULT_EVENT_TYPE = "message"

# Client errors that will not go away by reconnecting
RETRYABLE_CLIENT_STATUSES = {408, 429}


async def iter_sse_events(lines: AsyncIterator[str]) -> AsyncIterator[StreamEvent]:
    """
    Parse server-sent event lines into StreamEvent objects.

    Supports the ``event`` and ``data`` fields and comment lines. Multiple
    ``data`` lines of one event are joined with newlines. An event is
    dispatched on a blank line, or at the end of input, when it has data.
    """
    event_type = DEFAULT_EVENT_TYPE
    data_lines: List[str] = []

    async for line in lines:
        line = line.rstrip("\r\n")
        if not line:
            if data_lines:
                yield StreamEvent(type=event_type, data="\n".join(data_lines))
            event_type = DEFAULT_EVENT_TYPE
            data_lines = []
            continue

        if line.startswith(":"):
            continue

        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]

        if name == "event":
            event_type = value or DEFAULT_EVENT_TYPE
        elif name == "data":
            data_lines.append(value)

    if data_lines:
        yield StreamEvent(type=event_type, data="\n".join(data_lines))


class SseMetadataStream(IMetadataStream):
    """
    Event stream for a single agent read over HTTP.

    The connection is re-established after ``reconnect_delay`` seconds when
    it fails or ends. Each failure is delivered as an ``error`` event. Client
    errors other than timeouts and rate limiting end the stream.
    """

    def __init__(
            self,
            url: str,
            client: httpx.AsyncClient,
            headers: Optional[Dict[str, str]] = None,
            reconnect_delay: float = 5.0,
            owns_client: bool = False,
    ):
        """
        Args:
            url: Event stream URL
            client: HTTP client used for the streaming request
            headers: Extra request headers
            reconnect_delay: Delay before reconnecting (seconds)
            owns_client: Close ``client`` together with the stream
        """
        self.url = url
        self.headers = {"Accept": "text/event-stream", **(headers or {})}
        self.reconnect_delay = reconnect_delay
        self._client = client
        self._owns_client = owns_client
        self._shutdown_event = asyncio.Event()

    @property
    def is_closed(self) -> bool:
        return self._shutdown_event.is_set()

    async def events(self) -> AsyncIterator[StreamEvent]:
        while not self._shutdown_event.is_set():
            try:
                async with self._client.stream("GET", self.url, headers=self.headers) as response:
                    if response.status_code != httpx.codes.OK:
                        body = (await response.aread()).decode("utf-8", errors="replace")
                        yield StreamEvent(
                            type=ERROR_EVENT,
                            data=f"HTTP {response.status_code}: {body[:200]}"
                        )
                        if _is_fatal_status(response.status_code):
                            logger.error("Metadata stream refused with status %s, giving up", response.status_code)
                            return
                    else:
                        logger.debug("Connected to %s", self.url)
                        async for event in iter_sse_events(response.aiter_lines()):
                            yield event
            except httpx.HTTPError as ex:
                yield StreamEvent(type=ERROR_EVENT, data=f"{type(ex).__name__}: {ex}")

            if self._shutdown_event.is_set():
                break

            logger.info("Reconnecting metadata stream in %s seconds...", self.reconnect_delay)
            with suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._shutdown_event.wait(), timeout=self.reconnect_delay)

    async def close(self) -> None:
        self._shutdown_event.set()
        if self._owns_client:
            await self._client.aclose()


class SseMetadataStreamFactory(IMetadataStreamFactory):
    """Factory opening authenticated metadata event streams."""

    def __init__(
            self,
            settings: Optional[AgentMetadataSettings] = None,
            client: Optional[httpx.AsyncClient] = None,
            token_header: str = SESSION_TOKEN_HEADER,
    ):
        """
        Initialize the factory.

        Args:
            settings: Connection settings. Defaults to the environment settings.
            client: Shared HTTP client. Each stream creates its own when omitted.
            token_header: Header carrying the session token
        """
        self.settings = settings or metadata_settings
        self.client = client
        self.token_header = token_header

    async def open_stream(self, agent_id: str) -> SseMetadataStream:
        headers = {}
        if self.settings.session_token:
            headers[self.token_header] = self.settings.session_token

        client = self.client
        owns_client = client is None
        if owns_client:
            client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.request_timeout, read=None)
            )

        return SseMetadataStream(
            url=self.settings.watch_metadata_url(agent_id),
            client=client,
            headers=headers,
            reconnect_delay=self.settings.reconnect_delay,
            owns_client=owns_client,
        )


def _is_fatal_status(status_code: int) -> bool:
    return 400 <= status_code < 500 and status_code not in RETRYABLE_CLIENT_STATUSES
