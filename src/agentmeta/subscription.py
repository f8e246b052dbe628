import asyncio
from contextlib import suppress
from enum import Enum
from typing import Callable, Optional

from agentmeta.cache import MetadataCache
from agentmeta.context import set_agent_id
from agentmeta.decoder import decode_snapshot
from agentmeta.exceptions import DecodeError, SubscriptionStateError, TransportError
from agentmeta.interfaces import DATA_EVENT, ERROR_EVENT, IMetadataStream, IMetadataStreamFactory, StreamEvent
from agentmeta.logging import get_logger
from agentmeta.types import MetadataSnapshot

logger = get_logger(__name__)

__all__ = [
    "SubscriptionState",
    "MetadataSubscription",
]

UpdateCallback = Callable[[MetadataSnapshot], None]
ErrorCallback = Callable[[TransportError], None]


class SubscriptionState(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    CLOSED = "closed"


class MetadataSubscription:
    """
    Binds a metadata cache to the stream of a single agent.

    The stream is acquired from the injected factory on ``open`` and read by
    one background task that applies ``data`` frames to the cache in arrival
    order. Undecodable frames, and frames none of whose items are valid, are
    logged and dropped, keeping the previous snapshot. A malformed item whose
    key was already shown keeps its previous value. Stream failures go to
    ``on_error`` without closing the subscription; the stream owns
    reconnection. Exceptions raised by either callback are logged and the
    reader keeps going.

    A subscription is acquired once. Use it as an async context manager, or
    pair ``open`` with ``close`` in a try/finally block.
    """

    def __init__(
            self,
            agent_id: str,
            stream_factory: IMetadataStreamFactory,
            on_update: Optional[UpdateCallback] = None,
            on_error: Optional[ErrorCallback] = None,
            cache: Optional[MetadataCache] = None,
    ):
        """
        Initialize a subscription with injected dependencies.

        Args:
            agent_id: Identifier of the agent whose metadata is watched
            stream_factory: Factory opening the agent's event stream
            on_update: Called with every snapshot stored in the cache
            on_error: Called with stream failures. Failures are logged when omitted.
            cache: Cache to populate. A fresh cache is created when omitted.
        """
        if not agent_id:
            raise ValueError("agent_id is required and cannot be None or empty")

        self.agent_id = agent_id
        self._stream_factory = stream_factory
        self._on_update = on_update
        self._on_error = on_error
        self._cache = cache or MetadataCache()

        self._state = SubscriptionState.PENDING
        self._stream: Optional[IMetadataStream] = None
        self._reader_task: Optional[asyncio.Task] = None

    @property
    def state(self) -> SubscriptionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is SubscriptionState.ACTIVE

    @property
    def cache(self) -> MetadataCache:
        return self._cache

    def current(self) -> Optional[MetadataSnapshot]:
        return self._cache.current()

    async def open(self) -> "MetadataSubscription":
        """
        Open the agent's stream and start reading it.

        Raises:
            SubscriptionStateError: If the subscription was already opened or closed
            TransportError: If the stream could not be opened
        """
        if self._state is not SubscriptionState.PENDING:
            raise SubscriptionStateError(
                f"Subscription for agent {self.agent_id} is {self._state.value}, it can only be opened once"
            )

        try:
            self._stream = await self._stream_factory.open_stream(self.agent_id)
        except Exception as ex:
            self._state = SubscriptionState.CLOSED
            logger.error("Failed to open metadata stream for agent %s: %s", self.agent_id, ex)
            raise TransportError(f"Failed to open metadata stream: {ex}", agent_id=self.agent_id) from ex

        self._state = SubscriptionState.ACTIVE
        self._reader_task = asyncio.create_task(
            self._read_loop(),
            name=f"agentmeta-reader-{self.agent_id}"
        )
        logger.debug("Metadata subscription opened for agent %s", self.agent_id)
        return self

    async def close(self) -> None:
        """
        Stop reading, close the stream and discard the cached snapshot.

        Safe to call more than once and before ``open``.
        """
        if self._state is SubscriptionState.CLOSED:
            return
        self._state = SubscriptionState.CLOSED

        task = self._reader_task
        if task and not task.done() and task is not asyncio.current_task():
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

        if self._stream is not None:
            try:
                await self._stream.close()
            except Exception as ex:
                logger.error("Failed to close metadata stream for agent %s: %s", self.agent_id, ex)
            self._stream = None

        self._cache.clear()
        logger.debug("Metadata subscription closed for agent %s", self.agent_id)

    async def __aenter__(self) -> "MetadataSubscription":
        return await self.open()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _read_loop(self) -> None:
        set_agent_id(self.agent_id)
        try:
            async for event in self._stream.events():
                if not self.is_active:
                    break
                self.handle_event(event)
        except asyncio.CancelledError:
            raise
        except Exception as ex:
            if self.is_active:
                self._report_error(TransportError(f"Metadata stream failed: {ex}", agent_id=self.agent_id))
        else:
            if self.is_active:
                logger.info("Metadata stream for agent %s ended", self.agent_id)

    def handle_event(self, event: StreamEvent) -> None:
        """Apply one stream event. Events arriving after close are dropped."""
        if not self.is_active:
            logger.debug("Dropping %s event received after close", event.type)
            return

        if event.type == DATA_EVENT:
            self._apply_frame(event.data)
        elif event.type == ERROR_EVENT:
            self._report_error(TransportError(
                f"Received error in watch stream: {_describe_payload(event.data)}",
                agent_id=self.agent_id
            ))
        else:
            logger.debug("Ignoring %s event", event.type)

    def _apply_frame(self, frame) -> None:
        try:
            result = decode_snapshot(frame, previous=self._cache.current())
        except DecodeError as ex:
            logger.warning("Dropping undecodable metadata frame: %s", ex)
            return

        if result.is_rejected:
            logger.warning(
                "Dropping metadata frame with no valid items (%s rejected), keeping previous snapshot",
                len(result.rejected)
            )
            return

        self._cache.replace(result.snapshot)
        if self._on_update is None:
            return
        try:
            self._on_update(result.snapshot)
        except Exception:
            logger.exception("Metadata update callback failed for agent %s", self.agent_id)

    def _report_error(self, error: TransportError) -> None:
        if self._on_error is None:
            logger.error("%s", error)
            return
        try:
            self._on_error(error)
        except Exception:
            logger.exception("Metadata error callback failed for agent %s", self.agent_id)


def _describe_payload(data) -> str:
    if isinstance(data, (bytes, bytearray)):
        data = bytes(data).decode("utf-8", errors="replace")
    return data or "no details"
