import asyncio
import time
from contextlib import suppress
from typing import AsyncIterator, Callable, Optional, Set

from agentmeta.cache import MetadataCache
from agentmeta.exceptions import SubscriptionStateError, TransportError
from agentmeta.interfaces import IMetadataStreamFactory
from agentmeta.logging import get_logger
from agentmeta.projection import MetadataView, ViewProjection
from agentmeta.settings import metadata_settings
from agentmeta.subscription import MetadataSubscription
from agentmeta.types import MetadataSnapshot

logger = get_logger(__name__)

__all__ = [
    "MetadataWatcher",
]


class MetadataWatcher:
    """
    Keeps the metadata view of whichever agent is currently selected.

    The watcher owns at most one subscription. Switching agents closes the
    previous subscription before the next one is opened, and every
    subscription fills its own cache, so data of a previous agent is never
    projected against the new one.

    ``views()`` yields a fresh projection whenever a snapshot arrives and at
    least every ``refresh_interval`` seconds, with the local time elapsed
    since receipt added to each item's age. Items therefore turn stale while
    the stream is silent.
    """

    def __init__(
            self,
            stream_factory: IMetadataStreamFactory,
            projection: Optional[ViewProjection] = None,
            refresh_interval: Optional[float] = None,
            on_error: Optional[Callable[[TransportError], None]] = None,
            clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the watcher.

        Args:
            stream_factory: Factory passed to every subscription
            projection: Projection used for views. Defaults to the standard policy.
            refresh_interval: Seconds between re-evaluations. Defaults to settings.
            on_error: Called with stream failures of the current agent
            clock: Monotonic clock shared with the subscription caches
        """
        self._stream_factory = stream_factory
        self.projection = projection or ViewProjection()
        if refresh_interval is None:
            refresh_interval = metadata_settings.refresh_interval
        if refresh_interval <= 0:
            raise ValueError("refresh_interval must be positive")
        self.refresh_interval = refresh_interval
        self._on_error = on_error
        self._clock = clock

        self._subscription: Optional[MetadataSubscription] = None
        self._lock = asyncio.Lock()
        self._waiters: Set[asyncio.Event] = set()
        self._closed = False
        self.last_error: Optional[TransportError] = None

    @property
    def agent_id(self) -> Optional[str]:
        return self._subscription.agent_id if self._subscription else None

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def watch(self, agent_id: str) -> MetadataSubscription:
        """
        Switch to the given agent.

        Watching the agent that is already watched keeps the current
        subscription. Otherwise the current subscription is closed first.

        Raises:
            SubscriptionStateError: If the watcher was closed
            TransportError: If the new stream could not be opened
        """
        async with self._lock:
            if self._closed:
                raise SubscriptionStateError("Watcher is closed")

            current = self._subscription
            if current is not None and current.agent_id == agent_id and current.is_active:
                return current

            await self._release()
            self.last_error = None

            subscription = self._create_subscription(agent_id)
            await subscription.open()
            self._subscription = subscription
            logger.info("Watching metadata of agent %s", agent_id)
            return subscription

    async def unwatch(self) -> None:
        """Close the current subscription, keeping the watcher usable."""
        async with self._lock:
            await self._release()

    async def close(self) -> None:
        async with self._lock:
            if self._closed:
                return
            self._closed = True
            await self._release()

    async def __aenter__(self) -> "MetadataWatcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def current(self) -> Optional[MetadataSnapshot]:
        if self._subscription is None:
            return None
        return self._subscription.current()

    def view(self, now: Optional[float] = None) -> MetadataView:
        """Project the current agent's snapshot as of ``now`` (clock reading)."""
        subscription = self._subscription
        if subscription is None:
            return self.projection.project(None)

        cache = subscription.cache
        return self.projection.project(cache.current(), now_offset=cache.age_offset(now))

    async def views(self) -> AsyncIterator[MetadataView]:
        """
        Yield views on every update and refresh tick until the watcher is closed.

        Each iterator waits on its own event, so several consumers can follow
        the same watcher.
        """
        changed = asyncio.Event()
        self._waiters.add(changed)
        try:
            while not self._closed:
                changed.clear()
                yield self.view()
                with suppress(asyncio.TimeoutError):
                    await asyncio.wait_for(changed.wait(), timeout=self.refresh_interval)
        finally:
            self._waiters.discard(changed)

    def _notify(self) -> None:
        for waiter in self._waiters:
            waiter.set()

    async def _release(self) -> None:
        previous, self._subscription = self._subscription, None
        if previous is not None:
            await previous.close()
            logger.info("Stopped watching metadata of agent %s", previous.agent_id)
        self._notify()

    def _create_subscription(self, agent_id: str) -> MetadataSubscription:
        subscription: Optional[MetadataSubscription] = None

        def handle_update(snapshot: MetadataSnapshot) -> None:
            if subscription is self._subscription:
                self._notify()

        def handle_error(error: TransportError) -> None:
            if subscription is not self._subscription:
                return
            self.last_error = error
            self._notify()
            if self._on_error is None:
                logger.error("%s", error)
            else:
                self._on_error(error)

        subscription = MetadataSubscription(
            agent_id=agent_id,
            stream_factory=self._stream_factory,
            on_update=handle_update,
            on_error=handle_error,
            cache=MetadataCache(clock=self._clock),
        )
        return subscription
