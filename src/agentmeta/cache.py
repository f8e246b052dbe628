import time
from typing import Callable, Optional

from agentmeta.types import MetadataSnapshot

__all__ = [
    "MetadataCache",
]


class MetadataCache:
    """
    Holds the latest metadata snapshot of one subscription.

    ``current()`` is None until the first ``replace``; an empty snapshot is
    a populated state. Every ``replace`` swaps the whole snapshot, nothing is
    merged with the previous one.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._snapshot: Optional[MetadataSnapshot] = None
        self._received_at: Optional[float] = None

    def replace(self, snapshot: MetadataSnapshot) -> None:
        self._snapshot = snapshot
        self._received_at = self._clock()

    def current(self) -> Optional[MetadataSnapshot]:
        return self._snapshot

    def clear(self) -> None:
        """Return to the uninitialized state."""
        self._snapshot = None
        self._received_at = None

    @property
    def is_populated(self) -> bool:
        return self._snapshot is not None

    @property
    def received_at(self) -> Optional[float]:
        """Clock reading taken when the current snapshot was stored."""
        return self._received_at

    def age_offset(self, now: Optional[float] = None) -> float:
        """
        Seconds elapsed since the current snapshot was stored.

        Args:
            now: Clock reading to measure against. Defaults to the cache clock.

        Returns:
            Elapsed seconds, 0 when the cache is not populated
        """
        if self._received_at is None:
            return 0.0
        now = self._clock() if now is None else now
        return max(now - self._received_at, 0.0)
