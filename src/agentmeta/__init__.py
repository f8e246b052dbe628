"""Staleness-aware client for agent metadata streams."""

from .cache import MetadataCache
from .decoder import DecodeResult, decode_snapshot
from .exceptions import (
    AgentMetadataException,
    ConfigurationError,
    DecodeError,
    MalformedSnapshotError,
    SubscriptionStateError,
    TransportError,
)
from .interfaces import IMetadataStream, IMetadataStreamFactory, StreamEvent
from .projection import ItemState, MetadataView, ProjectedItem, Tone, ViewProjection, ViewState
from .staleness import STALE_THRESHOLD_FLOOR, StalenessPolicy
from .subscription import MetadataSubscription, SubscriptionState
from .types import MetadataDescription, MetadataItem, MetadataResult, MetadataSnapshot
from .watcher import MetadataWatcher

__all__ = [
    "MetadataCache",
    "DecodeResult",
    "decode_snapshot",
    "AgentMetadataException",
    "ConfigurationError",
    "DecodeError",
    "MalformedSnapshotError",
    "SubscriptionStateError",
    "TransportError",
    "IMetadataStream",
    "IMetadataStreamFactory",
    "StreamEvent",
    "ItemState",
    "MetadataView",
    "ProjectedItem",
    "Tone",
    "ViewProjection",
    "ViewState",
    "STALE_THRESHOLD_FLOOR",
    "StalenessPolicy",
    "MetadataSubscription",
    "SubscriptionState",
    "MetadataDescription",
    "MetadataItem",
    "MetadataResult",
    "MetadataSnapshot",
    "MetadataWatcher",
]
