"""Render-ready view of a metadata snapshot.

The projection is recomputed for every render. Stale items are shown as
pending regardless of their error field, because that error may be stale
information too.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from agentmeta.staleness import StalenessPolicy, default_policy
from agentmeta.types import MetadataItem, MetadataSnapshot

__all__ = [
    "ViewState",
    "ItemState",
    "Tone",
    "ProjectedItem",
    "MetadataView",
    "ViewProjection",
]


class ViewState(str, Enum):
    LOADING = "loading"
    EMPTY = "empty"
    READY = "ready"


class ItemState(str, Enum):
    STALE = "stale"
    SUCCESS = "success"
    SCRIPT_ERROR = "script_error"


class Tone(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


ITEM_TONES = {
    ItemState.STALE: Tone.PENDING,
    ItemState.SUCCESS: Tone.SUCCESS,
    ItemState.SCRIPT_ERROR: Tone.ERROR,
}


@dataclass(frozen=True)
class ProjectedItem:
    """
    One metadata item ready for display.

    Attributes:
        key: Item key
        label: Display name
        state: Classification of the item
        value: Reported value, None while stale
        error: Script error message, None unless state is SCRIPT_ERROR
        script: Command collecting the value
        age: Effective age in seconds, including local time since receipt
        updates_in: Seconds until the next expected report, never negative
        stale_threshold: Age in seconds after which the item is stale
    """
    key: str
    label: str
    state: ItemState
    value: Optional[str]
    error: Optional[str]
    script: str
    age: float
    updates_in: float
    stale_threshold: float

    @property
    def tone(self) -> Tone:
        return ITEM_TONES[self.state]

    @property
    def is_stale(self) -> bool:
        return self.state is ItemState.STALE


@dataclass(frozen=True)
class MetadataView:
    state: ViewState
    items: Tuple[ProjectedItem, ...] = field(default_factory=tuple)

    @property
    def is_loading(self) -> bool:
        return self.state is ViewState.LOADING

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


class ViewProjection:
    """Derives MetadataView instances from cached snapshots."""

    def __init__(self, policy: Optional[StalenessPolicy] = None):
        self.policy = policy or default_policy

    def project(self, snapshot: Optional[MetadataSnapshot], now_offset: float = 0) -> MetadataView:
        """
        Project a snapshot for display.

        Args:
            snapshot: Cached snapshot, None while nothing was received
            now_offset: Seconds elapsed locally since the snapshot was received

        Returns:
            LOADING view for None, EMPTY view for zero items, READY otherwise
        """
        if snapshot is None:
            return MetadataView(state=ViewState.LOADING)
        if snapshot.is_empty:
            return MetadataView(state=ViewState.EMPTY)

        return MetadataView(
            state=ViewState.READY,
            items=tuple(self.project_item(item, now_offset) for item in snapshot)
        )

    def project_item(self, item: MetadataItem, now_offset: float = 0) -> ProjectedItem:
        description, result = item.description, item.result

        if self.policy.is_stale(description, result, now_offset):
            state = ItemState.STALE
        elif result.failed:
            state = ItemState.SCRIPT_ERROR
        else:
            state = ItemState.SUCCESS

        return ProjectedItem(
            key=description.key,
            label=description.display_name,
            state=state,
            value=None if state is ItemState.STALE else result.value,
            error=result.error if state is ItemState.SCRIPT_ERROR else None,
            script=description.script,
            age=result.age + now_offset,
            updates_in=self.policy.updates_in(description, result, now_offset),
            stale_threshold=self.policy.stale_threshold(description),
        )
