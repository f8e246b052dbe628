"""
Pydantic models for agent metadata as reported on the watch stream.
"""
from datetime import datetime
from typing import Dict, Iterator, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, RootModel

__all__ = [
    "MetadataDescription",
    "MetadataResult",
    "MetadataItem",
    "MetadataSnapshot",
]


class MetadataBaseModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class MetadataDescription(MetadataBaseModel):
    """Server-declared collection policy for one metadata item"""
    key: str = Field(
        description="Unique identifier within one agent's metadata set"
    )
    display_name: str = Field(
        description="Human readable label"
    )
    script: str = Field(
        default="",
        description="Command used by the agent to collect the value"
    )
    interval: float = Field(
        ge=0,
        description="Nominal seconds between collections"
    )
    timeout: float = Field(
        ge=0,
        description="Maximum seconds a collection may take"
    )


class MetadataResult(MetadataBaseModel):
    """Last reported value of one metadata item"""
    value: str = Field(
        default="",
        description="Last reported content"
    )
    error: str = Field(
        default="",
        description="Error from the collection script, empty on success"
    )
    age: float = Field(
        ge=0,
        description="Seconds between collection and production of the snapshot"
    )
    collected_at: Optional[datetime] = Field(
        default=None,
        description="Server timestamp of the collection"
    )

    @property
    def failed(self) -> bool:
        return len(self.error) > 0


class MetadataItem(MetadataBaseModel):
    description: MetadataDescription
    result: MetadataResult

    @property
    def key(self) -> str:
        return self.description.key


class MetadataSnapshot(RootModel[Tuple[MetadataItem, ...]]):
    """
    Complete set of metadata items as of one stream message.

    Items keep the server order. Duplicate keys are allowed; ``by_key``
    lets the last item at a key win.
    """
    root: Tuple[MetadataItem, ...] = ()

    model_config = ConfigDict(frozen=True)

    def __iter__(self) -> Iterator[MetadataItem]:
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def __getitem__(self, index: int) -> MetadataItem:
        return self.root[index]

    @property
    def is_empty(self) -> bool:
        return len(self.root) == 0

    def keys(self) -> Tuple[str, ...]:
        return tuple(item.key for item in self.root)

    def by_key(self) -> Dict[str, MetadataItem]:
        return {item.key: item for item in self.root}
