from .metadata import (
    MetadataDescription,
    MetadataResult,
    MetadataItem,
    MetadataSnapshot,
)

__all__ = [
    "MetadataDescription",
    "MetadataResult",
    "MetadataItem",
    "MetadataSnapshot",
]
