import json
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple, Union

from pydantic import ValidationError

from agentmeta.exceptions import DecodeError, MalformedSnapshotError
from agentmeta.logging import get_logger
from agentmeta.types import MetadataItem, MetadataSnapshot

logger = get_logger(__name__)

__all__ = [
    "DecodeResult",
    "decode_snapshot",
]

REQUIRED_ITEM_FIELDS = ("description", "result")


@dataclass(frozen=True)
class DecodeResult:
    """
    Outcome of decoding one stream frame.

    Attributes:
        snapshot: Snapshot built from the valid items, in server order
        rejected: Errors for the items that were dropped or carried over
        carried: Number of rejected items replaced by their previous value
    """
    snapshot: MetadataSnapshot
    rejected: Tuple[MalformedSnapshotError, ...] = field(default_factory=tuple)
    carried: int = 0

    @property
    def is_partial(self) -> bool:
        return len(self.rejected) > 0

    @property
    def is_rejected(self) -> bool:
        """True when the frame held items but none of them could be used."""
        return self.is_partial and self.snapshot.is_empty


def decode_snapshot(
        frame: Union[str, bytes],
        previous: Optional[MetadataSnapshot] = None
) -> DecodeResult:
    """
    Decode a ``data`` frame into a metadata snapshot.

    The frame must hold a JSON array. Items missing their description or
    result, or failing validation, are reported in ``DecodeResult.rejected``.
    When ``previous`` holds an item with the same key, that item takes the
    rejected item's place; otherwise the rejected item is dropped.

    Args:
        frame: UTF-8 JSON text, as str or raw bytes
        previous: Snapshot currently displayed, if any

    Returns:
        DecodeResult with the snapshot and rejected items

    Raises:
        DecodeError: If the frame is not valid UTF-8 JSON or not an array
    """
    text = _frame_text(frame)

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as ex:
        raise DecodeError(f"Frame is not valid JSON: {ex}", frame=text) from ex

    if not isinstance(payload, list):
        raise DecodeError(
            f"Frame must be a JSON array of metadata items, got {type(payload).__name__}",
            frame=text
        )

    known = previous.by_key() if previous is not None else {}
    items: List[MetadataItem] = []
    rejected: List[MalformedSnapshotError] = []
    carried = 0
    for index, raw_item in enumerate(payload):
        try:
            items.append(_decode_item(index, raw_item))
        except MalformedSnapshotError as ex:
            rejected.append(ex)
            if isinstance(ex.key, str) and ex.key in known:
                logger.warning("Keeping previous value of metadata item #%s: %s", index, ex)
                items.append(known[ex.key])
                carried += 1
            else:
                logger.warning("Dropping metadata item #%s: %s", index, ex)

    return DecodeResult(
        snapshot=MetadataSnapshot(tuple(items)),
        rejected=tuple(rejected),
        carried=carried
    )


def _frame_text(frame: Union[str, bytes]) -> str:
    if isinstance(frame, (bytes, bytearray)):
        try:
            return bytes(frame).decode("utf-8")
        except UnicodeDecodeError as ex:
            raise DecodeError(f"Frame is not valid UTF-8: {ex}") from ex
    if not isinstance(frame, str):
        raise DecodeError(f"Unsupported frame type: {type(frame).__name__}")
    return frame


def _decode_item(index: int, raw_item: Any) -> MetadataItem:
    if not isinstance(raw_item, dict):
        raise MalformedSnapshotError(
            f"Metadata item must be an object, got {type(raw_item).__name__}",
            index=index
        )

    key = _item_key(raw_item)
    for name in REQUIRED_ITEM_FIELDS:
        if raw_item.get(name) is None:
            raise MalformedSnapshotError(f"Metadata item {name} is undefined", index=index, key=key)

    try:
        return MetadataItem.model_validate(raw_item)
    except ValidationError as ex:
        raise MalformedSnapshotError(
            f"Metadata item failed validation: {ex.error_count()} error(s)",
            index=index,
            key=key
        ) from ex


def _item_key(raw_item: dict) -> Any:
    description = raw_item.get("description")
    if isinstance(description, dict):
        return description.get("key")
    return None
