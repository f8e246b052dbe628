from typing import List

from agentmeta.projection import MetadataView, ProjectedItem, Tone, ViewState
from agentmeta.utils.text import colorize_text

__all__ = [
    "render_view",
    "render_item",
    "format_seconds",
]

TONE_COLORS = {
    Tone.PENDING: "yellow",
    Tone.SUCCESS: "bright_green",
    Tone.ERROR: "red",
}

PENDING_MARK = "..."


def format_seconds(seconds: float) -> str:
    """Compact duration such as ``45s``, ``3m`` or ``2h``."""
    seconds = int(max(seconds, 0))
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m"
    return f"{seconds // 3600}h"


def render_item(item: ProjectedItem, use_colors: bool = True) -> str:
    value = PENDING_MARK if item.is_stale else (item.value or "")
    if use_colors:
        value = colorize_text(value, TONE_COLORS[item.tone])

    line = (
        f"{item.label}: {value}"
        f"  (collected {format_seconds(item.age)} ago, updates in {format_seconds(item.updates_in)})"
    )
    if item.is_stale:
        line += f"\n    stale: no new value in {format_seconds(item.age)}"
    elif item.error:
        line += f"\n    error: {item.error}"
    return line


def render_view(view: MetadataView, use_colors: bool = True) -> str:
    if view.state is ViewState.LOADING:
        return "Waiting for metadata..."
    if view.state is ViewState.EMPTY:
        return "No metadata reported by this agent."

    lines: List[str] = [render_item(item, use_colors) for item in view.items]
    return "\n".join(lines)
