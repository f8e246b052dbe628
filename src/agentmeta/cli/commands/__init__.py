from .watch import show, watch

__all__ = [
    "show",
    "watch",
]
