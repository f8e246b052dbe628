from .text import colorize_text

__all__ = [
    "colorize_text",
]
