from typing import Literal

__all__ = [
    "colorize_text",
]

ColorName = Literal["red", "bright_red", "orange", "yellow", "bright_green", "light_grey", "bright_grey", "reset"]

COLOR_CODES = {
    "red": "\033[31m",
    "bright_red": "\033[91m",
    "orange": "\033[38;5;208m",
    "yellow": "\033[33m",
    "bright_green": "\033[92m",
    "light_grey": "\033[37m",
    "bright_grey": "\033[97m",
    "reset": "\033[0m",
}


def colorize_text(text: str, color: ColorName = "reset") -> str:
    """Wrap ``text`` in the ANSI code of ``color``. Unknown colors leave the text plain."""
    prefix = COLOR_CODES.get(color, "")
    return f"{prefix}{text}{COLOR_CODES['reset']}"
