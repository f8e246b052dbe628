from agentmeta.logging.handlers.stream import LogStreamFormatter
from agentmeta.utils.text import COLOR_CODES, colorize_text


def test_colorize_text_wraps_in_color_and_reset() -> None:
    assert colorize_text("42%", "bright_green") == "\033[92m42%\033[0m"


def test_colorize_text_unknown_color_is_plain() -> None:
    assert colorize_text("42%", "purple") == "42%\033[0m"


def test_every_log_level_color_is_defined() -> None:
    assert set(LogStreamFormatter.COLOR_ALIASES.values()) <= set(COLOR_CODES)


def test_every_tone_color_is_defined() -> None:
    from agentmeta.cli.render import TONE_COLORS

    assert set(TONE_COLORS.values()) <= set(COLOR_CODES)
