import logging
from datetime import datetime

from agentmeta.utils.text import colorize_text


class LogStreamFormatter(logging.Formatter):
    """
    Basic formatter for stream output with standard format. Adds colors to log messages based on level
    """
    COLOR_ALIASES = {
        "DEBUG": "light_grey",
        "INFO": "bright_grey",
        "WARNING": "orange",
        "ERROR": "red",
        "CRITICAL": "bright_red",
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S,%f')[:-3]

        agent_id = getattr(record, "agent_id", None)
        if agent_id:
            formatted_message = f"{timestamp} - {record.levelname} - {record.name} - Agent [{agent_id}] - {record.getMessage()}"
        else:
            formatted_message = f"{timestamp} - {record.levelname} - {record.name} - {record.getMessage()}"

        if record.exc_info:
            formatted_message = f"{formatted_message}\n{self.formatException(record.exc_info)}"

        if not self.use_colors:
            return formatted_message
        return self._colorize(record.levelname, formatted_message)

    def _colorize(self, level: str, message: str) -> str:
        color_alias = self.COLOR_ALIASES.get(level, self.COLOR_ALIASES["INFO"])
        return colorize_text(text=message, color=color_alias)


class LogStreamHandler(logging.StreamHandler):
    """
    StreamHandler that includes the current agent id in log output
    """

    def __init__(self, stream=None, use_colors: bool = True):
        super().__init__(stream)
        self.setFormatter(LogStreamFormatter(use_colors=use_colors))
