import logging
from typing import Optional


class MetadataLogRecord(logging.LogRecord):
    """
    LogRecord that captures the agent whose stream is being processed.

    The agent id is read from ``agentmeta.context`` when the record is
    created, so messages emitted by a subscription's reader task carry the
    id without passing it through every call.
    """
    agent_id: Optional[str]

    def __init__(self, *args, **kwargs):
        from agentmeta.context import get_agent_id

        super().__init__(*args, **kwargs)
        self.agent_id = get_agent_id()


class MetadataLogger(logging.Logger):
    """Logger that creates MetadataLogRecord instances."""

    def makeRecord(self, name, level, fn, lno, msg, args, exc_info,
                   func=None, extra=None, sinfo=None) -> MetadataLogRecord:
        rv = MetadataLogRecord(
            name, level, fn, lno, msg,
            args, exc_info, func, sinfo
        )
        if extra is not None:
            for key in extra:
                if (key in ["message", "asctime"]) or (key in rv.__dict__):
                    raise KeyError("Attempt to overwrite %r in MetadataLogRecord" % key)
                rv.__dict__[key] = extra[key]
        return rv
