from contextvars import ContextVar
from typing import Optional

__all__ = [
    "agent_id_var",
    "set_agent_id",
    "get_agent_id",
]

agent_id_var: ContextVar[Optional[str]] = ContextVar("agentmeta_agent_id", default=None)


def set_agent_id(agent_id: Optional[str]) -> None:
    """
    Bind an agent id to the current execution context.

    Each asyncio task runs in a copy of the context, so a reader task that
    calls this does not leak its agent id into the caller.
    """
    agent_id_var.set(agent_id)


def get_agent_id() -> Optional[str]:
    return agent_id_var.get()
