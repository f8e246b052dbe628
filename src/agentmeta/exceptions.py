from typing import Optional

__all__ = [
    "AgentMetadataException",
    "ConfigurationError",
    "DecodeError",
    "MalformedSnapshotError",
    "TransportError",
    "SubscriptionStateError",
]


class AgentMetadataException(Exception):
    """Base agent metadata exception"""
    pass


class ConfigurationError(AgentMetadataException):
    """Invalid settings with a readable message."""

    def __init__(self, message: str, details: Optional[str] = None):
        self.message = message
        self.details = details

        full_message = message
        if details:
            full_message += f"\nDetails: {details}"

        super().__init__(full_message)


class DecodeError(AgentMetadataException):
    """A stream frame could not be parsed into a metadata snapshot."""

    def __init__(self, message: str, frame: Optional[str] = None):
        self.frame = frame
        super().__init__(message)


class MalformedSnapshotError(AgentMetadataException):
    """A single snapshot item is missing its description or result."""

    def __init__(self, message: str, index: int, key: Optional[str] = None):
        self.index = index
        self.key = key
        super().__init__(message)


class TransportError(AgentMetadataException):
    """The metadata stream reported a failure."""

    def __init__(self, message: str, agent_id: Optional[str] = None):
        self.agent_id = agent_id
        super().__init__(message)


class SubscriptionStateError(AgentMetadataException):
    """Subscription lifecycle misuse"""
    pass
