from .sse import (
    SESSION_TOKEN_HEADER,
    SseMetadataStream,
    SseMetadataStreamFactory,
    iter_sse_events,
)

__all__ = [
    "SESSION_TOKEN_HEADER",
    "SseMetadataStream",
    "SseMetadataStreamFactory",
    "iter_sse_events",
]
