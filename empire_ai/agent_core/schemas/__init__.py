from .a2a import (
    A2AError,
    A2AErrorCode,
    A2AMessage,
    A2AMetadata,
    A2ARequest,
    A2ARequestConfig,
    A2AResponse,
    A2AResult,
    A2AStreamEvent,
    A2AStreamEventType,
)
from .base import BaseSchema

__all__ = [
    "A2AError",
    "A2AErrorCode",
    "A2AMessage",
    "A2AMetadata",
    "A2ARequest",
    "A2ARequestConfig",
    "A2AResponse",
    "A2AResult",
    "A2AStreamEvent",
    "A2AStreamEventType",
    "BaseSchema",
]
