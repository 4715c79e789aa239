"""A2A (agent-to-agent) request, response and stream event schemas.

These mirror the JSON payloads exchanged with A2A clients: camelCase on the
wire, snake_case in Python. Request validation (non-empty task, recursion
limit, temperature range) happens here so invalid requests never reach the
registry or the tracker.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, field_validator

from .base import BaseSchema


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class A2AErrorCode(str, Enum):
    INVALID_REQUEST = "invalid_request"
    AGENT_NOT_FOUND = "agent_not_found"
    EXECUTION_FAILED = "execution_failed"
    TIMEOUT = "timeout"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    INTERNAL_ERROR = "internal_error"
    AUTHENTICATION_FAILED = "authentication_failed"
    PERMISSION_DENIED = "permission_denied"


class A2AStreamEventType(str, Enum):
    START = "start"
    MESSAGE = "message"
    STATE_UPDATE = "state_update"
    ERROR = "error"
    CANCELLED = "cancelled"
    END = "end"


class A2ARequestConfig(BaseSchema):
    recursion_limit: Optional[int] = Field(None, ge=1, description="Maximum number of agent reasoning steps")
    streaming: bool = Field(default=False, description="Whether the client asked for streaming")
    checkpoint_id: Optional[str] = Field(None, description="Resume from a specific checkpoint")
    thread_id: Optional[str] = Field(None, description="Thread ID for conversation continuity")
    model: Optional[str] = Field(None, description="Model override for this request")
    temperature: Optional[float] = Field(None, ge=0, le=2, description="Temperature for LLM generation")


class A2ARequest(BaseSchema):
    """A task sent to an agent."""

    task: str = Field(..., min_length=1, description="The task or query for the agent to perform")
    context: Dict[str, Any] = Field(default_factory=dict, description="Additional context for the agent")
    config: A2ARequestConfig = Field(default_factory=A2ARequestConfig)

    @field_validator("task")
    @classmethod
    def _task_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("task must be a non-empty string")
        return value


class A2AMessage(BaseSchema):
    role: Literal["user", "assistant", "system", "tool"]
    content: str
    name: Optional[str] = None


class A2AResult(BaseSchema):
    messages: List[A2AMessage] = Field(default_factory=list)
    state: Dict[str, Any] = Field(default_factory=dict, description="Remaining graph state values")


class A2AError(BaseSchema):
    code: A2AErrorCode
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class A2AMetadata(BaseSchema):
    execution_time_ms: float
    agent_id: str
    started_at: datetime
    completed_at: datetime
    execution_id: Optional[str] = None
    thread_id: Optional[str] = None
    checkpoint_id: Optional[str] = None


class A2AResponse(BaseSchema):
    status: Literal["success", "error", "cancelled"]
    result: Optional[A2AResult] = None
    error: Optional[A2AError] = None
    metadata: A2AMetadata


class A2AStreamEvent(BaseSchema):
    type: A2AStreamEventType
    data: Any = None
    timestamp: datetime = Field(default_factory=_utc_now)
