"""
API Schemas.

This module contains Pydantic models used for API request bodies and response validation
beyond the A2A payloads themselves. Payloads use camelCase on the wire.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field

from empire_ai.agent_core.execution.models import ExecutionRecord
from empire_ai.agent_core.schemas.base import BaseSchema


class CancelRequest(BaseSchema):
    """
    Schema for cancelling a running execution.

    Exactly one identifier is needed; ``execution_id`` wins over ``thread_id``,
    which wins over ``checkpoint_id``.
    """

    execution_id: Optional[str] = Field(default=None, description="Execution to cancel.")
    thread_id: Optional[str] = Field(default=None, description="Cancel the latest execution of this thread.")
    checkpoint_id: Optional[str] = Field(default=None, description="Cancel the execution that produced this checkpoint.")

    model_config = ConfigDict(json_schema_extra={"example": {"executionId": "exec_1718000000000_1a2b3c4d"}})


class CancelResponse(BaseSchema):
    status: str = "cancelled"
    execution_id: str
    thread_id: str
    agent_id: str
    cancelled_at: Optional[datetime] = None


class ExecutionProgressView(BaseSchema):
    current_step: Optional[str] = None
    steps_completed: int = 0
    total_steps: Optional[int] = None


class ExecutionSummary(BaseSchema):
    """Public view of an execution record."""

    id: str
    agent_id: str
    thread_id: str
    checkpoint_id: Optional[str] = None
    status: str
    task: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
    progress: ExecutionProgressView = Field(default_factory=ExecutionProgressView)

    @classmethod
    def from_record(cls, record: ExecutionRecord) -> "ExecutionSummary":
        return cls(
            id=record.id,
            agent_id=record.agent_id,
            thread_id=record.thread_id,
            checkpoint_id=record.checkpoint_id,
            status=record.status.value,
            task=record.request.task,
            started_at=record.started_at,
            completed_at=record.completed_at,
            error=record.error,
            error_kind=record.error_kind.value if record.error_kind else None,
            progress=ExecutionProgressView(**record.progress.model_dump()),
        )


class ExecutionList(BaseSchema):
    agent_id: str
    executions: List[ExecutionSummary] = Field(default_factory=list)


class ExecutionLogView(BaseSchema):
    execution_id: str
    level: str
    message: str
    source: str
    timestamp: datetime


class ExecutionLogList(BaseSchema):
    agent_id: str
    logs: List[ExecutionLogView] = Field(default_factory=list)


class A2AStatus(BaseSchema):
    status: str = "ok"
    agents: List[str] = Field(default_factory=list)
    registered_agents: int = 0
    available_providers: List[str] = Field(default_factory=list)
    agent_providers: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    cache: Dict[str, Any] = Field(default_factory=dict)
    executions: Dict[str, Any] = Field(default_factory=dict)
