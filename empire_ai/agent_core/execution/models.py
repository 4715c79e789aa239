"""Execution records and the cancellation token they own.

An ``ExecutionRecord`` is created ``running`` and moves exactly once to one of
the terminal statuses ``completed``, ``failed`` or ``cancelled``. The record's
``CancellationToken`` is the cooperative cancellation channel between the
tracker (which triggers it) and the invocation (which waits on it).
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..errors import ErrorKind
from ..schemas.a2a import A2ARequest


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ExecutionStatus(str, Enum):
    running = "running"
    completed = "completed"
    failed = "failed"
    cancelled = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not ExecutionStatus.running


class CancellationToken:
    """One-shot cancellation signal.

    Triggering is idempotent. Work observes the token either by polling
    ``is_cancelled`` between steps or by awaiting ``wait()``.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancelled})"


class ExecutionProgress(BaseModel):
    current_step: Optional[str] = None
    steps_completed: int = 0
    total_steps: Optional[int] = None


class ExecutionRecord(BaseModel):
    """Bookkeeping for one agent invocation.

    Attributes:
        id: Tracker-generated identifier (``exec_<millis>_<hex>``).
        agent_id: Agent that handles the invocation.
        thread_id: Conversation thread the invocation belongs to.
        checkpoint_id: Latest known checkpoint, often only known at completion.
        status: Current lifecycle status.
        request: The A2A request that started the invocation.
        started_at: Creation time.
        completed_at: Time of the terminal transition.
        error: Failure message for ``failed`` records.
        error_kind: Failure classification (``timeout`` distinguishes budget overruns).
        progress: Incrementally updated step counters.
        cancellation: Cancellation token owned by this record.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str
    agent_id: str
    thread_id: str
    checkpoint_id: Optional[str] = None
    status: ExecutionStatus = ExecutionStatus.running
    request: A2ARequest
    started_at: datetime = Field(default_factory=_utc_now)
    completed_at: Optional[datetime] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    progress: ExecutionProgress = Field(default_factory=ExecutionProgress)
    cancellation: CancellationToken = Field(default_factory=CancellationToken, exclude=True)


class ExecutionStats(BaseModel):
    total: int = 0
    running: int = 0
    completed: int = 0
    failed: int = 0
    cancelled: int = 0
