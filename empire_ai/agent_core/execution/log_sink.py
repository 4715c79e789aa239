"""Audit log sinks for execution lifecycle messages.

The tracker writes one entry per lifecycle event (start, progress,
completion, failure). Writes are best effort: the tracker swallows and logs
any error raised by a sink, so a sink must never be relied upon for the
outcome of an execution.
"""

from __future__ import annotations

import logging
from collections import deque
from datetime import datetime, timezone
from typing import Deque, List, Literal, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

LogLevel = Literal["debug", "info", "warning", "error"]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ExecutionLogEntry(BaseModel):
    agent_id: str
    execution_id: str
    level: LogLevel = "info"
    message: str
    source: str = "execution-tracker"
    timestamp: datetime = Field(default_factory=_utc_now)


@runtime_checkable
class ExecutionLogSink(Protocol):
    async def append_log(self, entry: ExecutionLogEntry) -> None: ...


class LoggingExecutionLogSink:
    """Forward audit entries to the standard ``logging`` module."""

    _LEVELS = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }

    def __init__(self, logger_name: str = "empire_ai.audit") -> None:
        self._logger = logging.getLogger(logger_name)

    async def append_log(self, entry: ExecutionLogEntry) -> None:
        self._logger.log(
            self._LEVELS[entry.level],
            f"[{entry.source}] agent={entry.agent_id} execution={entry.execution_id}: {entry.message}",
        )


class InMemoryExecutionLogSink:
    """Keep the most recent audit entries in memory.

    Backs the ``/logs`` endpoint; older entries fall off once ``max_entries``
    is reached.
    """

    def __init__(self, max_entries: int = 1000) -> None:
        self._entries: Deque[ExecutionLogEntry] = deque(maxlen=max_entries)

    async def append_log(self, entry: ExecutionLogEntry) -> None:
        self._entries.append(entry)

    def list_logs(
        self,
        *,
        agent_id: Optional[str] = None,
        execution_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[ExecutionLogEntry]:
        """Return matching entries, newest first."""
        matches = [
            e
            for e in reversed(self._entries)
            if (agent_id is None or e.agent_id == agent_id) and (execution_id is None or e.execution_id == execution_id)
        ]
        return matches[:limit]

    def __len__(self) -> int:
        return len(self._entries)


class CompositeExecutionLogSink:
    """Fan an entry out to several sinks; one failing sink does not starve the others."""

    def __init__(self, *sinks: ExecutionLogSink) -> None:
        self._sinks = list(sinks)

    async def append_log(self, entry: ExecutionLogEntry) -> None:
        for sink in self._sinks:
            try:
                await sink.append_log(entry)
            except Exception as e:
                logger.warning(f"Audit sink {type(sink).__name__} failed: {e}")
