"""In-memory execution tracker.

``ExecutionTracker`` is the single source of truth for "is this agent
invocation still running, and can it be cancelled". It keeps:

- the primary map ``execution_id -> ExecutionRecord``
- a thread index ``thread_id -> execution_id`` (last writer wins)
- a checkpoint index ``checkpoint_id -> execution_id``

Only the tracker's own methods mutate these maps. All mutations happen
between suspension points of a single event loop, so no locking is needed.

Lifecycle writes are mirrored to an ``ExecutionLogSink``; sink failures are
logged and swallowed so they never change the outcome of the tracked call.

A background sweep (``start_cleanup``) removes terminal records whose
``completed_at`` is older than the retention window. Running records are
never swept: a record that is never completed, failed or cancelled stays
until ``clear()``.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from ..errors import ErrorKind
from ..schemas.a2a import A2ARequest
from .log_sink import ExecutionLogEntry, ExecutionLogSink, LogLevel, LoggingExecutionLogSink
from .models import ExecutionProgress, ExecutionRecord, ExecutionStats, ExecutionStatus

logger = logging.getLogger(__name__)

DEFAULT_CLEANUP_INTERVAL_SECONDS = 300.0
DEFAULT_RETENTION_SECONDS = 3600.0


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_execution_id() -> str:
    return f"exec_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


class ExecutionTracker:
    """Track agent executions by id, thread and checkpoint.

    Args:
        log_sink: Audit sink for lifecycle messages (defaults to the logging module).
        cleanup_interval: Seconds between background sweeps.
        retention: Seconds a terminal record is kept after ``completed_at``.
        clock: Source of "now"; injectable for tests.
    """

    def __init__(
        self,
        *,
        log_sink: Optional[ExecutionLogSink] = None,
        cleanup_interval: float = DEFAULT_CLEANUP_INTERVAL_SECONDS,
        retention: float = DEFAULT_RETENTION_SECONDS,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._executions: Dict[str, ExecutionRecord] = {}
        self._executions_by_thread: Dict[str, str] = {}
        self._executions_by_checkpoint: Dict[str, str] = {}
        self._log_sink: ExecutionLogSink = log_sink or LoggingExecutionLogSink()
        self._cleanup_interval = cleanup_interval
        self._retention = retention
        self._clock = clock
        self._cleanup_task: Optional[asyncio.Task[None]] = None

    @property
    def cleanup_interval(self) -> float:
        return self._cleanup_interval

    @property
    def retention(self) -> float:
        return self._retention

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start_execution(
        self,
        agent_id: str,
        thread_id: str,
        request: A2ARequest,
        checkpoint_id: Optional[str] = None,
    ) -> ExecutionRecord:
        """Open a ``running`` record and index it by thread and checkpoint."""
        execution = ExecutionRecord(
            id=generate_execution_id(),
            agent_id=agent_id,
            thread_id=thread_id,
            checkpoint_id=checkpoint_id,
            request=request,
            started_at=self._clock(),
        )

        self._executions[execution.id] = execution
        self._executions_by_thread[thread_id] = execution.id
        if checkpoint_id:
            self._executions_by_checkpoint[checkpoint_id] = execution.id

        logger.debug(f"Execution {execution.id} started for agent={agent_id} thread={thread_id}")
        suffix = f" (checkpoint: {checkpoint_id})" if checkpoint_id else ""
        await self._persist(execution, "info", f"Execution started for thread {thread_id}{suffix}")
        return execution

    async def update_progress(
        self,
        execution_id: str,
        *,
        current_step: Optional[str] = None,
        steps_completed: Optional[int] = None,
        total_steps: Optional[int] = None,
    ) -> None:
        """Merge the given progress fields; silently ignore unknown executions."""
        execution = self._executions.get(execution_id)
        if execution is None:
            return

        update = {
            key: value
            for key, value in (
                ("current_step", current_step),
                ("steps_completed", steps_completed),
                ("total_steps", total_steps),
            )
            if value is not None
        }
        execution.progress = execution.progress.model_copy(update=update)

        progress: ExecutionProgress = execution.progress
        await self._persist(
            execution,
            "info",
            f"Progress update: {progress.current_step or ''} "
            f"({progress.steps_completed}/{progress.total_steps if progress.total_steps is not None else '?'} steps)",
        )

    async def complete_execution(self, execution_id: str, checkpoint_id: Optional[str] = None) -> None:
        """Mark a running execution ``completed``.

        A checkpoint id supplied here is attached to the record and indexed;
        engines often only know it once state has been persisted.
        """
        execution = self._executions.get(execution_id)
        if execution is None or execution.status.is_terminal:
            return

        execution.status = ExecutionStatus.completed
        execution.completed_at = self._clock()
        if checkpoint_id:
            execution.checkpoint_id = checkpoint_id
            self._executions_by_checkpoint[checkpoint_id] = execution_id

        logger.debug(f"Execution {execution_id} completed")
        suffix = f" (checkpoint: {checkpoint_id})" if checkpoint_id else ""
        await self._persist(execution, "info", f"Execution completed{suffix}")

    async def fail_execution(self, execution_id: str, error: str, kind: Optional[ErrorKind] = None) -> None:
        """Mark a running execution ``failed`` with an error message."""
        execution = self._executions.get(execution_id)
        if execution is None or execution.status.is_terminal:
            return

        execution.status = ExecutionStatus.failed
        execution.completed_at = self._clock()
        execution.error = error
        execution.error_kind = kind or ErrorKind.execution_failed

        logger.debug(f"Execution {execution_id} failed ({execution.error_kind.value}): {error}")
        await self._persist(execution, "error", f"Execution failed: {error}")

    def cancel_execution(self, execution_id: str) -> bool:
        """Cancel a running execution.

        Triggers the record's cancellation token and marks it ``cancelled``
        immediately; the underlying work stops at its next suspension point.

        Returns:
            False if the execution is unknown or not running, True otherwise.
        """
        execution = self._executions.get(execution_id)
        if execution is None or execution.status is not ExecutionStatus.running:
            return False

        execution.cancellation.cancel()
        execution.status = ExecutionStatus.cancelled
        execution.completed_at = self._clock()

        logger.info(f"Execution {execution_id} cancelled")
        return True

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_execution(self, execution_id: str) -> Optional[ExecutionRecord]:
        return self._executions.get(execution_id)

    def get_execution_by_thread(self, thread_id: str) -> Optional[ExecutionRecord]:
        execution_id = self._executions_by_thread.get(thread_id)
        return self._executions.get(execution_id) if execution_id else None

    def get_execution_by_checkpoint(self, checkpoint_id: str) -> Optional[ExecutionRecord]:
        execution_id = self._executions_by_checkpoint.get(checkpoint_id)
        return self._executions.get(execution_id) if execution_id else None

    def list_executions(self, agent_id: str) -> List[ExecutionRecord]:
        """Executions of ``agent_id``, newest first."""
        return sorted(
            (e for e in self._executions.values() if e.agent_id == agent_id),
            key=lambda e: e.started_at,
            reverse=True,
        )

    def get_stats(self) -> ExecutionStats:
        stats = ExecutionStats(total=len(self._executions))
        for execution in self._executions.values():
            setattr(stats, execution.status.value, getattr(stats, execution.status.value) + 1)
        return stats

    def __len__(self) -> int:
        return len(self._executions)

    # ------------------------------------------------------------------
    # Retention
    # ------------------------------------------------------------------

    def cleanup(self, now: Optional[datetime] = None) -> int:
        """Remove terminal records older than the retention window.

        Returns:
            Number of records removed.
        """
        now = now or self._clock()
        retention = timedelta(seconds=self._retention)

        expired = [
            execution
            for execution in self._executions.values()
            if execution.status.is_terminal and now - (execution.completed_at or now) > retention
        ]

        for execution in expired:
            del self._executions[execution.id]
            # The indexes may already point at a newer execution on the same thread/checkpoint.
            if self._executions_by_thread.get(execution.thread_id) == execution.id:
                del self._executions_by_thread[execution.thread_id]
            if execution.checkpoint_id and self._executions_by_checkpoint.get(execution.checkpoint_id) == execution.id:
                del self._executions_by_checkpoint[execution.checkpoint_id]

        if expired:
            logger.info(f"Cleaned up {len(expired)} old executions")
        return len(expired)

    def start_cleanup(self) -> None:
        """Start the periodic sweep on the running event loop (no-op if already running)."""
        if self._cleanup_task is not None and not self._cleanup_task.done():
            return
        self._cleanup_task = asyncio.get_running_loop().create_task(self._cleanup_loop())
        logger.debug(f"Execution cleanup started (interval={self._cleanup_interval:g}s)")

    async def stop_cleanup(self) -> None:
        task, self._cleanup_task = self._cleanup_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    @property
    def cleanup_running(self) -> bool:
        return self._cleanup_task is not None and not self._cleanup_task.done()

    async def set_retention_config(
        self,
        *,
        cleanup_interval: Optional[float] = None,
        retention: Optional[float] = None,
    ) -> None:
        """Adjust retention settings; a running sweep is restarted with the new interval."""
        if retention is not None:
            self._retention = retention

        if cleanup_interval is not None:
            self._cleanup_interval = cleanup_interval
            if self.cleanup_running:
                await self.stop_cleanup()
                self.start_cleanup()

    def clear(self) -> None:
        self._executions.clear()
        self._executions_by_thread.clear()
        self._executions_by_checkpoint.clear()

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self._cleanup_interval)
            try:
                self.cleanup()
            except Exception as e:
                logger.error(f"Execution cleanup failed: {e}", exc_info=True)

    async def _persist(self, execution: ExecutionRecord, level: LogLevel, message: str) -> None:
        try:
            await self._log_sink.append_log(
                ExecutionLogEntry(
                    agent_id=execution.agent_id,
                    execution_id=execution.id,
                    level=level,
                    message=message,
                )
            )
        except Exception as e:
            logger.warning(f"Failed to persist audit log for execution {execution.id}: {e}")
