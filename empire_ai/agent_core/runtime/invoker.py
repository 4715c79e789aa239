"""Invoke and stream registered agents with tracking, retry and cancellation.

``AgentInvoker`` ties the building blocks together for a single A2A request:

1. resolve the agent through the ``AgentRegistry`` (unknown ids propagate as
   ``AgentNotFoundError`` before anything is tracked)
2. open a ``running`` record in the ``ExecutionTracker``
3. run the agent through ``execute_with_retry``, raced against the overall
   timeout and the record's ``CancellationToken``; every retry starts from the
   thread checkpoint the first attempt started on
4. close the record (completed / failed / left cancelled) and build the
   ``A2AResponse``

Cancellation is cooperative: the in-flight task is cancelled at its next
suspension point and whatever it produces afterwards is discarded.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Awaitable, Dict, List, Optional, TypeVar

from empire_ai.core.monitoring import log_error, log_execution_finished, log_execution_started, log_retry_attempt

from ..errors import (
    EmpireAIError,
    ErrorKind,
    ExecutionCancelledError,
    ExecutionNotFoundError,
    ExecutionTimeoutError,
    InvalidExecutionStateError,
    InvalidRequestError,
    PermissionDeniedError,
)
from ..execution.models import CancellationToken, ExecutionRecord, ExecutionStatus
from ..execution.tracker import ExecutionTracker
from ..registry.registry import AgentRegistry
from ..retry import LLM_RETRY_POLICY, RetryPolicy, classify_error, execute_with_retry
from ..schemas.a2a import (
    A2AError,
    A2AErrorCode,
    A2AMessage,
    A2AMetadata,
    A2ARequest,
    A2AResponse,
    A2AResult,
    A2AStreamEvent,
    A2AStreamEventType,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_INVOKE_TIMEOUT_SECONDS = 300.0
DEFAULT_RECURSION_LIMIT = 50

A2A_ERROR_CODES: Dict[ErrorKind, A2AErrorCode] = {
    ErrorKind.not_found: A2AErrorCode.AGENT_NOT_FOUND,
    ErrorKind.invalid_state: A2AErrorCode.INVALID_REQUEST,
    ErrorKind.invalid_request: A2AErrorCode.INVALID_REQUEST,
    ErrorKind.transient_upstream: A2AErrorCode.EXECUTION_FAILED,
    ErrorKind.permanent_upstream: A2AErrorCode.EXECUTION_FAILED,
    ErrorKind.execution_failed: A2AErrorCode.EXECUTION_FAILED,
    ErrorKind.construction: A2AErrorCode.INTERNAL_ERROR,
    ErrorKind.timeout: A2AErrorCode.TIMEOUT,
    ErrorKind.permission_denied: A2AErrorCode.PERMISSION_DENIED,
    ErrorKind.authentication: A2AErrorCode.AUTHENTICATION_FAILED,
    ErrorKind.rate_limited: A2AErrorCode.RATE_LIMIT_EXCEEDED,
}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_thread_id() -> str:
    return f"thread_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


def error_code_for(kind: ErrorKind) -> A2AErrorCode:
    return A2A_ERROR_CODES.get(kind, A2AErrorCode.INTERNAL_ERROR)


async def run_cancellable(
    awaitable: Awaitable[T],
    token: CancellationToken,
    timeout: Optional[float] = None,
) -> T:
    """Await ``awaitable`` unless ``token`` fires or ``timeout`` seconds pass first.

    Raises:
        ExecutionCancelledError: The token was triggered first.
        ExecutionTimeoutError: The timeout elapsed first.
    """
    work = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(token.wait())
    try:
        done, _ = await asyncio.wait({work, waiter}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        if work in done:
            return work.result()
        if waiter in done:
            raise ExecutionCancelledError("Execution was cancelled")
        raise ExecutionTimeoutError(timeout or 0.0)
    finally:
        pending = [task for task in (work, waiter) if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)


@dataclass
class InvocationOutcome:
    """Result of ``AgentInvoker.invoke``.

    ``error_kind`` is set when ``response.status == "error"`` so transports can
    pick a status code.
    """

    execution_id: str
    thread_id: str
    response: A2AResponse
    error_kind: Optional[ErrorKind] = None


class AgentInvoker:
    """Runs A2A requests against registered agents."""

    def __init__(
        self,
        registry: AgentRegistry,
        tracker: ExecutionTracker,
        *,
        retry_policy: RetryPolicy = LLM_RETRY_POLICY,
        timeout: float = DEFAULT_INVOKE_TIMEOUT_SECONDS,
        default_recursion_limit: int = DEFAULT_RECURSION_LIMIT,
    ) -> None:
        self._registry = registry
        self._tracker = tracker
        self._retry_policy = retry_policy
        self._timeout = timeout
        self._default_recursion_limit = default_recursion_limit

    @property
    def timeout(self) -> float:
        return self._timeout

    async def invoke(self, agent_id: str, request: A2ARequest) -> InvocationOutcome:
        """
        Run ``request`` on ``agent_id`` to completion.

        Failures during the run are reported in the response (status ``error``
        or ``cancelled``) and recorded on the execution; only errors raised
        before the execution starts (unknown agent, construction failure)
        propagate.

        Args:
            agent_id: Registered agent identifier.
            request: The validated A2A request.

        Returns:
            The execution id, thread id and A2A response.
        """
        agent = await self._registry.get_agent(agent_id)
        thread_id = request.config.thread_id or generate_thread_id()
        execution = await self._tracker.start_execution(
            agent_id, thread_id, request, checkpoint_id=request.config.checkpoint_id
        )
        log_execution_started(execution.id, agent_id, thread_id)

        run_config = self._run_config(thread_id, request)
        policy = self._retry_policy.with_observer(
            lambda attempt, error, delay: log_retry_attempt(
                attempt, error, delay, context={"execution_id": execution.id, "agent_id": agent_id}
            )
        )

        base_checkpoint_id = request.config.checkpoint_id or await self._latest_checkpoint_id(agent, thread_id)
        attempts = 0

        async def attempt() -> Any:
            nonlocal attempts
            attempts += 1
            config = run_config if attempts == 1 else await self._rewind_thread(agent, run_config, base_checkpoint_id)
            return await agent.ainvoke(self._input(request), config)

        try:
            state = await run_cancellable(
                execute_with_retry(attempt, policy),
                execution.cancellation,
                self._timeout,
            )
        except ExecutionCancelledError:
            logger.info(f"Execution {execution.id} cancelled while running agent '{agent_id}'")
            return self._finish(execution, A2AResponse(status="cancelled", metadata=self._metadata(execution)))
        except ExecutionTimeoutError as e:
            await self._tracker.fail_execution(execution.id, e.message, kind=ErrorKind.timeout)
            return self._error_outcome(execution, ErrorKind.timeout, e.message, e.details)
        except Exception as e:
            kind = e.kind if isinstance(e, EmpireAIError) else classify_error(e)
            logger.error(f"Execution {execution.id} of agent '{agent_id}' failed ({kind.value}): {e}")
            log_error(type(e).__name__, str(e), {"execution_id": execution.id, "agent_id": agent_id})
            await self._tracker.fail_execution(execution.id, str(e), kind=kind)
            return self._error_outcome(execution, kind, str(e), {"error_kind": kind.value})

        checkpoint_id = await self._latest_checkpoint_id(agent, thread_id)
        await self._tracker.complete_execution(execution.id, checkpoint_id=checkpoint_id)
        if execution.status is ExecutionStatus.cancelled:
            # Cancelled after the agent finished but before the record was closed.
            return self._finish(execution, A2AResponse(status="cancelled", metadata=self._metadata(execution)))

        response = A2AResponse(
            status="success",
            result=self._result(state),
            metadata=self._metadata(execution),
        )
        return self._finish(execution, response)

    async def stream(self, agent_id: str, request: A2ARequest) -> AsyncIterator[A2AStreamEvent]:
        """
        Run ``request`` on ``agent_id`` and yield events as graph nodes finish.

        Yields ``start``, then ``message``/``state_update`` per node update, then
        ``end``; failures yield ``error`` and cancellation yields ``cancelled``.
        Streams are neither retried nor bounded by the invoke timeout. If the
        consumer stops iterating early, the execution is cancelled.
        """
        agent = await self._registry.get_agent(agent_id)
        thread_id = request.config.thread_id or generate_thread_id()
        execution = await self._tracker.start_execution(
            agent_id, thread_id, request, checkpoint_id=request.config.checkpoint_id
        )
        log_execution_started(execution.id, agent_id, thread_id)

        iterator = agent.astream(self._input(request), self._run_config(thread_id, request), stream_mode="updates")
        steps = 0
        try:
            yield A2AStreamEvent(
                type=A2AStreamEventType.START,
                data={"executionId": execution.id, "threadId": thread_id, "agentId": agent_id},
            )

            while True:
                try:
                    chunk = await run_cancellable(iterator.__anext__(), execution.cancellation)
                except StopAsyncIteration:
                    break

                for node, update in (chunk or {}).items():
                    if not update:
                        continue
                    steps += 1
                    await self._tracker.update_progress(execution.id, current_step=node, steps_completed=steps)
                    for message in update.get("messages", []):
                        yield A2AStreamEvent(
                            type=A2AStreamEventType.MESSAGE,
                            data=self._message(message).model_dump(by_alias=True, exclude_none=True),
                        )
                    yield A2AStreamEvent(
                        type=A2AStreamEventType.STATE_UPDATE,
                        data={"node": node, "keys": sorted(update)},
                    )

            checkpoint_id = await self._latest_checkpoint_id(agent, thread_id)
            await self._tracker.complete_execution(execution.id, checkpoint_id=checkpoint_id)
            log_execution_finished(execution.id, execution.status.value, self._elapsed_ms(execution))
            yield A2AStreamEvent(
                type=A2AStreamEventType.END,
                data={
                    "executionId": execution.id,
                    "threadId": thread_id,
                    "checkpointId": checkpoint_id,
                    "executionTimeMs": self._elapsed_ms(execution),
                },
            )
        except ExecutionCancelledError:
            log_execution_finished(execution.id, ExecutionStatus.cancelled.value, self._elapsed_ms(execution))
            yield A2AStreamEvent(type=A2AStreamEventType.CANCELLED, data={"executionId": execution.id})
        except Exception as e:
            kind = e.kind if isinstance(e, EmpireAIError) else classify_error(e)
            logger.error(f"Streaming execution {execution.id} of agent '{agent_id}' failed ({kind.value}): {e}")
            await self._tracker.fail_execution(execution.id, str(e), kind=kind)
            log_execution_finished(execution.id, ExecutionStatus.failed.value, self._elapsed_ms(execution))
            yield A2AStreamEvent(
                type=A2AStreamEventType.ERROR,
                data={"code": error_code_for(kind).value, "message": str(e), "executionId": execution.id},
            )
        finally:
            if execution.status is ExecutionStatus.running:
                self._tracker.cancel_execution(execution.id)
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()

    def cancel(
        self,
        agent_id: str,
        *,
        execution_id: Optional[str] = None,
        thread_id: Optional[str] = None,
        checkpoint_id: Optional[str] = None,
    ) -> ExecutionRecord:
        """
        Cancel a running execution of ``agent_id`` found by id, thread or checkpoint.

        Raises:
            InvalidRequestError: No identifier was given.
            ExecutionNotFoundError: Nothing matches the identifier.
            PermissionDeniedError: The execution belongs to another agent.
            InvalidExecutionStateError: The execution is no longer running.
        """
        if execution_id:
            execution = self._tracker.get_execution(execution_id)
        elif thread_id:
            execution = self._tracker.get_execution_by_thread(thread_id)
        elif checkpoint_id:
            execution = self._tracker.get_execution_by_checkpoint(checkpoint_id)
        else:
            raise InvalidRequestError("Must provide executionId, threadId, or checkpointId")

        if execution is None:
            raise ExecutionNotFoundError(
                "Execution not found",
                details={"executionId": execution_id, "threadId": thread_id, "checkpointId": checkpoint_id},
            )
        if execution.agent_id != agent_id:
            raise PermissionDeniedError(
                "Execution belongs to a different agent",
                details={"executionId": execution.id, "agentId": execution.agent_id},
            )
        if not self._tracker.cancel_execution(execution.id):
            raise InvalidExecutionStateError(
                f"Execution cannot be cancelled (status: {execution.status.value})",
                details={"executionId": execution.id, "status": execution.status.value},
            )
        return execution

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _run_config(self, thread_id: str, request: A2ARequest) -> Dict[str, Any]:
        configurable: Dict[str, Any] = {"thread_id": thread_id}
        if request.config.checkpoint_id:
            configurable["checkpoint_id"] = request.config.checkpoint_id
        return {
            "configurable": configurable,
            "recursion_limit": request.config.recursion_limit or self._default_recursion_limit,
        }

    @staticmethod
    def _input(request: A2ARequest) -> Dict[str, Any]:
        return {"messages": [{"role": "user", "content": request.task}], "context": request.context}

    @staticmethod
    async def _latest_checkpoint_id(agent: Any, thread_id: str) -> Optional[str]:
        if getattr(agent, "checkpointer", None) is None:
            return None
        try:
            snapshot = await agent.aget_state({"configurable": {"thread_id": thread_id}})
        except Exception as e:
            logger.warning(f"Could not read checkpoint for thread {thread_id}: {e}")
            return None
        return (snapshot.config or {}).get("configurable", {}).get("checkpoint_id")

    @staticmethod
    async def _rewind_thread(
        agent: Any, run_config: Dict[str, Any], base_checkpoint_id: Optional[str]
    ) -> Dict[str, Any]:
        """Run config for a retry that starts from the thread as it was before the first attempt.

        A failed attempt has already checkpointed its input. Retries fork from the
        checkpoint the first attempt started on; a thread that had none is emptied.
        """
        checkpointer = getattr(agent, "checkpointer", None)
        if checkpointer is None:
            return run_config
        if base_checkpoint_id:
            return {**run_config, "configurable": {**run_config["configurable"], "checkpoint_id": base_checkpoint_id}}
        await checkpointer.adelete_thread(run_config["configurable"]["thread_id"])
        return run_config

    @staticmethod
    def _message(message: Any) -> A2AMessage:
        if isinstance(message, A2AMessage):
            return message
        if isinstance(message, dict):
            role = message.get("role", "assistant")
            return A2AMessage(
                role=role if role in ("user", "assistant", "system", "tool") else "assistant",
                content=str(message.get("content", "")),
                name=message.get("name"),
            )
        return A2AMessage(role="assistant", content=str(message))

    def _result(self, state: Any) -> A2AResult:
        if not isinstance(state, dict):
            return A2AResult(messages=[self._message(state)])
        messages: List[A2AMessage] = [self._message(m) for m in state.get("messages", [])]
        return A2AResult(messages=messages, state={k: v for k, v in state.items() if k != "messages"})

    def _elapsed_ms(self, execution: ExecutionRecord) -> float:
        end = execution.completed_at or _utc_now()
        return (end - execution.started_at).total_seconds() * 1000

    def _metadata(self, execution: ExecutionRecord) -> A2AMetadata:
        return A2AMetadata(
            execution_time_ms=self._elapsed_ms(execution),
            agent_id=execution.agent_id,
            started_at=execution.started_at,
            completed_at=execution.completed_at or _utc_now(),
            execution_id=execution.id,
            thread_id=execution.thread_id,
            checkpoint_id=execution.checkpoint_id,
        )

    def _error_outcome(
        self,
        execution: ExecutionRecord,
        kind: ErrorKind,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> InvocationOutcome:
        response = A2AResponse(
            status="error",
            error=A2AError(code=error_code_for(kind), message=message, details=details or {}),
            metadata=self._metadata(execution),
        )
        outcome = self._finish(execution, response)
        outcome.error_kind = kind
        return outcome

    def _finish(self, execution: ExecutionRecord, response: A2AResponse) -> InvocationOutcome:
        log_execution_finished(execution.id, execution.status.value, response.metadata.execution_time_ms)
        return InvocationOutcome(execution_id=execution.id, thread_id=execution.thread_id, response=response)
