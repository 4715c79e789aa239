"""
Agent A2A API Endpoints.

This module exposes registered agents over the A2A protocol:

- Invoke an agent and wait for its answer
- Stream an agent's progress via Server-Sent Events (SSE)
- Cancel a running execution by execution, thread or checkpoint id
- Inspect executions and their audit logs

Failures raised before an execution starts (unknown agent, agent construction)
and cancel errors are rendered by the exception handlers; failures during an
execution are reported in the A2A response with a matching status code.
"""

from contextlib import aclosing
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sse_starlette.sse import EventSourceResponse

from empire_ai.agent_core.errors import AgentNotFoundError, EmpireAIError, ExecutionNotFoundError
from empire_ai.agent_core.factory import A2APlatform
from empire_ai.agent_core.runtime.invoker import error_code_for
from empire_ai.agent_core.schemas.a2a import A2ARequest, A2AResponse, A2AStreamEvent, A2AStreamEventType
from empire_ai.core.logging_config import get_logger
from empire_ai.server.exception_handlers.global_handler import http_status_for
from empire_ai.server.schemas import (
    CancelRequest,
    CancelResponse,
    ExecutionList,
    ExecutionLogList,
    ExecutionLogView,
    ExecutionSummary,
)
from empire_ai.server.services.deps import PlatformDep, enforce_rate_limit, verify_api_key

logger = get_logger(__name__)
router = APIRouter(dependencies=[Depends(verify_api_key)])


def _require_agent(platform: A2APlatform, agent_id: str) -> None:
    if platform.registry.get_config(agent_id) is None:
        raise AgentNotFoundError(agent_id)


@router.post(
    "/{agent_id}/invoke",
    dependencies=[Depends(enforce_rate_limit)],
    response_model=A2AResponse,
    response_model_exclude_none=True,
    summary="Invoke Agent",
    description="Run a task on an agent and wait for the result.",
    response_description="The A2A response with the agent's messages.",
)
async def invoke_agent(agent_id: str, body: A2ARequest, platform: PlatformDep, response: Response):
    """
    Invoke an agent.

    The execution is tracked and can be cancelled from another request while it
    runs. The execution and thread ids are returned in the ``X-Execution-ID`` and
    ``X-Thread-ID`` headers.

    - **task**: The task or query for the agent.
    - **context**: Additional context for the agent (optional).
    - **config**: Thread, checkpoint and recursion limit (optional).

    Requests are limited per client; see the ``X-RateLimit-*`` response headers.
    """
    logger.info(f"Invoking agent '{agent_id}'")
    outcome = await platform.invoker.invoke(agent_id, body)

    response.headers["X-Execution-ID"] = outcome.execution_id
    response.headers["X-Thread-ID"] = outcome.thread_id
    if outcome.error_kind is not None:
        response.status_code = http_status_for(outcome.error_kind)
    return outcome.response


@router.post(
    "/{agent_id}/stream",
    dependencies=[Depends(enforce_rate_limit)],
    summary="Stream Agent",
    description="Run a task on an agent and stream its progress via Server-Sent Events.",
)
async def stream_agent(agent_id: str, body: A2ARequest, platform: PlatformDep, request: Request, response: Response):
    """
    Stream an agent execution.

    Emits ``start``, then ``message`` and ``state_update`` events as the agent
    graph progresses, and finally ``end``, ``error`` or ``cancelled``. Each SSE
    event carries the JSON-serialized stream event as data.
    """
    _require_agent(platform, agent_id)
    logger.info(f"Starting stream for agent '{agent_id}'")

    async def event_generator():
        try:
            async with aclosing(platform.invoker.stream(agent_id, body)) as events:
                async for event in events:
                    if await request.is_disconnected():
                        logger.info(f"Client disconnected from stream of agent '{agent_id}'")
                        break
                    yield {"event": event.type.value, "data": event.model_dump_json(by_alias=True)}
        except EmpireAIError as e:
            logger.error(f"Stream of agent '{agent_id}' failed before start: {e.message}")
            event = A2AStreamEvent(
                type=A2AStreamEventType.ERROR,
                data={"code": error_code_for(e.kind).value, "message": e.message},
            )
            yield {"event": event.type.value, "data": event.model_dump_json(by_alias=True)}

    return EventSourceResponse(event_generator(), headers=dict(response.headers))


@router.post(
    "/{agent_id}/cancel",
    response_model=CancelResponse,
    summary="Cancel Execution",
    description="Cancel a running execution of the agent.",
)
async def cancel_execution(agent_id: str, body: CancelRequest, platform: PlatformDep):
    """
    Cancel a running execution.

    Responds 400 when no identifier is given or the execution is not running,
    404 when nothing matches, and 403 when the execution belongs to another agent.
    """
    execution = platform.invoker.cancel(
        agent_id,
        execution_id=body.execution_id,
        thread_id=body.thread_id,
        checkpoint_id=body.checkpoint_id,
    )
    logger.info(f"Cancelled execution {execution.id} of agent '{agent_id}'")
    return CancelResponse(
        execution_id=execution.id,
        thread_id=execution.thread_id,
        agent_id=agent_id,
        cancelled_at=execution.completed_at,
    )


@router.get(
    "/{agent_id}/executions",
    response_model=ExecutionList,
    summary="List Executions",
    description="List tracked executions of the agent, newest first.",
)
async def list_executions(agent_id: str, platform: PlatformDep):
    _require_agent(platform, agent_id)
    records = platform.tracker.list_executions(agent_id)
    return ExecutionList(agent_id=agent_id, executions=[ExecutionSummary.from_record(r) for r in records])


@router.get(
    "/{agent_id}/executions/{execution_id}",
    response_model=ExecutionSummary,
    summary="Get Execution",
    description="Get the status and progress of a single execution.",
)
async def get_execution(agent_id: str, execution_id: str, platform: PlatformDep):
    record = platform.tracker.get_execution(execution_id)
    if record is None or record.agent_id != agent_id:
        raise ExecutionNotFoundError("Execution not found", details={"executionId": execution_id})
    return ExecutionSummary.from_record(record)


@router.get(
    "/{agent_id}/logs",
    response_model=ExecutionLogList,
    summary="Get Execution Logs",
    description="Recent audit log entries of the agent's executions, newest first.",
)
async def get_logs(
    agent_id: str,
    platform: PlatformDep,
    execution_id: Optional[str] = Query(default=None, alias="executionId"),
    limit: int = Query(default=100, ge=1, le=1000),
):
    entries = platform.log_sink.list_logs(agent_id=agent_id, execution_id=execution_id, limit=limit)
    return ExecutionLogList(
        agent_id=agent_id,
        logs=[
            ExecutionLogView(
                execution_id=e.execution_id,
                level=e.level,
                message=e.message,
                source=e.source,
                timestamp=e.timestamp,
            )
            for e in entries
        ],
    )
