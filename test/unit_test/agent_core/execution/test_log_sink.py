import logging

import pytest

from empire_ai.agent_core.execution.log_sink import (
    CompositeExecutionLogSink,
    ExecutionLogEntry,
    ExecutionLogSink,
    InMemoryExecutionLogSink,
    LoggingExecutionLogSink,
)


def _entry(agent_id: str = "default", execution_id: str = "exec_1", message: str = "hello") -> ExecutionLogEntry:
    return ExecutionLogEntry(agent_id=agent_id, execution_id=execution_id, message=message)


class _BrokenSink:
    async def append_log(self, entry: ExecutionLogEntry) -> None:
        raise RuntimeError("down")


def test_sinks_satisfy_protocol() -> None:
    assert isinstance(InMemoryExecutionLogSink(), ExecutionLogSink)
    assert isinstance(LoggingExecutionLogSink(), ExecutionLogSink)
    assert isinstance(CompositeExecutionLogSink(), ExecutionLogSink)


@pytest.mark.asyncio
async def test_in_memory_sink_filters_and_orders_newest_first() -> None:
    sink = InMemoryExecutionLogSink()
    await sink.append_log(_entry(message="first"))
    await sink.append_log(_entry(agent_id="research", message="other agent"))
    await sink.append_log(_entry(execution_id="exec_2", message="second"))

    assert [e.message for e in sink.list_logs(agent_id="default")] == ["second", "first"]
    assert [e.message for e in sink.list_logs(execution_id="exec_2")] == ["second"]
    assert [e.message for e in sink.list_logs(limit=1)] == ["second"]
    assert len(sink) == 3


@pytest.mark.asyncio
async def test_in_memory_sink_drops_oldest_entries() -> None:
    sink = InMemoryExecutionLogSink(max_entries=2)
    for i in range(3):
        await sink.append_log(_entry(message=str(i)))

    assert [e.message for e in sink.list_logs()] == ["2", "1"]


@pytest.mark.asyncio
async def test_logging_sink_uses_audit_logger(caplog: pytest.LogCaptureFixture) -> None:
    sink = LoggingExecutionLogSink()

    with caplog.at_level(logging.INFO, logger="empire_ai.audit"):
        await sink.append_log(_entry(message="Execution started"))

    assert "agent=default execution=exec_1: Execution started" in caplog.text


@pytest.mark.asyncio
async def test_composite_sink_keeps_going_after_failure() -> None:
    memory = InMemoryExecutionLogSink()
    sink = CompositeExecutionLogSink(_BrokenSink(), memory)

    await sink.append_log(_entry())

    assert len(memory) == 1
