"""Execution tracking: records, cancellation tokens, audit sinks and the tracker."""

from .log_sink import (
    CompositeExecutionLogSink,
    ExecutionLogEntry,
    ExecutionLogSink,
    InMemoryExecutionLogSink,
    LoggingExecutionLogSink,
)
from .models import (
    CancellationToken,
    ExecutionProgress,
    ExecutionRecord,
    ExecutionStats,
    ExecutionStatus,
)
from .tracker import ExecutionTracker

__all__ = [
    "CancellationToken",
    "CompositeExecutionLogSink",
    "ExecutionLogEntry",
    "ExecutionLogSink",
    "ExecutionProgress",
    "ExecutionRecord",
    "ExecutionStats",
    "ExecutionStatus",
    "ExecutionTracker",
    "InMemoryExecutionLogSink",
    "LoggingExecutionLogSink",
]
