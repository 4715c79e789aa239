"""Agent registry, execution tracking and the agent runtime.

Design overview
---------------

- ``registry``: ``AgentConfig`` table plus ``AgentInstanceCache`` (LRU by last
  use, expiration by age). ``AgentRegistry.get_agent`` builds on a miss.
- ``execution``: ``ExecutionTracker`` with ``ExecutionRecord`` lifecycle
  ``running -> completed | failed | cancelled``; audit entries go to an
  ``ExecutionLogSink``.
- ``retry``: ``execute_with_retry`` and ``RetryPolicy`` presets; errors are
  classified as transient or permanent by message.
- ``runtime``: ``GraphAgentBuilder`` (LangGraph + pydantic-ai) and
  ``AgentInvoker`` which ties registry, tracker and retry together.
- ``factory``: ``build_platform`` wires everything from settings.
"""

from .errors import (
    AgentConstructionError,
    AgentNotFoundError,
    EmpireAIError,
    ErrorKind,
    ExecutionCancelledError,
    ExecutionNotFoundError,
    ExecutionTimeoutError,
    InvalidExecutionStateError,
    InvalidRequestError,
    PermissionDeniedError,
)
from .execution import ExecutionRecord, ExecutionStatus, ExecutionTracker
from .factory import A2APlatform, build_platform, get_a2a_status
from .providers import LLMProvider, create_model
from .registry import AgentConfig, AgentModelConfig, AgentRegistry, initialize_default_agents
from .retry import (
    DEFAULT_RETRY_POLICY,
    LLM_RETRY_POLICY,
    NETWORK_RETRY_POLICY,
    RetryPolicy,
    classify_error,
    execute_with_retry,
)
from .runtime import AgentInvoker, GraphAgentBuilder

__all__ = [
    # Errors
    "AgentConstructionError",
    "AgentNotFoundError",
    "EmpireAIError",
    "ErrorKind",
    "ExecutionCancelledError",
    "ExecutionNotFoundError",
    "ExecutionTimeoutError",
    "InvalidExecutionStateError",
    "InvalidRequestError",
    "PermissionDeniedError",
    # Execution tracking
    "ExecutionRecord",
    "ExecutionStatus",
    "ExecutionTracker",
    # Registry
    "AgentConfig",
    "AgentModelConfig",
    "AgentRegistry",
    "initialize_default_agents",
    # Retry
    "DEFAULT_RETRY_POLICY",
    "LLM_RETRY_POLICY",
    "NETWORK_RETRY_POLICY",
    "RetryPolicy",
    "classify_error",
    "execute_with_retry",
    # Runtime
    "AgentInvoker",
    "GraphAgentBuilder",
    "LLMProvider",
    "create_model",
    # Wiring
    "A2APlatform",
    "build_platform",
    "get_a2a_status",
]
