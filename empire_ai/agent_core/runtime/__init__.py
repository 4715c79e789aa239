"""Agent runtime: building agent graphs and invoking them.

- ``GraphAgentBuilder`` compiles a LangGraph graph around a pydantic-ai agent
  for an ``AgentConfig``.
- ``AgentInvoker`` runs A2A requests against registered agents with execution
  tracking, retry, timeout and cooperative cancellation.
"""

from .builder import AgentState, GraphAgentBuilder, build_instructions
from .invoker import AgentInvoker, InvocationOutcome, error_code_for, generate_thread_id, run_cancellable

__all__ = [
    "AgentInvoker",
    "AgentState",
    "GraphAgentBuilder",
    "InvocationOutcome",
    "build_instructions",
    "error_code_for",
    "generate_thread_id",
    "run_cancellable",
]
