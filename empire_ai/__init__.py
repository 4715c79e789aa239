"""Empire-AI.

This package runs LLM agents behind an agent-to-agent (A2A) HTTP surface and
keeps every invocation observable and cancellable.

High-level architecture
-----------------------

- **Agent registry**: agent configurations plus a bounded LRU cache of built
  agent instances with age-based expiration.
- **Execution tracker**: in-memory records of running and finished
  invocations, indexed by execution, thread and checkpoint id, with
  cooperative cancellation and retention-based cleanup.
- **Retry executor**: exponential backoff for transient upstream failures.

Core subpackages
----------------

- ``empire_ai.agent_core``: registry, tracker, retry, LLM providers and the
  LangGraph/pydantic-ai agent runtime.
- ``empire_ai.server``: FastAPI application exposing the A2A endpoints.
- ``empire_ai.core``: logging and monitoring.

Typical workflow
----------------

1. Register ``AgentConfig`` objects with the ``AgentRegistry``.
2. ``AgentInvoker.invoke`` builds (or reuses) the agent, opens an execution,
   runs it with retry and a timeout, and closes the execution.
3. A concurrent cancel request triggers the execution's cancellation token.
"""
