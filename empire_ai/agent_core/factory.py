"""Convenience factories for wiring the agent core.

``build_platform`` instantiates the registry, execution tracker, invoker and
audit log sink from ``Settings`` and registers the default agents. The HTTP
server keeps the resulting ``A2APlatform`` on ``app.state``; tests build one
with a stub ``AgentBuilder`` instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional

from .execution.log_sink import CompositeExecutionLogSink, InMemoryExecutionLogSink, LoggingExecutionLogSink
from .execution.tracker import ExecutionTracker
from .providers import get_available_providers, validate_provider_config
from .registry.defaults import initialize_default_agents
from .registry.registry import AgentBuilder, AgentRegistry
from .retry import RetryPolicy
from .runtime.builder import GraphAgentBuilder
from .runtime.invoker import AgentInvoker

if TYPE_CHECKING:
    from empire_ai.server.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class A2APlatform:
    """Everything the A2A surface needs, built once per application."""

    registry: AgentRegistry
    tracker: ExecutionTracker
    invoker: AgentInvoker
    log_sink: InMemoryExecutionLogSink
    settings: Optional["Settings"] = None

    async def start(self) -> None:
        self.tracker.start_cleanup()

    async def stop(self) -> None:
        await self.tracker.stop_cleanup()


def build_retry_policy(settings: "Settings") -> RetryPolicy:
    return RetryPolicy(
        max_retries=settings.agent_retry_max_retries,
        base_delay=settings.agent_retry_base_delay_seconds,
        max_delay=settings.agent_retry_max_delay_seconds,
    )


def build_platform(
    settings: "Settings",
    builder: Optional[AgentBuilder] = None,
    *,
    register_defaults: bool = True,
) -> A2APlatform:
    """Construct an ``A2APlatform`` from settings.

    Args:
        settings: Application settings (cache bounds, retention, timeout, retry).
        builder: Agent builder; defaults to ``GraphAgentBuilder`` using the
            provider API keys from ``settings``.
        register_defaults: Register the built-in ``default``, ``research`` and
            ``creative`` agents.
    """
    registry = AgentRegistry.with_cache_config(
        builder or GraphAgentBuilder(settings=settings),
        max_size=settings.agent_cache_max_size,
        expiration=settings.agent_cache_expiration_seconds,
    )
    memory_sink = InMemoryExecutionLogSink()
    tracker = ExecutionTracker(
        log_sink=CompositeExecutionLogSink(LoggingExecutionLogSink(), memory_sink),
        cleanup_interval=settings.execution_cleanup_interval_seconds,
        retention=settings.execution_retention_seconds,
    )
    invoker = AgentInvoker(
        registry,
        tracker,
        retry_policy=build_retry_policy(settings),
        timeout=settings.agent_invoke_timeout_seconds,
        default_recursion_limit=settings.agent_default_recursion_limit,
    )

    if register_defaults:
        agent_ids = initialize_default_agents(registry)
        logger.info(f"Registered default agents: {', '.join(agent_ids)}")

    return A2APlatform(registry=registry, tracker=tracker, invoker=invoker, log_sink=memory_sink, settings=settings)


def _agent_providers(platform: A2APlatform) -> Dict[str, Dict[str, Any]]:
    """Provider of each registered agent and whether its API key is configured."""
    providers: Dict[str, Dict[str, Any]] = {}
    for agent_id in platform.registry.list_agents():
        model = platform.registry.get_config(agent_id).model
        api_key = model.api_key.get_secret_value() if model.api_key else None
        ready, reason = validate_provider_config(model.provider, api_key, platform.settings)
        providers[agent_id] = {"provider": model.provider.value, "ready": ready, "reason": reason}
    return providers


def get_a2a_status(platform: A2APlatform) -> Dict[str, Any]:
    """Registered agents, provider readiness, cache statistics and execution statistics."""
    return {
        "status": "ok",
        "agents": platform.registry.list_agents(),
        "registered_agents": len(platform.registry.list_agents()),
        "available_providers": [p.value for p in get_available_providers(platform.settings)],
        "agent_providers": _agent_providers(platform),
        "cache": platform.registry.get_cache_stats().model_dump(mode="json"),
        "executions": platform.tracker.get_stats().model_dump(mode="json"),
    }
