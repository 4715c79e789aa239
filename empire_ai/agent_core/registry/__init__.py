"""Agent configurations and the cache of built agent instances."""

from .cache import AgentInstanceCache
from .defaults import DEFAULT_AGENTS, initialize_default_agents
from .models import (
    AgentConfig,
    AgentModelConfig,
    CachedAgentEntry,
    CachedAgentStats,
    CacheStats,
    SubAgentConfig,
)
from .registry import AgentBuilder, AgentRegistry

__all__ = [
    "AgentBuilder",
    "AgentConfig",
    "AgentInstanceCache",
    "AgentModelConfig",
    "AgentRegistry",
    "CacheStats",
    "CachedAgentEntry",
    "CachedAgentStats",
    "DEFAULT_AGENTS",
    "SubAgentConfig",
    "initialize_default_agents",
]
