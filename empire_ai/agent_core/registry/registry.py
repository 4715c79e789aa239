"""Agent registry: configurations plus a cache of built instances.

Building an agent (model client, tools, compiled graph) is the expensive
step, so the registry amortizes it across requests:

- ``register``/``unregister`` maintain the configuration table
- ``get_agent`` returns a cached instance when one is fresh, otherwise it
  builds one through the injected ``AgentBuilder`` and caches it

The configuration table and the instance cache are separate: registering a
configuration never builds anything, and evicting an instance never forgets
its configuration.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Protocol

from ..errors import AgentNotFoundError
from .cache import DEFAULT_EXPIRATION_SECONDS, DEFAULT_MAX_SIZE, AgentInstanceCache
from .models import AgentConfig, CacheStats

logger = logging.getLogger(__name__)


class AgentBuilder(Protocol):
    """Builds a runnable agent (``ainvoke``/``astream``) from its configuration."""

    async def build(self, config: AgentConfig) -> Any: ...


class AgentRegistry:
    """
    Registry of agent configurations with a bounded instance cache.

    Errors raised by the builder (for example a missing provider API key)
    propagate unchanged; the registry never retries construction.
    """

    def __init__(
        self,
        builder: AgentBuilder,
        *,
        cache: Optional[AgentInstanceCache] = None,
    ) -> None:
        """
        Initialize an empty agent registry.

        Args:
            builder: Constructs agent instances from configurations.
            cache: Instance cache (a default-sized one is created if omitted).
        """
        self._builder = builder
        self._configs: Dict[str, AgentConfig] = {}
        self._cache = cache if cache is not None else AgentInstanceCache(max_size=DEFAULT_MAX_SIZE, expiration=DEFAULT_EXPIRATION_SECONDS)

    @classmethod
    def with_cache_config(
        cls,
        builder: AgentBuilder,
        *,
        max_size: int = DEFAULT_MAX_SIZE,
        expiration: float = DEFAULT_EXPIRATION_SECONDS,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "AgentRegistry":
        if clock is None:
            cache = AgentInstanceCache(max_size=max_size, expiration=expiration)
        else:
            cache = AgentInstanceCache(max_size=max_size, expiration=expiration, clock=clock)
        return cls(builder, cache=cache)

    def register(self, config: AgentConfig) -> None:
        """
        Register (or replace) an agent configuration.

        Replacing a configuration drops any instance built from the old one.
        """
        if config.id in self._configs:
            self._cache.remove(config.id)
        self._configs[config.id] = config
        logger.debug(f"Registered agent '{config.id}' ({config.model.provider.value}:{config.model.name})")

    def unregister(self, agent_id: str) -> None:
        """Forget an agent configuration and evict its cached instance."""
        self._configs.pop(agent_id, None)
        self._cache.remove(agent_id)
        logger.debug(f"Unregistered agent '{agent_id}'")

    def has(self, agent_id: str) -> bool:
        return agent_id in self._configs

    def get_config(self, agent_id: str) -> Optional[AgentConfig]:
        return self._configs.get(agent_id)

    def list_agents(self) -> List[str]:
        return list(self._configs)

    async def get_agent(self, agent_id: str) -> Any:
        """
        Return a ready agent instance, building it if needed.

        Args:
            agent_id: The agent identifier to look up.

        Returns:
            The cached or freshly built agent instance.

        Raises:
            AgentNotFoundError: If no configuration is registered for ``agent_id``.
        """
        cached = self._cache.get(agent_id)
        if cached is not None:
            return cached.agent

        config = self._configs.get(agent_id)
        if config is None:
            raise AgentNotFoundError(agent_id)

        logger.info(f"Building agent '{agent_id}'")
        agent = await self._builder.build(config)
        self._cache.put(agent_id, config, agent)
        return agent

    def get_cache_stats(self) -> CacheStats:
        return self._cache.stats()

    def set_cache_config(self, *, max_size: Optional[int] = None, expiration: Optional[float] = None) -> None:
        """Adjust cache bounds at runtime (``expiration`` in seconds)."""
        self._cache.configure(max_size=max_size, expiration=expiration)

    def clear_cache(self) -> None:
        self._cache.clear()

    @property
    def cache(self) -> AgentInstanceCache:
        return self._cache
