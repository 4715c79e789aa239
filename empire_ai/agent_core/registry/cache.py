"""Bounded cache of built agent instances.

Two independent eviction policies are composed here:

- **LRU by last access**: entries live in an ``OrderedDict`` kept in access
  order. Inserting into a full cache evicts exactly one entry, the one with
  the oldest ``last_used``.
- **Expiration by age**: on read, an entry older than ``expiration`` seconds
  (measured from ``created_at``) is dropped, however recently it was used.

Evicted instances are simply released: callers that still hold a reference
keep using it until their call finishes.
"""

import logging
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from .models import AgentConfig, CachedAgentEntry, CachedAgentStats, CacheStats

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 10
DEFAULT_EXPIRATION_SECONDS = 3600.0


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AgentInstanceCache:
    """LRU + expiration cache keyed by agent id.

    Attributes:
        max_size: Maximum number of cached instances (>= 1)
        expiration: Age in seconds after which an entry is stale
    """

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        expiration: float = DEFAULT_EXPIRATION_SECONDS,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize the agent cache.

        Args:
            max_size: Maximum number of agents to cache
            expiration: Time-to-live for cached agents in seconds
            clock: Source of "now"; injectable for tests
        """
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self._entries: "OrderedDict[str, CachedAgentEntry]" = OrderedDict()
        self._max_size = max_size
        self._expiration = expiration
        self._clock = clock

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def expiration(self) -> float:
        return self._expiration

    def get(self, agent_id: str) -> Optional[CachedAgentEntry]:
        """Return a fresh entry and mark it used, or None.

        A stale entry is removed and None is returned so the caller rebuilds.
        """
        entry = self._entries.get(agent_id)
        if entry is None:
            return None

        now = self._clock()
        if self._age(entry, now) >= self._expiration:
            logger.debug(f"Cached agent '{agent_id}' expired, dropping it")
            del self._entries[agent_id]
            return None

        entry.last_used = now
        entry.usage_count += 1
        self._entries.move_to_end(agent_id)
        return entry

    def put(self, agent_id: str, config: AgentConfig, agent: Any) -> CachedAgentEntry:
        """Insert a freshly built instance, evicting the LRU entry if the cache is full."""
        self._entries.pop(agent_id, None)
        if len(self._entries) >= self._max_size:
            self._evict_least_recently_used()

        now = self._clock()
        entry = CachedAgentEntry(
            agent_id=agent_id,
            config=config,
            agent=agent,
            created_at=now,
            last_used=now,
        )
        self._entries[agent_id] = entry
        return entry

    def remove(self, agent_id: str) -> bool:
        return self._entries.pop(agent_id, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def has(self, agent_id: str) -> bool:
        return agent_id in self._entries

    def size(self) -> int:
        return len(self._entries)

    def configure(self, *, max_size: Optional[int] = None, expiration: Optional[float] = None) -> None:
        """Change the bounds at runtime.

        Shrinking ``max_size`` below the current size evicts LRU entries
        until the bound holds again.
        """
        if max_size is not None:
            if max_size < 1:
                raise ValueError("max_size must be >= 1")
            self._max_size = max_size
            while len(self._entries) > self._max_size:
                self._evict_least_recently_used()
        if expiration is not None:
            self._expiration = expiration

    def stats(self) -> CacheStats:
        now = self._clock()
        agents: List[CachedAgentStats] = [
            CachedAgentStats(
                agent_id=agent_id,
                usage_count=entry.usage_count,
                age_seconds=self._age(entry, now),
                last_used=entry.last_used,
            )
            for agent_id, entry in self._entries.items()
        ]
        return CacheStats(
            size=len(self._entries),
            max_size=self._max_size,
            expiration_seconds=self._expiration,
            agents=agents,
        )

    def snapshot(self) -> Dict[str, CachedAgentEntry]:
        return dict(self._entries)

    def _evict_least_recently_used(self) -> None:
        agent_id, _ = self._entries.popitem(last=False)
        logger.debug(f"Evicted least recently used agent '{agent_id}'")

    @staticmethod
    def _age(entry: CachedAgentEntry, now: datetime) -> float:
        return (now - entry.created_at).total_seconds()
