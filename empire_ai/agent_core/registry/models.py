"""Agent configuration and cache bookkeeping models."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from ..providers import LLMProvider


class AgentModelConfig(BaseModel):
    """Which LLM backs an agent.

    Attributes:
        provider: LLM provider; ``custom`` models must be instantiated manually
        name: Provider-specific model name
        temperature: Sampling temperature
        api_key: Per-agent key override (falls back to the provider's setting)
        base_url: Custom endpoint for OpenAI-compatible providers
    """

    model_config = ConfigDict(frozen=True)

    provider: LLMProvider
    name: str
    temperature: float = Field(default=0.0, ge=0, le=2)
    api_key: Optional[SecretStr] = None
    base_url: Optional[str] = None


class SubAgentConfig(BaseModel):
    """A specialised helper the parent agent can delegate a task to."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    description: str
    system_prompt: str
    tools: List[Any] = Field(default_factory=list)


class AgentConfig(BaseModel):
    """Static description from which an agent instance is built.

    Registered ahead of time with ``AgentRegistry.register``; immutable once
    created so a cached instance always matches its configuration.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: str = Field(..., min_length=1)
    name: str
    description: str = ""
    model: AgentModelConfig
    system_prompt: str
    tools: List[Any] = Field(default_factory=list, description="Callables or pydantic-ai Tool objects")
    subagents: List[SubAgentConfig] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)
    memory: List[str] = Field(default_factory=list)
    checkpointer: bool = Field(default=True, description="Compile the agent graph with a checkpointer")
    custom: Dict[str, Any] = Field(default_factory=dict)


class CachedAgentEntry(BaseModel):
    """A built agent instance and its usage bookkeeping."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    agent_id: str
    config: AgentConfig
    agent: Any
    created_at: datetime
    last_used: datetime
    usage_count: int = 1


class CachedAgentStats(BaseModel):
    agent_id: str
    usage_count: int
    age_seconds: float
    last_used: datetime


class CacheStats(BaseModel):
    size: int
    max_size: int
    expiration_seconds: float
    agents: List[CachedAgentStats] = Field(default_factory=list)
