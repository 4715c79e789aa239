"""Agents available out of the box."""

from typing import List

from ..providers import LLMProvider
from .models import AgentConfig, AgentModelConfig
from .registry import AgentRegistry

DEFAULT_AGENT_MODEL = "claude-sonnet-4-20250514"

DEFAULT_AGENTS = (
    AgentConfig(
        id="default",
        name="Default Agent",
        description="A general-purpose AI assistant",
        model=AgentModelConfig(provider=LLMProvider.ANTHROPIC, name=DEFAULT_AGENT_MODEL, temperature=0),
        system_prompt="You are a helpful AI assistant.",
        checkpointer=True,
    ),
    AgentConfig(
        id="research",
        name="Research Agent",
        description="Specialized in research and analysis",
        model=AgentModelConfig(provider=LLMProvider.ANTHROPIC, name=DEFAULT_AGENT_MODEL, temperature=0),
        system_prompt=(
            "You are an expert researcher focused on finding accurate information and providing thorough analysis."
        ),
        checkpointer=True,
    ),
    AgentConfig(
        id="creative",
        name="Creative Agent",
        description="Specialized in creative writing and ideation",
        model=AgentModelConfig(provider=LLMProvider.ANTHROPIC, name=DEFAULT_AGENT_MODEL, temperature=0.7),
        system_prompt=(
            "You are a creative AI assistant specialized in writing, brainstorming, and generating innovative ideas."
        ),
        checkpointer=True,
    ),
)


def initialize_default_agents(registry: AgentRegistry) -> List[str]:
    """Register the built-in agents and return their ids."""
    for config in DEFAULT_AGENTS:
        registry.register(config)
    return [config.id for config in DEFAULT_AGENTS]
