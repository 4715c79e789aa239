"""LLM provider catalogue and model construction.

This module maps a provider name plus model parameters to a ready
``pydantic_ai`` model:

- ``anthropic`` uses ``AnthropicModel``
- ``openai`` uses ``OpenAIResponsesModel``
- ``openrouter``, ``zai``, ``groq``, ``together`` and ``perplexity`` speak the
  OpenAI chat completions API and use ``OpenAIChatModel`` against the
  provider's base URL

API keys come from the agent's own configuration first, then from the
application settings (``<PROVIDER>_API_KEY``). A missing key is a
construction failure and is never retried.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from openai import AsyncOpenAI
from pydantic import BaseModel, Field
from pydantic_ai.settings import ModelSettings
from pydantic_ai.models import Model
from pydantic_ai.models.anthropic import AnthropicModel
from pydantic_ai.models.openai import OpenAIChatModel, OpenAIResponsesModel
from pydantic_ai.providers.anthropic import AnthropicProvider
from pydantic_ai.providers.openai import OpenAIProvider

from .errors import AgentConstructionError

if TYPE_CHECKING:
    from empire_ai.server.core.config import Settings
    from .registry.models import AgentModelConfig

logger = logging.getLogger(__name__)


class LLMProvider(str, Enum):
    """Supported LLM providers."""

    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    OPENROUTER = "openrouter"
    ZAI = "zai"
    GROQ = "groq"
    TOGETHER = "together"
    PERPLEXITY = "perplexity"
    CUSTOM = "custom"

    def __str__(self) -> str:
        return self.value


class OpenAICompatibleEndpoint(BaseModel):
    """Endpoint of a provider that speaks the OpenAI chat completions API."""

    base_url: str = Field(description="API base URL")
    default_model: str = Field(description="Model used when an agent does not name one")


PROVIDER_CONFIGS: Dict[LLMProvider, OpenAICompatibleEndpoint] = {
    LLMProvider.OPENROUTER: OpenAICompatibleEndpoint(
        base_url="https://openrouter.ai/api/v1",
        default_model="anthropic/claude-3.5-sonnet",
    ),
    LLMProvider.ZAI: OpenAICompatibleEndpoint(
        base_url="https://open.bigmodel.cn/api/coding/paas/v4",
        default_model="glm-4.7",
    ),
    LLMProvider.GROQ: OpenAICompatibleEndpoint(
        base_url="https://api.groq.com/openai/v1",
        default_model="llama-3.1-70b-versatile",
    ),
    LLMProvider.TOGETHER: OpenAICompatibleEndpoint(
        base_url="https://api.together.xyz/v1",
        default_model="meta-llama/Meta-Llama-3.1-70B-Instruct-Turbo",
    ),
    LLMProvider.PERPLEXITY: OpenAICompatibleEndpoint(
        base_url="https://api.perplexity.ai",
        default_model="llama-3.1-sonar-large-128k-online",
    ),
}

DEFAULT_MODELS: Dict[LLMProvider, str] = {
    LLMProvider.ANTHROPIC: "claude-sonnet-4-20250514",
    LLMProvider.OPENAI: "gpt-4-turbo-preview",
    **{provider: endpoint.default_model for provider, endpoint in PROVIDER_CONFIGS.items()},
}

# Official environment variable name of each provider's API key
PROVIDER_ENV_VARS: Dict[LLMProvider, str] = {
    LLMProvider.ANTHROPIC: "ANTHROPIC_API_KEY",
    LLMProvider.OPENAI: "OPENAI_API_KEY",
    LLMProvider.OPENROUTER: "OPENROUTER_API_KEY",
    LLMProvider.ZAI: "ZAI_API_KEY",
    LLMProvider.GROQ: "GROQ_API_KEY",
    LLMProvider.TOGETHER: "TOGETHER_API_KEY",
    LLMProvider.PERPLEXITY: "PERPLEXITY_API_KEY",
}


def _get_settings(settings: Optional["Settings"]) -> "Settings":
    if settings is not None:
        return settings
    from empire_ai.server.core.config import settings as config_settings

    return config_settings


def get_provider_api_key(provider: LLMProvider, settings: Optional["Settings"] = None) -> Optional[str]:
    """Look up the configured API key of ``provider``.

    Args:
        provider: Provider to look up
        settings: Optional Settings instance. If not provided, imports from config module.

    Returns:
        The API key if configured, None otherwise (always None for ``custom``)
    """
    if provider is LLMProvider.CUSTOM:
        return None
    return _get_settings(settings).api_key_for(provider.value)


def validate_provider_config(
    provider: LLMProvider,
    api_key: Optional[str] = None,
    settings: Optional["Settings"] = None,
) -> Tuple[bool, Optional[str]]:
    """Check that a provider can be used.

    Returns:
        ``(True, None)`` when a key is available, ``(False, reason)`` otherwise
    """
    if provider is LLMProvider.CUSTOM:
        return False, "Custom providers must be instantiated manually"
    if api_key or get_provider_api_key(provider, settings):
        return True, None
    return False, f"Missing API key for provider {provider.value}. Set {PROVIDER_ENV_VARS[provider]} environment variable."


def get_available_providers(settings: Optional["Settings"] = None) -> List[LLMProvider]:
    """Providers with an API key configured."""
    return [provider for provider in PROVIDER_ENV_VARS if get_provider_api_key(provider, settings)]


def create_model(model_config: "AgentModelConfig", settings: Optional["Settings"] = None) -> Model:
    """Create a pydantic-ai model for an agent.

    Args:
        model_config: Provider, model name and sampling parameters
        settings: Optional Settings instance used for API key and referer lookup

    Returns:
        A pydantic-ai ``Model``

    Raises:
        AgentConstructionError: If the provider is ``custom`` or has no API key
    """
    provider = model_config.provider
    if provider is LLMProvider.CUSTOM:
        raise AgentConstructionError("Custom providers must be instantiated manually", details={"provider": "custom"})

    api_key = model_config.api_key.get_secret_value() if model_config.api_key else None
    api_key = api_key or get_provider_api_key(provider, settings)
    if not api_key:
        raise AgentConstructionError(
            f"API key not found for provider: {provider.value}",
            details={"provider": provider.value, "env_var": PROVIDER_ENV_VARS[provider]},
        )

    model_name = model_config.name or DEFAULT_MODELS[provider]
    model_settings = ModelSettings(temperature=model_config.temperature)

    if provider is LLMProvider.ANTHROPIC:
        logger.debug(f"Creating Anthropic model: {model_name}")
        return AnthropicModel(model_name, provider=AnthropicProvider(api_key=api_key), settings=model_settings)

    if provider is LLMProvider.OPENAI:
        logger.debug(f"Creating OpenAI model: {model_name}")
        openai_provider = (
            OpenAIProvider(base_url=model_config.base_url, api_key=api_key)
            if model_config.base_url
            else OpenAIProvider(api_key=api_key)
        )
        return OpenAIResponsesModel(model_name, provider=openai_provider, settings=model_settings)

    endpoint = PROVIDER_CONFIGS[provider]
    base_url = model_config.base_url or endpoint.base_url
    default_headers: Dict[str, str] = {}
    if provider is LLMProvider.OPENROUTER:
        default_headers = {
            "HTTP-Referer": _get_settings(settings).public_base_url,
            "X-Title": "Agents of Empire",
        }

    logger.debug(f"Creating {provider.value} model: {model_name} at {base_url}")
    client = AsyncOpenAI(base_url=base_url, api_key=api_key, default_headers=default_headers or None)
    return OpenAIChatModel(model_name, provider=OpenAIProvider(openai_client=client), settings=model_settings)
