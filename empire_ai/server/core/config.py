"""
Configuration Settings.

This module defines the application configuration using Pydantic's BaseSettings.
It automatically loads all configuration from environment variables and .env file
without explicit dotenv loading.
"""

from typing import Optional

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# =====================================================================
# Grouped Configuration Models
# =====================================================================


class ProviderKeysConfig(BaseModel):
    """API keys of the supported LLM providers."""

    anthropic: Optional[SecretStr] = Field(default=None, alias="ANTHROPIC_API_KEY")
    openai: Optional[SecretStr] = Field(default=None, alias="OPENAI_API_KEY")
    openrouter: Optional[SecretStr] = Field(default=None, alias="OPENROUTER_API_KEY")
    zai: Optional[SecretStr] = Field(default=None, alias="ZAI_API_KEY")
    groq: Optional[SecretStr] = Field(default=None, alias="GROQ_API_KEY")
    together: Optional[SecretStr] = Field(default=None, alias="TOGETHER_API_KEY")
    perplexity: Optional[SecretStr] = Field(default=None, alias="PERPLEXITY_API_KEY")

    model_config = {"populate_by_name": True}


class AgentCacheConfig(BaseModel):
    """Bounds of the agent instance cache."""

    max_size: int = Field(default=10, ge=1, alias="AGENT_CACHE_MAX_SIZE")
    expiration_seconds: float = Field(default=3600, gt=0, alias="AGENT_CACHE_EXPIRATION_SECONDS")

    model_config = {"populate_by_name": True}


class ExecutionRetentionConfig(BaseModel):
    """Retention of finished execution records."""

    retention_seconds: float = Field(default=3600, gt=0, alias="EXECUTION_RETENTION_SECONDS")
    cleanup_interval_seconds: float = Field(default=300, gt=0, alias="EXECUTION_CLEANUP_INTERVAL_SECONDS")

    model_config = {"populate_by_name": True}


class RateLimitConfig(BaseModel):
    """Per-client request limits of the invoke and stream endpoints."""

    enabled: bool = Field(default=True, alias="A2A_RATE_LIMIT_ENABLED")
    max_requests: int = Field(default=60, ge=1, alias="A2A_RATE_LIMIT_MAX_REQUESTS")
    window_seconds: float = Field(default=60, gt=0, alias="A2A_RATE_LIMIT_WINDOW_SECONDS")

    model_config = {"populate_by_name": True}


class CORSConfig(BaseModel):
    """CORS configuration."""

    origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS", description="Allowed CORS origins (use * for all)")
    allow_credentials: bool = Field(
        default=True, alias="CORS_ALLOW_CREDENTIALS", description="Allow credentials in CORS requests"
    )
    allow_methods: list[str] = Field(
        default=["*"], alias="CORS_ALLOW_METHODS", description="Allowed HTTP methods (use * for all)"
    )
    allow_headers: list[str] = Field(
        default=["*"], alias="CORS_ALLOW_HEADERS", description="Allowed HTTP headers (use * for all)"
    )

    model_config = {"populate_by_name": True}


# =====================================================================
# Main Settings Class
# =====================================================================


class Settings(BaseSettings):
    """
    Application settings model.

    All properties are automatically bound from environment variables and .env file.
    Pydantic's BaseSettings handles dotenv loading automatically via model_config.
    """

    # =====================================================================
    # Pydantic Configuration
    # =====================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    # =====================================================================
    # Empire-AI Server Configuration
    # =====================================================================
    server_host: str = Field(
        default="0.0.0.0",
        description="Empire-AI server host address to bind to",
        alias="EMPIRE_AI_SERVER_HOST",
    )
    server_port: int = Field(
        default=8000,
        description="Empire-AI server port number",
        alias="EMPIRE_AI_SERVER_PORT",
    )
    public_base_url: str = Field(
        default="http://localhost:3000",
        description="Public URL of the application, sent as referer to OpenRouter",
        alias="PUBLIC_BASE_URL",
    )

    # =====================================================================
    # Logging Configuration
    # =====================================================================
    log_level: str = Field(
        default="INFO",
        description="Empire-AI server logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        alias="EMPIRE_AI_LOG_LEVEL",
    )
    log_format: str = Field(
        default="detailed",
        description="Log format: simple, detailed or json",
        alias="EMPIRE_AI_LOG_FORMAT",
    )
    log_file_dir: str = Field(
        default="logs",
        description="Directory for log files when file logging is enabled",
        alias="EMPIRE_AI_LOG_FILE_DIR",
    )
    enable_file_logging: bool = Field(
        default=False,
        description="Also write logs to empire_ai.log in log_file_dir",
        alias="EMPIRE_AI_ENABLE_FILE_LOGGING",
    )

    # =====================================================================
    # LLM Provider API Keys
    # =====================================================================
    anthropic_api_key: Optional[SecretStr] = Field(default=None, alias="ANTHROPIC_API_KEY")
    openai_api_key: Optional[SecretStr] = Field(default=None, alias="OPENAI_API_KEY")
    openrouter_api_key: Optional[SecretStr] = Field(default=None, alias="OPENROUTER_API_KEY")
    zai_api_key: Optional[SecretStr] = Field(default=None, alias="ZAI_API_KEY")
    groq_api_key: Optional[SecretStr] = Field(default=None, alias="GROQ_API_KEY")
    together_api_key: Optional[SecretStr] = Field(default=None, alias="TOGETHER_API_KEY")
    perplexity_api_key: Optional[SecretStr] = Field(default=None, alias="PERPLEXITY_API_KEY")

    # =====================================================================
    # A2A Configuration
    # =====================================================================
    a2a_api_key: Optional[SecretStr] = Field(
        default=None,
        description="Shared key required in the X-API-Key header (open access when unset)",
        alias="A2A_API_KEY",
    )
    agent_invoke_timeout_seconds: float = Field(
        default=300,
        gt=0,
        description="Upper bound for a single agent invocation, retries included",
        alias="AGENT_INVOKE_TIMEOUT_SECONDS",
    )
    agent_default_recursion_limit: int = Field(
        default=50,
        ge=1,
        description="LangGraph recursion limit used when a request does not set one",
        alias="AGENT_DEFAULT_RECURSION_LIMIT",
    )

    a2a_rate_limit_enabled: bool = Field(
        default=True,
        description="Limit invoke and stream requests per client",
        alias="A2A_RATE_LIMIT_ENABLED",
    )
    a2a_rate_limit_max_requests: int = Field(default=60, ge=1, alias="A2A_RATE_LIMIT_MAX_REQUESTS")
    a2a_rate_limit_window_seconds: float = Field(default=60, gt=0, alias="A2A_RATE_LIMIT_WINDOW_SECONDS")

    # =====================================================================
    # Agent Cache and Execution Retention
    # =====================================================================
    agent_cache_max_size: int = Field(default=10, ge=1, alias="AGENT_CACHE_MAX_SIZE")
    agent_cache_expiration_seconds: float = Field(default=3600, gt=0, alias="AGENT_CACHE_EXPIRATION_SECONDS")
    execution_retention_seconds: float = Field(default=3600, gt=0, alias="EXECUTION_RETENTION_SECONDS")
    execution_cleanup_interval_seconds: float = Field(default=300, gt=0, alias="EXECUTION_CLEANUP_INTERVAL_SECONDS")

    # =====================================================================
    # Retry Configuration
    # =====================================================================
    agent_retry_max_retries: int = Field(default=3, ge=0, alias="AGENT_RETRY_MAX_RETRIES")
    agent_retry_base_delay_seconds: float = Field(default=2, ge=0, alias="AGENT_RETRY_BASE_DELAY_SECONDS")
    agent_retry_max_delay_seconds: float = Field(default=30, ge=0, alias="AGENT_RETRY_MAX_DELAY_SECONDS")

    # =====================================================================
    # CORS Configuration
    # =====================================================================
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(default=["*"], alias="CORS_ALLOW_METHODS")
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    # =====================================================================
    # Computed Properties (Grouped Configurations)
    # =====================================================================

    @property
    def provider_keys(self) -> ProviderKeysConfig:
        """Get LLM provider API keys from environment variables."""
        return ProviderKeysConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def agent_cache(self) -> AgentCacheConfig:
        """Get agent cache bounds from environment variables."""
        return AgentCacheConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def execution_retention(self) -> ExecutionRetentionConfig:
        """Get execution retention settings from environment variables."""
        return ExecutionRetentionConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def rate_limit(self) -> RateLimitConfig:
        """Get request rate limits from environment variables."""
        return RateLimitConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def cors(self) -> CORSConfig:
        """Get CORS configuration from environment variables."""
        return CORSConfig.model_validate(self.model_dump(by_alias=True))

    def api_key_for(self, provider: str) -> Optional[str]:
        """Plain-text API key of ``provider`` (e.g. ``"anthropic"``), or None if unset."""
        secret = getattr(self.provider_keys, provider, None)
        if secret is None:
            return None
        return secret.get_secret_value() or None


settings = Settings()
