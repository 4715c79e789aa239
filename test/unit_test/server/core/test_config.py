"""Unit tests for server configuration settings model.

Tests verify that the Settings model binds environment variables and that the
grouped configuration models are derived from it correctly.
"""

import pytest
from pydantic import ValidationError

from empire_ai.server.core.config import (
    AgentCacheConfig,
    CORSConfig,
    ExecutionRetentionConfig,
    ProviderKeysConfig,
    RateLimitConfig,
    Settings,
)

BOUND_ENV_VARS = (
    "EMPIRE_AI_SERVER_HOST",
    "EMPIRE_AI_SERVER_PORT",
    "EMPIRE_AI_LOG_LEVEL",
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
    "OPENROUTER_API_KEY",
    "A2A_API_KEY",
    "AGENT_CACHE_MAX_SIZE",
    "AGENT_CACHE_EXPIRATION_SECONDS",
    "EXECUTION_RETENTION_SECONDS",
    "EXECUTION_CLEANUP_INTERVAL_SECONDS",
    "AGENT_INVOKE_TIMEOUT_SECONDS",
    "AGENT_RETRY_MAX_RETRIES",
    "CORS_ORIGINS",
    "A2A_RATE_LIMIT_ENABLED",
    "A2A_RATE_LIMIT_MAX_REQUESTS",
    "A2A_RATE_LIMIT_WINDOW_SECONDS",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in BOUND_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestSettingsDefaults:
    """Test Settings defaults without any environment."""

    def test_server_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.server_host == "0.0.0.0"
        assert settings.server_port == 8000
        assert settings.log_level == "INFO"
        assert settings.enable_file_logging is False

    def test_a2a_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.a2a_api_key is None
        assert settings.agent_invoke_timeout_seconds == 300
        assert settings.agent_default_recursion_limit == 50
        assert settings.agent_cache_max_size == 10
        assert settings.agent_cache_expiration_seconds == 3600
        assert settings.execution_retention_seconds == 3600
        assert settings.execution_cleanup_interval_seconds == 300
        assert settings.agent_retry_max_retries == 3
        assert settings.agent_retry_base_delay_seconds == 2
        assert settings.agent_retry_max_delay_seconds == 30


class TestSettingsBinding:
    """Test Settings model environment variable binding."""

    def test_server_binding(self, monkeypatch):
        monkeypatch.setenv("EMPIRE_AI_SERVER_HOST", "127.0.0.1")
        monkeypatch.setenv("EMPIRE_AI_SERVER_PORT", "9001")
        monkeypatch.setenv("EMPIRE_AI_LOG_LEVEL", "DEBUG")

        settings = Settings(_env_file=None)
        assert settings.server_host == "127.0.0.1"
        assert settings.server_port == 9001
        assert settings.log_level == "DEBUG"

    def test_cache_and_retention_binding(self, monkeypatch):
        monkeypatch.setenv("AGENT_CACHE_MAX_SIZE", "4")
        monkeypatch.setenv("AGENT_CACHE_EXPIRATION_SECONDS", "60")
        monkeypatch.setenv("EXECUTION_RETENTION_SECONDS", "120")
        monkeypatch.setenv("EXECUTION_CLEANUP_INTERVAL_SECONDS", "15")

        settings = Settings(_env_file=None)
        assert settings.agent_cache_max_size == 4
        assert settings.agent_cache_expiration_seconds == 60
        assert settings.execution_retention_seconds == 120
        assert settings.execution_cleanup_interval_seconds == 15

    def test_api_keys_are_secret(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
        monkeypatch.setenv("A2A_API_KEY", "shared")

        settings = Settings(_env_file=None)
        assert settings.anthropic_api_key.get_secret_value() == "sk-ant-test"
        assert "sk-ant-test" not in repr(settings)
        assert settings.a2a_api_key.get_secret_value() == "shared"

    def test_cors_origins_from_json(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", '["https://app.example"]')

        settings = Settings(_env_file=None)
        assert settings.cors_origins == ["https://app.example"]

    @pytest.mark.parametrize(
        ("name", "value"),
        [
            ("AGENT_CACHE_MAX_SIZE", "0"),
            ("AGENT_INVOKE_TIMEOUT_SECONDS", "0"),
            ("AGENT_RETRY_MAX_RETRIES", "-1"),
        ],
    )
    def test_invalid_values_rejected(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)

        with pytest.raises(ValidationError):
            Settings(_env_file=None)


class TestGroupedConfigs:
    """Test the grouped configuration properties."""

    def test_provider_keys(self):
        settings = Settings(_env_file=None, ANTHROPIC_API_KEY="a-key", OPENROUTER_API_KEY="or-key")

        keys = settings.provider_keys
        assert isinstance(keys, ProviderKeysConfig)
        assert keys.anthropic.get_secret_value() == "a-key"
        assert keys.openrouter.get_secret_value() == "or-key"
        assert keys.openai is None

    def test_api_key_for(self):
        settings = Settings(_env_file=None, ANTHROPIC_API_KEY="a-key", OPENAI_API_KEY="")

        assert settings.api_key_for("anthropic") == "a-key"
        assert settings.api_key_for("openai") is None
        assert settings.api_key_for("groq") is None
        assert settings.api_key_for("unknown") is None

    def test_agent_cache(self):
        settings = Settings(_env_file=None, agent_cache_max_size=5, agent_cache_expiration_seconds=90)

        cache = settings.agent_cache
        assert isinstance(cache, AgentCacheConfig)
        assert cache.max_size == 5
        assert cache.expiration_seconds == 90

    def test_execution_retention(self):
        settings = Settings(_env_file=None, execution_retention_seconds=30, execution_cleanup_interval_seconds=5)

        retention = settings.execution_retention
        assert isinstance(retention, ExecutionRetentionConfig)
        assert retention.retention_seconds == 30
        assert retention.cleanup_interval_seconds == 5

    def test_cors(self):
        settings = Settings(_env_file=None, cors_origins=["https://a.example"], cors_allow_credentials=False)

        cors = settings.cors
        assert isinstance(cors, CORSConfig)
        assert cors.origins == ["https://a.example"]
        assert cors.allow_credentials is False
        assert cors.allow_methods == ["*"]

    def test_rate_limit_defaults(self):
        rate_limit = Settings(_env_file=None).rate_limit

        assert isinstance(rate_limit, RateLimitConfig)
        assert (rate_limit.enabled, rate_limit.max_requests, rate_limit.window_seconds) == (True, 60, 60)

    def test_rate_limit_from_env(self, monkeypatch):
        monkeypatch.setenv("A2A_RATE_LIMIT_ENABLED", "false")
        monkeypatch.setenv("A2A_RATE_LIMIT_MAX_REQUESTS", "5")
        monkeypatch.setenv("A2A_RATE_LIMIT_WINDOW_SECONDS", "10")

        rate_limit = Settings(_env_file=None).rate_limit

        assert (rate_limit.enabled, rate_limit.max_requests, rate_limit.window_seconds) == (False, 5, 10)
