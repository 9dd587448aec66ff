"""Tests for environment-driven settings."""

import pytest
from chatrelay.models import Configuration
from chatrelay.settings import Settings, get_settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "CHATRELAY_PROVIDER_ID",
        "CHATRELAY_MODEL",
        "CHATRELAY_TEMPERATURE",
        "CHATRELAY_MAX_TOKENS",
        "CHATRELAY_OPENAI_API_KEY",
        "OPENAI_API_KEY",
        "OPENROUTER_API_KEY",
        "DEEPSEEK_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    def test_defaults(self, clean_env):
        settings = Settings(_env_file=None)

        assert settings.default_configuration() == Configuration(
            provider_id="mock", model="default", temperature=0.7, max_tokens=500
        )
        assert settings.openai_api_key is None
        assert settings.request_timeout == 60.0

    def test_prefixed_environment(self, clean_env):
        clean_env.setenv("CHATRELAY_PROVIDER_ID", "openai")
        clean_env.setenv("CHATRELAY_MODEL", "gpt-4o")
        clean_env.setenv("CHATRELAY_TEMPERATURE", "1.1")
        clean_env.setenv("CHATRELAY_MAX_TOKENS", "128")

        config = Settings(_env_file=None).default_configuration()

        assert config == Configuration(
            provider_id="openai", model="gpt-4o", temperature=1.1, max_tokens=128
        )

    def test_standard_key_variable(self, clean_env):
        clean_env.setenv("OPENAI_API_KEY", "sk-standard")
        settings = Settings(_env_file=None)
        assert settings.openai_api_key.get_secret_value() == "sk-standard"

    def test_prefixed_key_wins(self, clean_env):
        clean_env.setenv("OPENAI_API_KEY", "sk-standard")
        clean_env.setenv("CHATRELAY_OPENAI_API_KEY", "sk-prefixed")
        settings = Settings(_env_file=None)
        assert settings.openai_api_key.get_secret_value() == "sk-prefixed"

    def test_keys_hidden_in_repr(self, clean_env):
        clean_env.setenv("OPENAI_API_KEY", "sk-hidden")
        settings = Settings(_env_file=None)
        assert "sk-hidden" not in repr(settings)
        assert "sk-hidden" not in str(settings.model_dump())

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
