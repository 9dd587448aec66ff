"""Startup settings read from the environment (prefix ``CHATRELAY_``)."""

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import Configuration


class Settings(BaseSettings):
    # Initial configuration
    provider_id: str = "mock"
    model: str = "default"
    temperature: float = 0.7
    max_tokens: int = 500

    # Credentials are kept as secrets so they never show up in reprs or logs.
    openai_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("CHATRELAY_OPENAI_API_KEY", "OPENAI_API_KEY"),
    )
    openai_base_url: str = "https://api.openai.com/v1"
    openrouter_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices(
            "CHATRELAY_OPENROUTER_API_KEY", "OPENROUTER_API_KEY"
        ),
    )
    deepseek_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("CHATRELAY_DEEPSEEK_API_KEY", "DEEPSEEK_API_KEY"),
    )

    # Transport
    request_timeout: float = 60.0

    model_config = SettingsConfigDict(
        env_prefix="CHATRELAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    def default_configuration(self) -> Configuration:
        """Builds the configuration the SDK starts with."""
        return Configuration(
            provider_id=self.provider_id,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
