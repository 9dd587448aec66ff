"""Maps provider ids to their adapters and display metadata."""

import logging
from typing import Dict, List, Optional, Tuple

from .errors import UnknownProviderError
from .llm import LLM, DeepSeek, Mock, OpenAI, OpenRouter
from .models import ProviderDescriptor
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

MOCK_PROVIDER = ProviderDescriptor(id="mock", display_name="Mock", models=("default",))
OPENAI_PROVIDER = ProviderDescriptor(
    id="openai",
    display_name="OpenAI",
    models=("gpt-4", "gpt-4-turbo", "gpt-4o", "gpt-4o-mini", "gpt-3.5-turbo"),
)
OPENROUTER_PROVIDER = ProviderDescriptor(
    id="openrouter",
    display_name="OpenRouter",
    models=("openai/gpt-4o-mini", "anthropic/claude-3.5-sonnet", "deepseek/deepseek-chat"),
)
DEEPSEEK_PROVIDER = ProviderDescriptor(
    id="deepseek", display_name="DeepSeek", models=("deepseek-chat", "deepseek-reasoner")
)


class ProviderRegistry:
    """Provider lookup, filled once at startup and read-only afterwards."""

    def __init__(self):
        self._entries: Dict[str, Tuple[ProviderDescriptor, LLM]] = {}

    def register(self, descriptor: ProviderDescriptor, adapter: LLM) -> None:
        if descriptor.id in self._entries:
            raise ValueError(f"Provider '{descriptor.id}' is already registered")
        self._entries[descriptor.id] = (descriptor, adapter)
        logger.debug("Registered provider %s (%s)", descriptor.id, type(adapter).__name__)

    def list(self) -> List[ProviderDescriptor]:
        """Returns all descriptors in registration order."""
        return [descriptor for descriptor, _ in self._entries.values()]

    def ids(self) -> List[str]:
        return list(self._entries)

    def resolve(self, provider_id: str) -> LLM:
        return self._lookup(provider_id)[1]

    def describe(self, provider_id: str) -> ProviderDescriptor:
        return self._lookup(provider_id)[0]

    def _lookup(self, provider_id: str) -> Tuple[ProviderDescriptor, LLM]:
        try:
            return self._entries[provider_id]
        except KeyError:
            raise UnknownProviderError(provider_id, self._entries) from None

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def default_registry(settings: Optional[Settings] = None) -> ProviderRegistry:
    """Builds the registry the SDK uses when none is injected.

    The mock and OpenAI providers are always available; OpenRouter and
    DeepSeek are only registered when their API keys are configured.
    """
    settings = settings or get_settings()
    registry = ProviderRegistry()
    registry.register(MOCK_PROVIDER, Mock())

    openai_key = settings.openai_api_key
    if openai_key is None:
        logger.warning(
            "No OpenAI API key configured; requests to 'openai' will be rejected"
        )
    registry.register(
        OPENAI_PROVIDER,
        OpenAI(
            api_key=openai_key.get_secret_value() if openai_key else "",
            base_url=settings.openai_base_url,
            timeout=settings.request_timeout,
        ),
    )

    if settings.openrouter_api_key is not None:
        registry.register(
            OPENROUTER_PROVIDER,
            OpenRouter(
                api_key=settings.openrouter_api_key.get_secret_value(),
                timeout=settings.request_timeout,
            ),
        )
    if settings.deepseek_api_key is not None:
        registry.register(
            DEEPSEEK_PROVIDER,
            DeepSeek(
                api_key=settings.deepseek_api_key.get_secret_value(),
                timeout=settings.request_timeout,
            ),
        )
    return registry
