"""
The main entrypoint for the chatrelay package.

This module contains the ``ChatRelay`` class, the single object applications
talk to. It wires the configuration store, the provider registry and the
router together and exposes a small method set over them.
"""

from typing import AsyncIterator, List, Optional

from . import config, diagnostics, registry, router, settings
from .errors import (
    ChatRelayError,
    MalformedFragmentError,
    TransportError,
    UnknownProviderError,
)
from .models import (
    ChatMessage,
    ChatRequest,
    ChatResponse,
    Complete,
    Configuration,
    Delta,
    Error,
    ProviderDescriptor,
    StreamEvent,
    TokenUsage,
)


class ChatRelay:
    """
    Routes chat requests to interchangeable LLM backends.

    The active backend is whatever the current configuration names; switching
    providers or models at runtime is a configuration update. Outcomes are not
    recorded automatically: callers report them to ``self.diagnostics``.
    """

    def __init__(
        self,
        registry: Optional[registry.ProviderRegistry] = None,
        configuration: Optional[Configuration] = None,
        diagnostics: Optional[diagnostics.DiagnosticsRecorder] = None,
        settings: Optional[settings.Settings] = None,
    ) -> None:
        """
        Initialize the SDK with optional injected collaborators.

        Parameters
        ----------
        registry : registry.ProviderRegistry, optional
            The providers requests can be routed to. Defaults to
            ``registry.default_registry(settings)``: the mock and OpenAI
            providers, plus OpenRouter and DeepSeek when their keys are set.
        configuration : Configuration, optional
            The starting configuration. Defaults to
            ``settings.default_configuration()``.
        diagnostics : diagnostics.DiagnosticsRecorder, optional
            Recorder handed to callers for reporting outcomes. Defaults to a
            fresh, empty recorder.
        settings : settings.Settings, optional
            Environment-derived settings used for the defaults above.
            Defaults to ``settings.get_settings()``.

        Examples
        --------
        Basic usage with defaults:

        >>> relay = ChatRelay()
        >>> relay.get_configuration().provider_id
        'mock'

        Custom configuration:

        >>> relay = ChatRelay(
        ...     configuration=Configuration(provider_id="openai", model="gpt-4o"),
        ... )
        """
        settings_module = globals()["settings"]
        registry_module = globals()["registry"]
        diagnostics_module = globals()["diagnostics"]

        self.settings = (
            settings if settings is not None else settings_module.get_settings()
        )
        self.registry = (
            registry
            if registry is not None
            else registry_module.default_registry(self.settings)
        )
        self.diagnostics = (
            diagnostics
            if diagnostics is not None
            else diagnostics_module.DiagnosticsRecorder()
        )
        self.config_store = config.ConfigStore(
            configuration
            if configuration is not None
            else self.settings.default_configuration()
        )
        self.router = router.Router(self.registry, self.config_store)

    def get_configuration(self) -> Configuration:
        return self.router.get_configuration()

    def set_configuration(self, config: Configuration) -> None:
        self.router.set_configuration(config)

    def update_configuration(self, update: router.ConfigurationUpdate) -> Configuration:
        """Replaces the configuration with a value or ``update(current)``.

        No validation happens here; use ``commands.CommandParser`` (or check
        against ``get_available_providers()``) before committing user input.
        """
        return self.router.update_configuration(update)

    def get_available_providers(self) -> List[ProviderDescriptor]:
        return self.router.get_available_providers()

    def get_provider(self, provider_id: str) -> ProviderDescriptor:
        """Returns the descriptor for ``provider_id``.

        Raises ``UnknownProviderError`` if it is not registered.
        """
        return self.router.get_provider(provider_id)

    async def chat(self, request: ChatRequest) -> ChatResponse:
        """Sends ``request`` to the configured provider and awaits the reply."""
        return await self.router.chat(request)

    def chat_stream(self, request: ChatRequest) -> AsyncIterator[StreamEvent]:
        """Sends ``request`` to the configured provider as a stream.

        Returns an async generator of ``Delta`` events ending in exactly one
        ``Complete`` or ``Error``. Close it (``aclose()`` or
        ``contextlib.aclosing``) to abandon the request early.
        """
        return self.router.chat_stream(request)


__all__ = [
    "ChatRelay",
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "Complete",
    "Configuration",
    "Delta",
    "Error",
    "ProviderDescriptor",
    "StreamEvent",
    "TokenUsage",
    "ChatRelayError",
    "MalformedFragmentError",
    "TransportError",
    "UnknownProviderError",
]
