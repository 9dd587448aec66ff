"""
The router: resolves the active provider from configuration and dispatches.
"""

import logging
import time
from typing import AsyncIterator, Callable, List, Union

from .config import ConfigStore
from .models import (
    ChatRequest,
    ChatResponse,
    Configuration,
    ProviderDescriptor,
    StreamEvent,
)
from .registry import ProviderRegistry

logger = logging.getLogger(__name__)

ConfigurationUpdate = Union[Configuration, Callable[[Configuration], Configuration]]


class Router:
    """Dispatches chat requests to the adapter named by the configuration.

    ``chat`` reports its own wall-clock latency. ``chat_stream`` hands back the
    adapter's stream untouched, so the latency inside its ``Complete`` event is
    the adapter's measurement.
    """

    def __init__(self, registry: ProviderRegistry, config_store: ConfigStore):
        self.registry = registry
        self.config_store = config_store

    def get_configuration(self) -> Configuration:
        return self.config_store.get()

    def set_configuration(self, config: Configuration) -> None:
        self.config_store.set(config)

    def update_configuration(self, update: ConfigurationUpdate) -> Configuration:
        """Replaces the configuration with a value or with ``update(current)``."""
        if isinstance(update, Configuration):
            self.config_store.set(update)
            return update
        return self.config_store.update(update)

    def get_available_providers(self) -> List[ProviderDescriptor]:
        return self.registry.list()

    def get_provider(self, provider_id: str) -> ProviderDescriptor:
        return self.registry.describe(provider_id)

    async def chat(self, request: ChatRequest) -> ChatResponse:
        """Runs a non-streaming request.

        Raises
        ------
        UnknownProviderError
            If the configured provider is not registered.
        Exception
            Whatever the adapter raised, unchanged.
        """
        config = self.config_store.get()
        adapter = self.registry.resolve(config.provider_id)
        self._log_request(request, config)

        start = time.perf_counter()
        response = await adapter.complete(request, config)
        latency_ms = int((time.perf_counter() - start) * 1000)

        response = response.model_copy(update={"latency_ms": latency_ms})
        self._log_response(response)
        return response

    def chat_stream(self, request: ChatRequest) -> AsyncIterator[StreamEvent]:
        """Starts a streaming request.

        The provider is resolved now, so an unknown provider raises here
        rather than during iteration.
        """
        config = self.config_store.get()
        adapter = self.registry.resolve(config.provider_id)
        self._log_request(request, config, stream=True)
        return adapter.stream(request, config)

    def _log_request(
        self, request: ChatRequest, config: Configuration, stream: bool = False
    ) -> None:
        logger.debug(
            "Chat request: %s:%s messages=%d temp=%s max_tokens=%d stream=%s",
            config.provider_id,
            config.model,
            len(request.messages),
            config.temperature,
            config.max_tokens,
            stream,
        )

    def _log_response(self, response: ChatResponse) -> None:
        usage = response.token_usage
        logger.debug(
            "Chat response: %s:%s latency=%dms tokens=%s",
            response.provider_id,
            response.model,
            response.latency_ms,
            usage.total_tokens if usage else "unknown",
        )
