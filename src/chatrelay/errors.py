"""Exceptions raised by the router, the registry and the provider adapters."""

from typing import Iterable, Optional


class ChatRelayError(Exception):
    """Base class for all SDK errors."""


class UnknownProviderError(ChatRelayError):
    """Raised when a provider id is not in the registry."""

    def __init__(self, provider_id: str, known_ids: Iterable[str]):
        self.provider_id = provider_id
        self.known_ids = tuple(known_ids)
        available = ", ".join(self.known_ids) or "none"
        super().__init__(
            f"Provider '{provider_id}' is not registered. Available: {available}"
        )


class TransportError(ChatRelayError):
    """Network or HTTP failure inside a provider adapter."""

    def __init__(
        self,
        message: str,
        provider_id: str = "",
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.provider_id = provider_id
        self.status_code = status_code


class MalformedFragmentError(ChatRelayError, ValueError):
    """A single streamed data line could not be decoded."""

    def __init__(self, message: str, line: str = ""):
        super().__init__(message)
        self.line = line
