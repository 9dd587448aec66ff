"""Concrete implementations for LLM providers."""

import asyncio
import logging
import os
import random
import re
import time
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

import httpx

from .errors import TransportError
from .models import (
    ChatRequest,
    ChatResponse,
    Complete,
    Configuration,
    Delta,
    Error,
    StreamEvent,
    TokenUsage,
)
from .streaming import StreamAccumulator, extract_usage

logger = logging.getLogger(__name__)


class LLM(ABC):
    """Abstract Base Class for all LLM providers."""

    @abstractmethod
    async def complete(
        self, request: ChatRequest, config: Configuration
    ) -> ChatResponse:
        """Generates a complete response from the LLM provider.

        Parameters
        ----------
        request : ChatRequest
            The conversation so far, oldest message first.
        config : Configuration
            The configuration the call was routed with. The response must
            report ``config.provider_id`` and ``config.model``.

        Returns
        -------
        ChatResponse
            The reply. Its ``latency_ms`` is advisory; the router replaces it
            with its own measurement.
        """
        pass

    @abstractmethod
    def stream(
        self, request: ChatRequest, config: Configuration
    ) -> AsyncIterator[StreamEvent]:
        """Streams the response as events.

        Implementations are async generators yielding zero or more ``Delta``
        events followed by exactly one ``Complete`` or ``Error``. Failures are
        delivered as the ``Error`` event, never raised. Closing the generator
        early must release any network resource it holds.

        Parameters
        ----------
        request : ChatRequest
            The conversation so far, oldest message first.
        config : Configuration
            The configuration the call was routed with.

        Returns
        -------
        AsyncIterator[StreamEvent]
            The event stream.
        """
        pass


# --- Mock ---

_TOKEN_PATTERN = re.compile(r"\S+\s*|\s+")


def estimate_usage(request: ChatRequest, reply: str) -> TokenUsage:
    """Approximates token counts as a quarter of the character count."""
    prompt_chars = [len(message.content) for message in request.messages]
    return TokenUsage(
        prompt_tokens=sum(chars // 4 for chars in prompt_chars),
        completion_tokens=len(reply) // 4,
        total_tokens=(sum(prompt_chars) + len(reply)) // 4,
    )


class Mock(LLM):
    """Offline provider returning canned replies with simulated delays."""

    def __init__(
        self,
        delay: Tuple[float, float] = (0.5, 1.5),
        token_delay: Tuple[float, float] = (0.05, 0.15),
        rng: Optional[random.Random] = None,
    ):
        self.delay = delay
        self.token_delay = token_delay
        self._rng = rng or random.Random()

    def generate_reply(self, request: ChatRequest) -> str:
        last_message = request.messages[-1].content if request.messages else ""
        lowered = last_message.lower()

        if "hello" in lowered:
            return "Hello! I'm a mock AI assistant. How can I help you today?"
        if "weather" in lowered:
            return (
                "I'm a mock provider, so I don't have real weather data. "
                "But let's pretend it's sunny and 72°F!"
            )
        if "test" in lowered:
            return (
                "This is a test response from the mock provider. "
                "All systems are working correctly!"
            )
        if len(last_message) > 100:
            return (
                "That's quite a long message! In a real scenario, I would provide "
                "a detailed response. For now, here's a mock reply."
            )
        return (
            f'This is a mock response to your message: "{last_message}". '
            "The mock provider simulates AI responses for testing purposes."
        )

    async def complete(
        self, request: ChatRequest, config: Configuration
    ) -> ChatResponse:
        delay = self._rng.uniform(*self.delay)
        await asyncio.sleep(delay)
        reply = self.generate_reply(request)
        return ChatResponse(
            text=reply,
            provider_id=config.provider_id,
            model=config.model,
            latency_ms=int(delay * 1000),
            token_usage=estimate_usage(request, reply),
        )

    async def stream(
        self, request: ChatRequest, config: Configuration
    ) -> AsyncIterator[StreamEvent]:
        start = time.perf_counter()
        reply = self.generate_reply(request)

        for token in _TOKEN_PATTERN.findall(reply):
            await asyncio.sleep(self._rng.uniform(*self.token_delay))
            yield Delta(text=token)

        yield Complete(
            response=ChatResponse(
                text=reply,
                provider_id=config.provider_id,
                model=config.model,
                latency_ms=int((time.perf_counter() - start) * 1000),
                token_usage=estimate_usage(request, reply),
            )
        )


# --- OpenAI-compatible HTTP backends ---


class OpenAI(LLM):
    """Chat completions over HTTP for OpenAI and wire-compatible services.

    The bearer token is only ever sent in the ``Authorization`` header. Pass
    ``client`` to share a connection pool (or a mock transport); the adapter
    never closes a client it did not create.
    """

    default_base_url = "https://api.openai.com/v1"
    api_key_env = "OPENAI_API_KEY"
    extra_headers: Dict[str, str] = {}

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._api_key = (
            api_key if api_key is not None else os.environ.get(self.api_key_env, "")
        )
        self.base_url = (base_url or self.default_base_url).rstrip("/")
        self.timeout = timeout
        self._client = client

    @property
    def url(self) -> str:
        return f"{self.base_url}/chat/completions"

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        headers.update(self.extra_headers)
        return headers

    def build_payload(
        self, request: ChatRequest, config: Configuration, stream: bool
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": config.model,
            "messages": self._format_messages(request),
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
            "stream": stream,
        }
        if stream:
            payload["stream_options"] = {"include_usage": True}
        return payload

    def _format_messages(self, request: ChatRequest) -> List[Dict[str, str]]:
        return [
            {"role": message.role, "content": message.content}
            for message in request.messages
        ]

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            yield client

    def _http_error(
        self, config: Configuration, status_code: int, body: str
    ) -> TransportError:
        logger.warning(
            "Chat completion request failed",
            extra={
                "provider_id": config.provider_id,
                "model": config.model,
                "status_code": status_code,
            },
        )
        return TransportError(
            f"{config.provider_id} API error ({status_code}): {body.strip()[:500]}",
            provider_id=config.provider_id,
            status_code=status_code,
        )

    async def complete(
        self, request: ChatRequest, config: Configuration
    ) -> ChatResponse:
        payload = self.build_payload(request, config, stream=False)
        start = time.perf_counter()
        try:
            async with self._session() as client:
                response = await client.post(
                    self.url, json=payload, headers=self._headers()
                )
        except httpx.HTTPError as e:
            raise TransportError(
                f"Request to {config.provider_id} failed: {e}",
                provider_id=config.provider_id,
            ) from e

        if not response.is_success:
            raise self._http_error(config, response.status_code, response.text)
        if not response.content:
            raise TransportError(
                f"Empty response from {config.provider_id}",
                provider_id=config.provider_id,
                status_code=response.status_code,
            )

        try:
            body = response.json()
            choices = body.get("choices") or [{}]
            message = choices[0].get("message") or {}
            text = message.get("content") or ""
            usage = extract_usage(body)
        except (ValueError, AttributeError, IndexError, TypeError) as e:
            raise TransportError(
                f"Invalid response from {config.provider_id}: {e}",
                provider_id=config.provider_id,
                status_code=response.status_code,
            ) from e

        return ChatResponse(
            text=text,
            provider_id=config.provider_id,
            model=config.model,
            latency_ms=int((time.perf_counter() - start) * 1000),
            token_usage=usage,
        )

    async def stream(
        self, request: ChatRequest, config: Configuration
    ) -> AsyncIterator[StreamEvent]:
        payload = self.build_payload(request, config, stream=True)
        accumulator = StreamAccumulator()
        start = time.perf_counter()

        try:
            async with self._session() as client:
                async with client.stream(
                    "POST", self.url, json=payload, headers=self._headers()
                ) as response:
                    if not response.is_success:
                        body = await response.aread()
                        error = self._http_error(
                            config,
                            response.status_code,
                            body.decode("utf-8", errors="replace"),
                        )
                        yield Error(cause=error)
                        return

                    async for line in response.aiter_lines():
                        delta = accumulator.feed(line)
                        if delta is not None:
                            yield delta
                        if accumulator.finished:
                            break
        except httpx.HTTPError as e:
            logger.warning(
                "Chat completion stream failed",
                extra={"provider_id": config.provider_id, "model": config.model},
            )
            yield Error(
                cause=TransportError(
                    f"Stream from {config.provider_id} failed: {e}",
                    provider_id=config.provider_id,
                )
            )
            return

        if accumulator.skipped:
            logger.debug(
                "Stream finished with skipped fragments",
                extra={"provider_id": config.provider_id, "skipped": accumulator.skipped},
            )
        yield Complete(
            response=ChatResponse(
                text=accumulator.text,
                provider_id=config.provider_id,
                model=config.model,
                latency_ms=int((time.perf_counter() - start) * 1000),
                token_usage=accumulator.usage,
            )
        )


class OpenRouter(OpenAI):
    default_base_url = "https://openrouter.ai/api/v1"
    api_key_env = "OPENROUTER_API_KEY"
    extra_headers = {
        "HTTP-Referer": "https://github.com/chatrelay/chatrelay",
        "X-Title": "chatrelay",
    }


class DeepSeek(OpenAI):
    default_base_url = "https://api.deepseek.com/v1"
    api_key_env = "DEEPSEEK_API_KEY"
