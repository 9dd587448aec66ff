"""
Defines the core Pydantic data models for the SDK.

These models serve as the formal, validated data contract between the router,
the provider adapters, the diagnostics recorder and the session layer. Field
names on the wire follow the OpenAI chat completions conventions.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

# --- Constants ---
USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"
SYSTEM_ROLE = "system"
Role = Literal["user", "assistant", "system"]


def _now() -> datetime:
    return datetime.now(timezone.utc)


# --- Configuration ---
class Configuration(BaseModel):
    """The active provider, model and sampling parameters.

    Bounds (``0.0 <= temperature <= 2.0``, ``max_tokens > 0``, a registered
    ``provider_id``) are checked by whoever builds the value, not here.
    """

    model_config = ConfigDict(frozen=True)

    provider_id: str = "mock"
    model: str = "default"
    temperature: float = 0.7
    max_tokens: int = 500

    def with_changes(self, **changes: Any) -> "Configuration":
        """Returns a copy of this configuration with ``changes`` applied."""
        return self.model_copy(update=changes)


class ProviderDescriptor(BaseModel):
    """Display metadata for a registered provider."""

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
    models: Tuple[str, ...] = ()


# --- Requests and responses ---
class ChatMessage(BaseModel):
    """Represents a single message within a conversation."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


class ChatRequest(BaseModel):
    """An ordered message list, oldest first."""

    model_config = ConfigDict(frozen=True)

    messages: Tuple[ChatMessage, ...] = ()


class TokenUsage(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatResponse(BaseModel):
    """A completed reply.

    ``latency_ms`` is overwritten by the router for non-streaming calls.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    provider_id: str
    model: str
    latency_ms: int = 0
    token_usage: Optional[TokenUsage] = None


# --- Stream events ---
class Delta(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["delta"] = "delta"
    text: str


class Complete(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["complete"] = "complete"
    response: ChatResponse


class Error(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type: Literal["error"] = "error"
    cause: Exception

    @property
    def message(self) -> str:
        return str(self.cause) or type(self.cause).__name__


StreamEvent = Annotated[Union[Delta, Complete, Error], Field(discriminator="type")]
TERMINAL_EVENTS = (Complete, Error)


# --- Diagnostics ---
class SuccessEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["success"] = "success"
    provider_id: str
    model: str
    latency_ms: int
    timestamp: datetime = Field(default_factory=_now)


class FailureEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["failure"] = "failure"
    provider_id: str
    model: str
    error_message: str
    timestamp: datetime = Field(default_factory=_now)


DiagnosticsEntry = Annotated[
    Union[SuccessEntry, FailureEntry], Field(discriminator="kind")
]


class DiagnosticsAggregate(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    total_prompt_tokens: int = 0
    total_completion_tokens: int = 0
    total_tokens: int = 0


# --- Persistence ---
class ConversationMessage(BaseModel):
    """A message as stored with its conversation."""

    role: Role
    content: str
    timestamp: datetime = Field(default_factory=_now)

    def to_chat_message(self) -> ChatMessage:
        return ChatMessage(role=self.role, content=self.content)


class Conversation(BaseModel):
    """Represents a complete chat conversation session."""

    id: str
    title: str = ""
    provider_id: str = ""
    model: str = ""
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)
    messages: List[ConversationMessage] = Field(default_factory=list)
