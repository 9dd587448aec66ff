"""
Tests for the core Pydantic data models.

These models form the data contract between the router, the adapters and the
diagnostics recorder, so their validation behavior is critical.
"""

import pytest
from chatrelay.errors import TransportError
from chatrelay.models import (
    ASSISTANT_ROLE,
    SYSTEM_ROLE,
    USER_ROLE,
    ChatMessage,
    ChatRequest,
    ChatResponse,
    Complete,
    Configuration,
    Conversation,
    ConversationMessage,
    Delta,
    DiagnosticsEntry,
    Error,
    FailureEntry,
    ProviderDescriptor,
    StreamEvent,
    SuccessEntry,
)
from pydantic import TypeAdapter, ValidationError


class TestConfiguration:
    """Test the Configuration value object."""

    def test_defaults(self):
        config = Configuration()
        assert config.provider_id == "mock"
        assert config.model == "default"
        assert config.temperature == 0.7
        assert config.max_tokens == 500

    def test_is_immutable(self):
        config = Configuration()
        with pytest.raises(ValidationError):
            config.temperature = 1.0

    def test_with_changes_returns_modified_copy(self):
        """Only the named fields change; the original stays untouched."""
        config = Configuration()
        changed = config.with_changes(temperature=1.5)

        assert changed.temperature == 1.5
        assert changed.provider_id == config.provider_id
        assert changed.model == config.model
        assert changed.max_tokens == config.max_tokens
        assert config.temperature == 0.7

    def test_equal_values_compare_equal(self):
        assert Configuration() == Configuration()
        assert Configuration() != Configuration(model="other")

    def test_out_of_range_values_are_accepted(self):
        """Range checks belong to the command parser, not the model."""
        config = Configuration(temperature=5.0, max_tokens=0)
        assert config.temperature == 5.0
        assert config.max_tokens == 0


class TestChatMessage:
    """Test ChatMessage model validation and behavior."""

    def test_valid_roles(self):
        for role in (USER_ROLE, ASSISTANT_ROLE, SYSTEM_ROLE):
            assert ChatMessage(role=role, content="x").role == role

    def test_invalid_role_rejected(self):
        with pytest.raises(ValidationError):
            ChatMessage(role="tool", content="x")

    def test_request_keeps_message_order(self, sample_messages):
        request = ChatRequest(messages=sample_messages)
        assert isinstance(request.messages, tuple)
        assert [m.content for m in request.messages] == [
            m.content for m in sample_messages
        ]


class TestProviderDescriptor:
    def test_models_are_a_tuple(self):
        descriptor = ProviderDescriptor(id="p", display_name="P", models=["a", "b"])
        assert descriptor.models == ("a", "b")

    def test_is_immutable(self):
        descriptor = ProviderDescriptor(id="p", display_name="P")
        with pytest.raises(ValidationError):
            descriptor.id = "q"


class TestStreamEvents:
    """Test the tagged stream event union."""

    def test_event_types(self):
        response = ChatResponse(text="hi", provider_id="mock", model="default")
        assert Delta(text="h").type == "delta"
        assert Complete(response=response).type == "complete"
        assert Error(cause=RuntimeError("boom")).type == "error"

    def test_error_message_uses_cause_text(self):
        event = Error(cause=TransportError("connection refused"))
        assert event.message == "connection refused"

    def test_error_message_falls_back_to_type_name(self):
        assert Error(cause=TimeoutError()).message == "TimeoutError"

    def test_union_discriminates_on_type(self):
        adapter = TypeAdapter(StreamEvent)
        event = adapter.validate_python({"type": "delta", "text": "abc"})
        assert isinstance(event, Delta)
        assert event.text == "abc"


class TestDiagnosticsEntries:
    def test_union_discriminates_on_kind(self):
        adapter = TypeAdapter(DiagnosticsEntry)
        success = adapter.validate_python(
            {"kind": "success", "provider_id": "p", "model": "m", "latency_ms": 5}
        )
        failure = adapter.validate_python(
            {"kind": "failure", "provider_id": "p", "model": "m", "error_message": "x"}
        )
        assert isinstance(success, SuccessEntry)
        assert isinstance(failure, FailureEntry)

    def test_entries_are_timestamped(self):
        entry = SuccessEntry(provider_id="p", model="m", latency_ms=1)
        assert entry.timestamp.tzinfo is not None


class TestConversation:
    """Test Conversation model validation and behavior."""

    def test_empty_conversation(self):
        conversation = Conversation(id="001")
        assert conversation.messages == []
        assert conversation.title == ""

    def test_messages_convert_to_chat_messages(self, sample_conversation):
        chat_messages = [m.to_chat_message() for m in sample_conversation.messages]
        assert all(isinstance(m, ChatMessage) for m in chat_messages)
        assert chat_messages[0].content == "Hello, how are you?"

    def test_messages_are_mutable_list(self):
        conversation = Conversation(id="001")
        conversation.messages.append(ConversationMessage(role=USER_ROLE, content="hi"))
        assert len(conversation.messages) == 1
