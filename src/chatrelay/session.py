"""
A chat session: conversation history on top of the SDK.

The session turns user input into ``ChatRequest`` objects built from the
history, records every outcome in the diagnostics recorder, and optionally
persists the conversation after each completed exchange. A reply that fails
mid-stream is discarded; only completed replies enter the history.
"""

import logging
from contextlib import aclosing
from datetime import datetime, timezone
from typing import TYPE_CHECKING, AsyncIterator, List, Optional

from .commands import ClearHistory, CommandHandler, CommandResult
from .models import (
    ASSISTANT_ROLE,
    USER_ROLE,
    ChatMessage,
    ChatRequest,
    ChatResponse,
    Complete,
    Conversation,
    ConversationMessage,
    Error,
    StreamEvent,
)
from .store import Store

if TYPE_CHECKING:
    from . import ChatRelay

logger = logging.getLogger(__name__)

TITLE_LENGTH = 40


class ChatSession:
    def __init__(
        self,
        relay: "ChatRelay",
        store: Optional[Store] = None,
        conversation_id: Optional[str] = None,
    ):
        self.relay = relay
        self.store = store
        self.commands = CommandHandler(relay)
        self.conversation = self._open(conversation_id)

    def _open(self, conversation_id: Optional[str]) -> Conversation:
        if self.store is None:
            return Conversation(id=conversation_id or "session")
        if conversation_id:
            existing = self.store.load_conversation(conversation_id)
            if existing is not None:
                return existing
        return Conversation(id=conversation_id or self.store.get_next_conversation_id())

    @property
    def history(self) -> List[ChatMessage]:
        return [message.to_chat_message() for message in self.conversation.messages]

    def clear(self) -> None:
        """Starts over with an empty history (and a new id when persisting)."""
        if self.store is None:
            self.conversation = Conversation(id=self.conversation.id)
        else:
            self.conversation = Conversation(id=self.store.get_next_conversation_id())

    def submit(self, text: str) -> Optional[CommandResult]:
        """Runs ``text`` as a slash command; returns None if it is not one."""
        result = self.commands.handle(text)
        if isinstance(result, ClearHistory):
            self.clear()
        return result

    async def send(self, text: str) -> ChatResponse:
        """Sends ``text`` and waits for the whole reply.

        Failures are recorded and re-raised; the user message stays in the
        history.
        """
        request = self._add_user_message(text)
        config = self.relay.get_configuration()
        try:
            response = await self.relay.chat(request)
        except Exception as e:
            self.relay.diagnostics.record_error(config.provider_id, config.model, str(e))
            raise
        self._finish(response)
        return response

    async def stream(self, text: str) -> AsyncIterator[StreamEvent]:
        """Sends ``text`` and yields the reply as it streams in."""
        request = self._add_user_message(text)
        config = self.relay.get_configuration()
        try:
            events = self.relay.chat_stream(request)
        except Exception as e:
            self.relay.diagnostics.record_error(config.provider_id, config.model, str(e))
            raise

        async with aclosing(events):
            async for event in events:
                if isinstance(event, Complete):
                    self._finish(event.response)
                elif isinstance(event, Error):
                    logger.info("Dropping partial reply after stream error")
                    self.relay.diagnostics.record_error(
                        config.provider_id, config.model, event.message
                    )
                yield event

    def _add_user_message(self, text: str) -> ChatRequest:
        self.conversation.messages.append(
            ConversationMessage(role=USER_ROLE, content=text)
        )
        return ChatRequest(messages=self.history)

    def _finish(self, response: ChatResponse) -> None:
        self.relay.diagnostics.record_success(
            response.provider_id,
            response.model,
            response.latency_ms,
            response.token_usage,
        )
        self.conversation.messages.append(
            ConversationMessage(role=ASSISTANT_ROLE, content=response.text)
        )
        self._save(response)

    def _save(self, response: ChatResponse) -> None:
        if self.store is None:
            return
        conversation = self.conversation
        if not conversation.title:
            first = next(
                (m.content for m in conversation.messages if m.role == USER_ROLE), ""
            )
            conversation.title = first[:TITLE_LENGTH]
        conversation.provider_id = response.provider_id
        conversation.model = response.model
        conversation.updated_at = datetime.now(timezone.utc)
        self.store.save_conversation(conversation)
