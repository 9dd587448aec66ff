"""Concrete implementations for conversation persistence."""

import sqlite3
from abc import ABC, abstractmethod
from contextlib import closing
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from .models import Conversation, ConversationMessage


class Store(ABC):
    """Interface for saving and loading conversation data."""

    @abstractmethod
    def load_conversation(self, convo_id: str) -> Optional[Conversation]:
        """Loads a single conversation, or None if it does not exist."""
        pass

    @abstractmethod
    def save_conversation(self, conversation: Conversation) -> None:
        """Saves a conversation, replacing any stored copy with the same id."""
        pass

    @abstractmethod
    def list_conversations(self) -> List[Conversation]:
        """Lists conversations without their messages, newest update first."""
        pass

    @abstractmethod
    def get_next_conversation_id(self) -> str:
        """Generates a new, unique conversation ID."""
        pass

    @abstractmethod
    def delete_conversation(self, convo_id: str) -> None:
        """Deletes a conversation together with all of its messages."""
        pass


def _format_id(number: int) -> str:
    return f"{number:03d}"


def _next_id(existing) -> str:
    numbers = [int(convo_id) for convo_id in existing if str(convo_id).isdigit()]
    return _format_id(max(numbers, default=0) + 1)


class InMemory(Store):
    """Saves and loads conversations from an in-memory dictionary."""

    def __init__(self):
        self._store: Dict[str, Conversation] = {}

    def load_conversation(self, convo_id: str) -> Optional[Conversation]:
        conversation = self._store.get(convo_id)
        return conversation.model_copy(deep=True) if conversation else None

    def save_conversation(self, conversation: Conversation) -> None:
        self._store[conversation.id] = conversation.model_copy(deep=True)

    def list_conversations(self) -> List[Conversation]:
        summaries = [
            convo.model_copy(update={"messages": []}) for convo in self._store.values()
        ]
        return sorted(summaries, key=lambda convo: convo.updated_at, reverse=True)

    def get_next_conversation_id(self) -> str:
        return _next_id(self._store)

    def delete_conversation(self, convo_id: str) -> None:
        self._store.pop(convo_id, None)


class SQLite(Store):
    """Saves and loads conversations from an SQLite database file."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _init_db(self) -> None:
        with closing(self._connect()) as conn, conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS conversations (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL DEFAULT '',
                    provider_id TEXT NOT NULL DEFAULT '',
                    model TEXT NOT NULL DEFAULT '',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                CREATE TABLE IF NOT EXISTS messages (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    conversation_id TEXT NOT NULL
                        REFERENCES conversations(id) ON DELETE CASCADE,
                    position INTEGER NOT NULL,
                    role TEXT NOT NULL,
                    content TEXT NOT NULL,
                    timestamp TEXT NOT NULL
                );
                CREATE INDEX IF NOT EXISTS idx_messages_conversation
                    ON messages (conversation_id, position);
                """
            )

    def _row_to_conversation(self, row: sqlite3.Row) -> Conversation:
        return Conversation(
            id=row["id"],
            title=row["title"],
            provider_id=row["provider_id"],
            model=row["model"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def load_conversation(self, convo_id: str) -> Optional[Conversation]:
        with closing(self._connect()) as conn:
            row = conn.execute(
                "SELECT * FROM conversations WHERE id = ?", (convo_id,)
            ).fetchone()
            if row is None:
                return None
            message_rows = conn.execute(
                "SELECT role, content, timestamp FROM messages "
                "WHERE conversation_id = ? ORDER BY position",
                (convo_id,),
            ).fetchall()

        conversation = self._row_to_conversation(row)
        conversation.messages = [
            ConversationMessage(
                role=message["role"],
                content=message["content"],
                timestamp=datetime.fromisoformat(message["timestamp"]),
            )
            for message in message_rows
        ]
        return conversation

    def save_conversation(self, conversation: Conversation) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                """
                INSERT INTO conversations
                    (id, title, provider_id, model, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    title = excluded.title,
                    provider_id = excluded.provider_id,
                    model = excluded.model,
                    updated_at = excluded.updated_at
                """,
                (
                    conversation.id,
                    conversation.title,
                    conversation.provider_id,
                    conversation.model,
                    conversation.created_at.isoformat(),
                    conversation.updated_at.isoformat(),
                ),
            )
            conn.execute(
                "DELETE FROM messages WHERE conversation_id = ?", (conversation.id,)
            )
            conn.executemany(
                "INSERT INTO messages "
                "(conversation_id, position, role, content, timestamp) "
                "VALUES (?, ?, ?, ?, ?)",
                [
                    (
                        conversation.id,
                        position,
                        message.role,
                        message.content,
                        message.timestamp.isoformat(),
                    )
                    for position, message in enumerate(conversation.messages)
                ],
            )

    def list_conversations(self) -> List[Conversation]:
        with closing(self._connect()) as conn:
            rows = conn.execute(
                "SELECT * FROM conversations ORDER BY updated_at DESC"
            ).fetchall()
        return [self._row_to_conversation(row) for row in rows]

    def get_next_conversation_id(self) -> str:
        with closing(self._connect()) as conn:
            rows = conn.execute("SELECT id FROM conversations").fetchall()
        return _next_id(row["id"] for row in rows)

    def delete_conversation(self, convo_id: str) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute("DELETE FROM conversations WHERE id = ?", (convo_id,))
