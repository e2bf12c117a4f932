"""
MindVault Backend — Chat Session & Message Models
===================================================

What:  ORM models for the `chat_sessions` and `chat_messages` tables.
Who:   Used by ChatService.

Encrypted columns:
    chat_sessions.title, chat_messages.content — field cipher tokens.
    session_id is an opaque 32-char hex handle shared with the client;
    messages reference it rather than the session's UUID primary key.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID, TIMESTAMP

from mindvault.database import Base

CHAT_ROLES = ("user", "assistant", "system")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChatSession(Base):
    """A conversation thread. Deleting only marks it inactive."""

    __tablename__ = "chat_sessions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    session_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)

    title: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Encrypted token (nonce:tag:ciphertext)",
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    last_message_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_chat_sessions_user_last_message", "user_id", "last_message_at"),
    )

    def __repr__(self) -> str:
        return f"<ChatSession(session_id='{self.session_id}', active={self.is_active})>"


class ChatMessage(Base):
    """One message inside a chat session."""

    __tablename__ = "chat_messages"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    session_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False)

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Encrypted token (nonce:tag:ciphertext)",
    )

    timestamp: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_chat_messages_user_session_ts", "user_id", "session_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<ChatMessage(id={self.id}, session_id='{self.session_id}', role='{self.role}')>"
