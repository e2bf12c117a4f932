"""
MindVault Backend — Journal Entry SQLAlchemy Model
====================================================

What:  ORM model representing the `journal_entries` table.
Why:   Maps journal rows to Python objects for the journal service.
Who:   Used by JournalService for CRUD and by Alembic for schema management.

Encrypted columns:
    title, content — hold field cipher tokens (or legacy plaintext written
    before encryption existed). Always TEXT: a token is roughly twice the
    plaintext length plus 66 characters of nonce, tag and separators.
    The model never encrypts or decrypts by itself; JournalService calls
    the cipher explicitly on the way in and out.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import Boolean, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import JSONB, UUID, TIMESTAMP

from mindvault.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JournalEntry(Base):
    """
    A single journal entry owned by one user.

    Query Patterns:
        - List a user's entries: WHERE user_id = :uid ORDER BY created_at DESC
          → idx_journal_entries_user_created
        - Get one entry: WHERE id = :id AND user_id = :uid (owner-scoped)
    """

    __tablename__ = "journal_entries"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        nullable=False,
        index=True,
        comment="Owner, as identified by the upstream auth gateway",
    )

    # ── Protected Fields ──────────────────────────────────────────────────
    title: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Encrypted token (nonce:tag:ciphertext)",
    )
    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Encrypted token (nonce:tag:ciphertext)",
    )

    # ── Plain Metadata ────────────────────────────────────────────────────
    mood: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="neutral",
        server_default=text("'neutral'"),
    )
    tags: Mapped[List[str]] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        server_default=text("'[]'::jsonb"),
    )
    is_private: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
    )

    # Emotion analysis and typing metrics produced by the client/ML pipeline
    ml_analysis: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONB, nullable=True)
    keystroke_data: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONB, nullable=True)

    # ── Timestamps ────────────────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_journal_entries_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        # Never include title/content: even tokens don't belong in logs
        return f"<JournalEntry(id={self.id}, user_id={self.user_id}, mood='{self.mood}')>"
