"""
MindVault Backend — Wellness Check Model
==========================================

What:  ORM model for the `wellness_checks` table (one check per user per day).

Encrypted columns:
    analysis — a field cipher token.
    answers  — JSONB object whose keys are question ids (plain) and whose
               values are individual tokens. Each value is protected on its
               own, so one answer can be revealed without the others.
"""

import uuid
from datetime import datetime, timezone
from typing import Dict

from sqlalchemy import Index, Integer, Text, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import JSONB, UUID, TIMESTAMP

from mindvault.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WellnessCheck(Base):
    __tablename__ = "wellness_checks"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)

    # 0 (worst) .. 10 (best)
    mood: Mapped[int] = mapped_column(Integer, nullable=False)

    analysis: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Encrypted token (nonce:tag:ciphertext)",
    )
    answers: Mapped[Dict[str, str]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        server_default=text("'{}'::jsonb"),
        comment="Question id -> encrypted answer token",
    )

    completed_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_wellness_checks_user_completed", "user_id", "completed_at"),
        # One check per user per UTC day, enforced by the database
        Index(
            "uq_wellness_checks_user_day",
            "user_id",
            text("((completed_at AT TIME ZONE 'UTC')::date)"),
            unique=True,
        ),
    )

    def __repr__(self) -> str:
        return f"<WellnessCheck(id={self.id}, user_id={self.user_id}, mood={self.mood})>"
