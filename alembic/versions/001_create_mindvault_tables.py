"""Create journal, chat and wellness tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates journal_entries, chat_sessions, chat_messages, wellness_checks.
How:   UUID primary keys, TIMESTAMP WITH TIME ZONE, JSONB for structured data.

Protected columns (title, content, analysis, answers values) are TEXT/JSONB
and hold tokens; the schema does not know or care that they are encrypted.

Rollback: downgrade() drops all four tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TOKEN_COMMENT = "Encrypted token (nonce:tag:ciphertext)"


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _timestamp_column(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "journal_entries",
        _id_column(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.Text(), nullable=False, comment=TOKEN_COMMENT),
        sa.Column("content", sa.Text(), nullable=False, comment=TOKEN_COMMENT),
        sa.Column("mood", sa.String(50), nullable=False, server_default=sa.text("'neutral'")),
        sa.Column(
            "tags",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("is_private", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("ml_analysis", postgresql.JSONB(), nullable=True),
        sa.Column("keystroke_data", postgresql.JSONB(), nullable=True),
        _timestamp_column("created_at"),
        _timestamp_column("updated_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_journal_entries_user_id", "journal_entries", ["user_id"])
    # Most common query: "my latest entries" (WHERE user_id ORDER BY created_at DESC)
    op.create_index(
        "idx_journal_entries_user_created",
        "journal_entries",
        ["user_id", "created_at"],
    )

    op.create_table(
        "chat_sessions",
        _id_column(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("session_id", sa.String(64), nullable=False),
        sa.Column("title", sa.Text(), nullable=False, comment=TOKEN_COMMENT),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _timestamp_column("created_at"),
        _timestamp_column("last_message_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_chat_sessions_user_id", "chat_sessions", ["user_id"])
    op.create_index("ix_chat_sessions_session_id", "chat_sessions", ["session_id"], unique=True)
    op.create_index(
        "idx_chat_sessions_user_last_message",
        "chat_sessions",
        ["user_id", "last_message_at"],
    )

    op.create_table(
        "chat_messages",
        _id_column(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("session_id", sa.String(64), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, comment=TOKEN_COMMENT),
        _timestamp_column("timestamp"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_chat_messages_user_id", "chat_messages", ["user_id"])
    op.create_index("ix_chat_messages_session_id", "chat_messages", ["session_id"])
    op.create_index(
        "idx_chat_messages_user_session_ts",
        "chat_messages",
        ["user_id", "session_id", "timestamp"],
    )

    op.create_table(
        "wellness_checks",
        _id_column(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("mood", sa.Integer(), nullable=False),
        sa.Column("analysis", sa.Text(), nullable=False, comment=TOKEN_COMMENT),
        sa.Column(
            "answers",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
            comment="Question id -> encrypted answer token",
        ),
        _timestamp_column("completed_at"),
        _timestamp_column("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_wellness_checks_user_id", "wellness_checks", ["user_id"])
    op.create_index("ix_wellness_checks_completed_at", "wellness_checks", ["completed_at"])
    op.create_index(
        "idx_wellness_checks_user_completed",
        "wellness_checks",
        ["user_id", "completed_at"],
    )
    # AT TIME ZONE makes the day expression immutable, so it can be indexed
    op.create_index(
        "uq_wellness_checks_user_day",
        "wellness_checks",
        ["user_id", sa.text("((completed_at AT TIME ZONE 'UTC')::date)")],
        unique=True,
    )


def downgrade() -> None:
    """
    Drop all four tables.

    WARNING: destructive. Encrypted rows are gone for good, and so is any
    chance of decrypting them with the old key.
    """
    op.drop_table("wellness_checks")
    op.drop_table("chat_messages")
    op.drop_table("chat_sessions")
    op.drop_table("journal_entries")
