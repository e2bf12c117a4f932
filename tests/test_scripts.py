"""
MindVault Backend — Operator CLI Tests
========================================

What:  Tests for mindvault-keygen and mindvault-backfill.
"""

import re
import uuid
from datetime import datetime, timezone

import pytest

from mindvault.models import ChatMessage, ChatSession, JournalEntry, WellnessCheck
from mindvault.scripts import generate_key
from mindvault.scripts.backfill_encryption import backfill
from mindvault.services.field_cipher import is_protected


class TestGenerateKey:
    def test_prints_key_line(self, capsys):
        assert generate_key.main([]) == 0

        out = capsys.readouterr().out
        assert re.search(r"^ENCRYPTION_KEY=[0-9a-f]{64}$", out, re.MULTILINE)

    def test_appends_to_env_file(self, tmp_path, capsys):
        env_file = tmp_path / ".env"
        env_file.write_text("DATABASE_URL=postgresql+asyncpg://localhost/mindvault")

        generate_key.main(["--env-file", str(env_file)])

        printed = re.search(r"ENCRYPTION_KEY=([0-9a-f]{64})", capsys.readouterr().out).group(1)
        lines = env_file.read_text().splitlines()
        assert lines == [
            "DATABASE_URL=postgresql+asyncpg://localhost/mindvault",
            f"ENCRYPTION_KEY={printed}",
        ]

    def test_creates_missing_env_file(self, tmp_path):
        env_file = tmp_path / ".env"

        assert generate_key.append_to_env_file(env_file, "ab" * 32) is True
        assert env_file.read_text() == f"ENCRYPTION_KEY={'ab' * 32}\n"

    def test_never_replaces_existing_key(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("ENCRYPTION_KEY=keep-me\n")

        assert generate_key.append_to_env_file(env_file, "cd" * 32) is False
        assert env_file.read_text() == "ENCRYPTION_KEY=keep-me\n"


def _rows(cipher, user_id):
    now = datetime.now(timezone.utc)
    legacy_entry = JournalEntry(
        id=uuid.uuid4(), user_id=user_id, title="Old title", content="Old content",
        mood="neutral", tags=[], is_private=True, created_at=now, updated_at=now,
    )
    protected_entry = JournalEntry(
        id=uuid.uuid4(), user_id=user_id, title=cipher.protect("New"),
        content=cipher.protect("Already encrypted"), mood="neutral", tags=[],
        is_private=True, created_at=now, updated_at=now,
    )
    session = ChatSession(
        id=uuid.uuid4(), user_id=user_id, session_id="a" * 32, title="Legacy chat",
        is_active=True, created_at=now, last_message_at=now,
    )
    message = ChatMessage(
        id=uuid.uuid4(), user_id=user_id, session_id="a" * 32, role="user",
        content="hello", timestamp=now,
    )
    check = WellnessCheck(
        id=uuid.uuid4(), user_id=user_id, mood=4, analysis="",
        answers={"q1": "plain answer", "q2": cipher.protect("done")},
        completed_at=now, created_at=now,
    )
    return legacy_entry, protected_entry, session, message, check


class TestBackfill:
    @pytest.mark.asyncio
    async def test_protects_only_plaintext(self, cipher, mock_db_session, make_result, user_id):
        legacy_entry, protected_entry, session, message, check = _rows(cipher, user_id)
        already = protected_entry.content
        mock_db_session.execute.side_effect = [
            make_result(many=[legacy_entry, protected_entry]),
            make_result(many=[session]),
            make_result(many=[message]),
            make_result(many=[check]),
        ]

        totals = await backfill(mock_db_session, cipher)

        assert totals == {
            "journal_entries.title": 1,
            "journal_entries.content": 1,
            "chat_sessions.title": 1,
            "chat_messages.content": 1,
            "wellness_checks.analysis": 0,
            "wellness_checks.answers": 1,
        }
        assert cipher.reveal(legacy_entry.content) == "Old content"
        assert protected_entry.content == already
        assert is_protected(session.title)
        assert is_protected(message.content)
        assert check.analysis == ""
        assert cipher.reveal(check.answers["q1"]) == "plain answer"
        assert cipher.reveal(check.answers["q2"]) == "done"
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_dry_run_changes_nothing(self, cipher, mock_db_session, make_result, user_id):
        legacy_entry, _, session, message, check = _rows(cipher, user_id)
        mock_db_session.execute.side_effect = [
            make_result(many=[legacy_entry]),
            make_result(many=[session]),
            make_result(many=[message]),
            make_result(many=[check]),
        ]

        totals = await backfill(mock_db_session, cipher, dry_run=True)

        assert sum(totals.values()) == 5
        assert legacy_entry.title == "Old title"
        assert check.answers["q1"] == "plain answer"
        mock_db_session.flush.assert_not_awaited()
