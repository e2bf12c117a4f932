"""
MindVault Backend — Chat Service Unit Tests
=============================================
"""

import re
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from mindvault.exceptions import DecodeFormatError, NotFoundError
from mindvault.models.chat import ChatMessage, ChatSession
from mindvault.services.chat_service import (
    DEFAULT_SESSION_TITLE,
    ChatService,
    generate_session_id,
)
from mindvault.services.field_cipher import is_protected


def _session(cipher, user_id, title="Evening check-in", **overrides):
    now = datetime.now(timezone.utc)
    fields = dict(
        id=uuid.uuid4(),
        user_id=user_id,
        session_id=generate_session_id(),
        title=cipher.protect(title),
        is_active=True,
        created_at=now,
        last_message_at=now,
    )
    fields.update(overrides)
    return ChatSession(**fields)


def _message(cipher, session, content, role="user", minutes_ago=0):
    return ChatMessage(
        id=uuid.uuid4(),
        user_id=session.user_id,
        session_id=session.session_id,
        role=role,
        content=cipher.protect(content),
        timestamp=datetime.now(timezone.utc) - timedelta(minutes=minutes_ago),
    )


def test_session_ids_are_32_hex_chars():
    session_id = generate_session_id()
    assert re.fullmatch(r"[0-9a-f]{32}", session_id)
    assert generate_session_id() != session_id


class TestSessions:
    @pytest.mark.asyncio
    async def test_create_session_defaults_title(self, cipher, mock_db_session, user_id):
        result = await ChatService(cipher).create_session(mock_db_session, user_id)

        stored = mock_db_session.add.call_args.args[0]
        assert is_protected(stored.title)
        assert result.title == DEFAULT_SESSION_TITLE
        assert result.session_id == stored.session_id
        assert result.is_active is True

    @pytest.mark.asyncio
    async def test_create_session_with_title(self, cipher, mock_db_session, user_id):
        result = await ChatService(cipher).create_session(mock_db_session, user_id, "Work stress")

        stored = mock_db_session.add.call_args.args[0]
        assert "Work stress" not in stored.title
        assert result.title == "Work stress"

    @pytest.mark.asyncio
    async def test_list_sessions_reveals_titles(self, cipher, mock_db_session, make_result, user_id):
        sessions = [_session(cipher, user_id, "A"), _session(cipher, user_id, "B")]
        mock_db_session.execute.return_value = make_result(many=sessions)

        result = await ChatService(cipher).list_sessions(mock_db_session, user_id)

        assert [s.title for s in result.sessions] == ["A", "B"]

    @pytest.mark.asyncio
    async def test_get_session_includes_messages(self, cipher, mock_db_session, make_result, user_id):
        session = _session(cipher, user_id)
        messages = [
            _message(cipher, session, "How are you?", role="assistant", minutes_ago=2),
            _message(cipher, session, "Tired but okay.", minutes_ago=1),
        ]
        mock_db_session.execute.side_effect = [
            make_result(one=session),
            make_result(many=messages),
        ]

        result = await ChatService(cipher).get_session(mock_db_session, user_id, session.session_id)

        assert result.session.title == "Evening check-in"
        assert [m.content for m in result.messages] == ["How are you?", "Tired but okay."]

    @pytest.mark.asyncio
    async def test_get_unknown_session(self, cipher, mock_db_session, make_result, user_id):
        mock_db_session.execute.return_value = make_result(one=None)

        with pytest.raises(NotFoundError):
            await ChatService(cipher).get_session(mock_db_session, user_id, "0" * 32)

    @pytest.mark.asyncio
    async def test_update_title_reprotects(self, cipher, mock_db_session, make_result, user_id):
        session = _session(cipher, user_id)
        mock_db_session.execute.return_value = make_result(one=session)

        result = await ChatService(cipher).update_session_title(
            mock_db_session, user_id, session.session_id, "Renamed"
        )

        assert is_protected(session.title)
        assert result.title == "Renamed"

    @pytest.mark.asyncio
    async def test_delete_is_soft(self, cipher, mock_db_session, make_result, user_id):
        session = _session(cipher, user_id)
        mock_db_session.execute.return_value = make_result(one=session)

        await ChatService(cipher).delete_session(mock_db_session, user_id, session.session_id)

        assert session.is_active is False
        mock_db_session.delete.assert_not_awaited()


class TestMessages:
    @pytest.mark.asyncio
    async def test_add_message_protects_content(self, cipher, mock_db_session, make_result, user_id):
        session = _session(cipher, user_id)
        before = session.last_message_at - timedelta(hours=1)
        session.last_message_at = before
        mock_db_session.execute.return_value = make_result(one=session)

        result = await ChatService(cipher).add_message(
            mock_db_session, user_id, session.session_id, "user", "I feel 😔 today"
        )

        stored = mock_db_session.add.call_args.args[0]
        assert is_protected(stored.content)
        assert result.content == "I feel 😔 today"
        assert result.role == "user"
        assert session.last_message_at > before

    @pytest.mark.asyncio
    async def test_add_message_to_unknown_session(self, cipher, mock_db_session, make_result, user_id):
        mock_db_session.execute.return_value = make_result(one=None)

        with pytest.raises(NotFoundError):
            await ChatService(cipher).add_message(mock_db_session, user_id, "missing", "user", "hi")
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_list_messages_oldest_first(self, cipher, mock_db_session, make_result, user_id):
        session = _session(cipher, user_id)
        newest_first = [
            _message(cipher, session, "third", minutes_ago=1),
            _message(cipher, session, "second", minutes_ago=2),
            _message(cipher, session, "first", minutes_ago=3),
        ]
        mock_db_session.execute.side_effect = [
            make_result(one=session),
            make_result(many=newest_first),
        ]

        result = await ChatService(cipher).list_messages(
            mock_db_session, user_id, session.session_id, limit=3
        )

        assert [m.content for m in result.messages] == ["first", "second", "third"]
        assert result.count == 3

    @pytest.mark.asyncio
    async def test_malformed_stored_message_fails_the_read(
        self, cipher, mock_db_session, make_result, user_id
    ):
        session = _session(cipher, user_id)
        broken = _message(cipher, session, "fine")
        broken.content = "deadbeef:cafe"
        mock_db_session.execute.side_effect = [
            make_result(one=session),
            make_result(many=[broken]),
        ]

        with pytest.raises(DecodeFormatError):
            await ChatService(cipher).list_messages(mock_db_session, user_id, session.session_id)
