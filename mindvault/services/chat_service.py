"""
MindVault Backend — Chat Service
==================================

What:  Chat sessions and their messages.
How:   Session titles and message content are protected before they reach
       the ORM and revealed before they leave the service, same as journal
       entries.
Who:   Called by the /api/chat route handlers.

Sessions are addressed by their public `session_id` (32 hex chars), never
by primary key. Deleting a session only marks it inactive; its messages
stay readable through get_session().
"""

import logging
import secrets
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mindvault.exceptions import DatabaseError, MindVaultError, NotFoundError
from mindvault.models.chat import ChatMessage, ChatSession
from mindvault.schemas.chat import (
    ChatMessageListResponse,
    ChatMessageResponse,
    ChatSessionDetailResponse,
    ChatSessionListResponse,
    ChatSessionResponse,
)
from mindvault.services.field_cipher import FieldCipher

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TITLE = "New Chat"


def generate_session_id() -> str:
    return secrets.token_hex(16)


class ChatService:
    def __init__(self, cipher: FieldCipher):
        self.cipher = cipher

    def _session_response(self, session: ChatSession) -> ChatSessionResponse:
        return ChatSessionResponse(
            session_id=session.session_id,
            title=self.cipher.reveal(session.title),
            is_active=session.is_active,
            created_at=session.created_at,
            last_message_at=session.last_message_at,
        )

    def _message_response(self, message: ChatMessage) -> ChatMessageResponse:
        return ChatMessageResponse(
            id=message.id,
            session_id=message.session_id,
            role=message.role,
            content=self.cipher.reveal(message.content),
            timestamp=message.timestamp,
        )

    async def _get_owned_session(
        self, db: AsyncSession, user_id: uuid.UUID, session_id: str
    ) -> ChatSession:
        result = await db.execute(
            select(ChatSession).where(
                ChatSession.session_id == session_id,
                ChatSession.user_id == user_id,
            )
        )
        session = result.scalar_one_or_none()
        if session is None:
            raise NotFoundError(resource="chat session", resource_id=session_id)
        return session

    def _database_error(self, action: str, e: Exception) -> DatabaseError:
        logger.error("Database error while trying to %s: %s", action, str(e), exc_info=True)
        return DatabaseError(
            message=f"Could not {action}. Please try again.",
            context={"error_type": type(e).__name__},
        )

    async def list_sessions(self, db: AsyncSession, user_id: uuid.UUID) -> ChatSessionListResponse:
        """Active sessions, most recent activity first."""
        try:
            result = await db.execute(
                select(ChatSession)
                .where(ChatSession.user_id == user_id, ChatSession.is_active.is_(True))
                .order_by(desc(ChatSession.last_message_at))
            )
            sessions = result.scalars().all()
            return ChatSessionListResponse(
                sessions=[self._session_response(s) for s in sessions]
            )
        except MindVaultError:
            raise
        except SQLAlchemyError as e:
            raise self._database_error("load chat sessions", e) from e

    async def create_session(
        self, db: AsyncSession, user_id: uuid.UUID, title: Optional[str] = None
    ) -> ChatSessionResponse:
        now = datetime.now(timezone.utc)
        try:
            session = ChatSession(
                id=uuid.uuid4(),
                user_id=user_id,
                session_id=generate_session_id(),
                title=self.cipher.protect(title or DEFAULT_SESSION_TITLE),
                is_active=True,
                created_at=now,
                last_message_at=now,
            )
            db.add(session)
            await db.flush()
            logger.info("Chat session %s created for user %s", session.session_id, user_id)
            return self._session_response(session)
        except MindVaultError:
            raise
        except SQLAlchemyError as e:
            raise self._database_error("create the chat session", e) from e

    async def get_session(
        self, db: AsyncSession, user_id: uuid.UUID, session_id: str
    ) -> ChatSessionDetailResponse:
        """The session and all of its messages, oldest first."""
        try:
            session = await self._get_owned_session(db, user_id, session_id)
            result = await db.execute(
                select(ChatMessage)
                .where(ChatMessage.session_id == session_id, ChatMessage.user_id == user_id)
                .order_by(ChatMessage.timestamp)
            )
            messages = result.scalars().all()
            return ChatSessionDetailResponse(
                session=self._session_response(session),
                messages=[self._message_response(m) for m in messages],
            )
        except MindVaultError:
            raise
        except SQLAlchemyError as e:
            raise self._database_error("load the chat session", e) from e

    async def update_session_title(
        self, db: AsyncSession, user_id: uuid.UUID, session_id: str, title: str
    ) -> ChatSessionResponse:
        try:
            session = await self._get_owned_session(db, user_id, session_id)
            session.title = self.cipher.protect(title)
            await db.flush()
            return self._session_response(session)
        except MindVaultError:
            raise
        except SQLAlchemyError as e:
            raise self._database_error("rename the chat session", e) from e

    async def delete_session(self, db: AsyncSession, user_id: uuid.UUID, session_id: str) -> None:
        """Soft delete: the session disappears from list_sessions()."""
        try:
            session = await self._get_owned_session(db, user_id, session_id)
            session.is_active = False
            await db.flush()
            logger.info("Chat session %s deactivated", session_id)
        except MindVaultError:
            raise
        except SQLAlchemyError as e:
            raise self._database_error("delete the chat session", e) from e

    async def add_message(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        session_id: str,
        role: str,
        content: str,
    ) -> ChatMessageResponse:
        """Stores an encrypted message and bumps the session's last_message_at."""
        now = datetime.now(timezone.utc)
        try:
            session = await self._get_owned_session(db, user_id, session_id)
            message = ChatMessage(
                id=uuid.uuid4(),
                user_id=user_id,
                session_id=session_id,
                role=role,
                content=self.cipher.protect(content),
                timestamp=now,
            )
            db.add(message)
            session.last_message_at = now
            await db.flush()
            return self._message_response(message)
        except MindVaultError:
            raise
        except SQLAlchemyError as e:
            raise self._database_error("save the chat message", e) from e

    async def list_messages(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        session_id: str,
        limit: int = 50,
        before: Optional[datetime] = None,
    ) -> ChatMessageListResponse:
        """
        The newest `limit` messages (optionally older than `before`),
        returned oldest first for display.
        """
        try:
            await self._get_owned_session(db, user_id, session_id)

            stmt = select(ChatMessage).where(
                ChatMessage.session_id == session_id,
                ChatMessage.user_id == user_id,
            )
            if before:
                stmt = stmt.where(ChatMessage.timestamp < before)
            stmt = stmt.order_by(desc(ChatMessage.timestamp)).limit(limit)

            result = await db.execute(stmt)
            messages = list(result.scalars().all())
            messages.reverse()

            return ChatMessageListResponse(
                messages=[self._message_response(m) for m in messages],
                count=len(messages),
            )
        except MindVaultError:
            raise
        except SQLAlchemyError as e:
            raise self._database_error("load chat messages", e) from e
