"""
MindVault Backend — Journal Service
=====================================

What:  Business logic for journal entries (create, read, update, delete, search).
Why:   Keeps encryption and ownership rules out of the route handlers.
How:   Every write passes title/content through FieldCipher.protect() before
       the ORM object is touched; every read passes them through reveal()
       before a response model is built. The ORM never sees plaintext.
Who:   Called by the /api/journal route handlers.

Error Handling Strategy:
    - Missing or foreign entries → NotFoundError (404)
    - SQLAlchemy failures → DatabaseError (generic 500, details logged)
    - Field cipher errors propagate unchanged; they abort the request and
      the session dependency rolls the transaction back.
"""

import logging
import math
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import asc, desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mindvault.exceptions import DatabaseError, MindVaultError, NotFoundError, ValidationError
from mindvault.models.journal_entry import JournalEntry
from mindvault.schemas.journal import (
    JOURNAL_SORT_FIELDS,
    JournalEntryCreate,
    JournalEntryListResponse,
    JournalEntryResponse,
    JournalEntryUpdate,
    JournalSearchResponse,
)
from mindvault.services.field_cipher import FieldCipher

logger = logging.getLogger(__name__)


class JournalService:
    """
    Journal entry operations, scoped to the calling user.

    Args:
        cipher: The process-wide FieldCipher. Injected so tests can supply
                their own key.
    """

    def __init__(self, cipher: FieldCipher):
        self.cipher = cipher

    def _to_response(self, entry: JournalEntry) -> JournalEntryResponse:
        return JournalEntryResponse(
            id=entry.id,
            user_id=entry.user_id,
            title=self.cipher.reveal(entry.title),
            content=self.cipher.reveal(entry.content),
            mood=entry.mood,
            tags=list(entry.tags or []),
            is_private=entry.is_private,
            ml_analysis=entry.ml_analysis,
            keystroke_data=entry.keystroke_data,
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )

    async def _get_owned(
        self, db: AsyncSession, user_id: uuid.UUID, entry_id: uuid.UUID
    ) -> JournalEntry:
        result = await db.execute(
            select(JournalEntry).where(
                JournalEntry.id == entry_id,
                JournalEntry.user_id == user_id,
            )
        )
        entry = result.scalar_one_or_none()
        if entry is None:
            raise NotFoundError(resource="journal entry", resource_id=str(entry_id))
        return entry

    async def create_entry(
        self, db: AsyncSession, user_id: uuid.UUID, data: JournalEntryCreate
    ) -> JournalEntryResponse:
        """
        Stores a new entry with title and content encrypted.

        Raises:
            EncryptionError: the cipher failed; nothing is added to the session.
            DatabaseError: flush failed.
        """
        now = datetime.now(timezone.utc)
        try:
            entry = JournalEntry(
                id=uuid.uuid4(),
                user_id=user_id,
                title=self.cipher.protect(data.title),
                content=self.cipher.protect(data.content),
                mood=data.mood,
                tags=data.tags,
                is_private=data.is_private,
                ml_analysis=data.ml_analysis.model_dump() if data.ml_analysis else None,
                keystroke_data=data.keystroke_data.model_dump() if data.keystroke_data else None,
                created_at=now,
                updated_at=now,
            )
            db.add(entry)
            await db.flush()
            logger.info("Journal entry %s created for user %s", entry.id, user_id)
            return self._to_response(entry)

        except MindVaultError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error creating journal entry: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the journal entry. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

    async def get_entry(
        self, db: AsyncSession, user_id: uuid.UUID, entry_id: uuid.UUID
    ) -> JournalEntryResponse:
        try:
            entry = await self._get_owned(db, user_id, entry_id)
            return self._to_response(entry)
        except MindVaultError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error fetching journal entry %s: %s", entry_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the journal entry. Please try again.",
                context={"entry_id": str(entry_id)},
            ) from e

    async def list_entries(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "created_at",
        order: str = "desc",
    ) -> JournalEntryListResponse:
        """
        Offset-paginated listing of the user's entries.

        Args:
            page: 1-based page number
            limit: entries per page
            sort_by: created_at, updated_at or mood
            order: asc or desc
        """
        if sort_by not in JOURNAL_SORT_FIELDS:
            raise ValidationError(
                message=f"Invalid sort field '{sort_by}'. Must be one of: {sorted(JOURNAL_SORT_FIELDS)}",
                field="sort_by",
            )
        if order not in ("asc", "desc"):
            raise ValidationError(message="Order must be 'asc' or 'desc'", field="order")

        column = getattr(JournalEntry, sort_by)
        direction = desc if order == "desc" else asc

        try:
            query = (
                select(JournalEntry)
                .where(JournalEntry.user_id == user_id)
                .order_by(direction(column))
                .offset((page - 1) * limit)
                .limit(limit)
            )
            result = await db.execute(query)
            entries = list(result.scalars().all())

            count_result = await db.execute(
                select(func.count(JournalEntry.id)).where(JournalEntry.user_id == user_id)
            )
            total = count_result.scalar() or 0

            return JournalEntryListResponse(
                entries=[self._to_response(entry) for entry in entries],
                total=total,
                total_pages=math.ceil(total / limit) if total else 0,
                current_page=page,
            )

        except MindVaultError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error listing journal entries: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve journal entries. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

    async def update_entry(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        entry_id: uuid.UUID,
        data: JournalEntryUpdate,
    ) -> JournalEntryResponse:
        """
        Applies a partial update.

        Empty title/content/mood keep the stored value. Protected fields that
        change are re-encrypted with a fresh nonce.
        """
        try:
            entry = await self._get_owned(db, user_id, entry_id)

            if data.title:
                entry.title = self.cipher.protect(data.title)
            if data.content:
                entry.content = self.cipher.protect(data.content)
            if data.mood:
                entry.mood = data.mood
            if data.tags is not None:
                entry.tags = [tag.strip() for tag in data.tags if tag and tag.strip()]
            if data.is_private is not None:
                entry.is_private = data.is_private
            entry.updated_at = datetime.now(timezone.utc)

            await db.flush()
            logger.info("Journal entry %s updated", entry_id)
            return self._to_response(entry)

        except MindVaultError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error updating journal entry %s: %s", entry_id, str(e))
            raise DatabaseError(
                message="Could not update the journal entry. Please try again.",
                context={"entry_id": str(entry_id)},
            ) from e

    async def delete_entry(
        self, db: AsyncSession, user_id: uuid.UUID, entry_id: uuid.UUID
    ) -> None:
        try:
            entry = await self._get_owned(db, user_id, entry_id)
            await db.delete(entry)
            await db.flush()
            logger.info("Journal entry %s deleted", entry_id)
        except MindVaultError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error deleting journal entry %s: %s", entry_id, str(e))
            raise DatabaseError(
                message="Could not delete the journal entry. Please try again.",
                context={"entry_id": str(entry_id)},
            ) from e

    async def search_entries(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        query: Optional[str] = None,
        mood: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> JournalSearchResponse:
        """
        Searches the user's entries.

        Mood and date range are filtered in SQL. The text query cannot be
        pushed down because title and content are ciphertext at rest, so it
        is matched case-insensitively against the revealed title, content
        and tags of the SQL-filtered candidates.
        """
        try:
            stmt = select(JournalEntry).where(JournalEntry.user_id == user_id)
            if mood:
                stmt = stmt.where(JournalEntry.mood == mood)
            if start_date:
                stmt = stmt.where(JournalEntry.created_at >= start_date)
            if end_date:
                stmt = stmt.where(JournalEntry.created_at <= end_date)
            stmt = stmt.order_by(desc(JournalEntry.created_at))

            result = await db.execute(stmt)
            candidates = [self._to_response(entry) for entry in result.scalars().all()]

        except MindVaultError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error searching journal entries: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not search journal entries. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

        if query:
            candidates = [entry for entry in candidates if _matches(entry, query)]

        return JournalSearchResponse(entries=candidates, count=len(candidates))


def _matches(entry: JournalEntryResponse, query: str) -> bool:
    needle = query.casefold()
    haystack: List[str] = [entry.title, entry.content, *entry.tags]
    return any(needle in text.casefold() for text in haystack if text)
