"""
MindVault Backend — Wellness Check Service
============================================

What:  Daily wellness check-ins: create, today's check, streak, history.
How:   `analysis` is protected as one field; `answers` is a map whose values
       are protected one by one (keys are question ids and stay plain).

Undecryptable answers:
    A token in `answers` that fails to reveal raises DecryptionError exactly
    like any other protected field. The ciphertext is never handed back in
    place of the answer, so a client can't mistake a token for what the
    user wrote.

Days are UTC calendar days.
"""

import logging
import uuid
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy import desc, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mindvault.exceptions import ConflictError, DatabaseError, MindVaultError
from mindvault.models.wellness_check import WellnessCheck
from mindvault.schemas.wellness import (
    WellnessCheckCreate,
    WellnessCheckResponse,
    WellnessHistoryResponse,
)
from mindvault.services.field_cipher import FieldCipher

logger = logging.getLogger(__name__)


def utc_day_bounds(now: datetime) -> tuple[datetime, datetime]:
    """[start, end) of the UTC day containing `now`."""
    start = datetime.combine(now.astimezone(timezone.utc).date(), time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def _utc_date(value: datetime) -> date:
    # SQLite hands back naive datetimes; they are stored as UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).date()


def count_streak(completed: Iterable[datetime], today: date) -> int:
    """
    Number of consecutive days with a check, ending today or yesterday.

    A check missing today does not break the streak yet (the user may still
    check in); a missing day anywhere else does.
    """
    days = sorted({_utc_date(c) for c in completed}, reverse=True)
    if not days:
        return 0

    expected = today
    if days[0] != today:
        expected = today - timedelta(days=1)

    streak = 0
    for day in days:
        if day > expected:
            continue
        if day != expected:
            break
        streak += 1
        expected -= timedelta(days=1)
    return streak


class WellnessService:
    def __init__(self, cipher: FieldCipher):
        self.cipher = cipher

    def _protect_answers(self, answers: Dict[str, str]) -> Dict[str, str]:
        return {key: self.cipher.protect(value) for key, value in answers.items()}

    def _reveal_answers(self, answers: Optional[Dict[str, str]]) -> Dict[str, str]:
        return {key: self.cipher.reveal(value) for key, value in (answers or {}).items()}

    def _to_response(self, check: WellnessCheck) -> WellnessCheckResponse:
        return WellnessCheckResponse(
            id=check.id,
            mood=check.mood,
            analysis=self.cipher.reveal(check.analysis),
            answers=self._reveal_answers(check.answers),
            completed_at=check.completed_at,
        )

    async def _find_today(self, db: AsyncSession, user_id: uuid.UUID) -> Optional[WellnessCheck]:
        start, end = utc_day_bounds(datetime.now(timezone.utc))
        result = await db.execute(
            select(WellnessCheck)
            .where(
                WellnessCheck.user_id == user_id,
                WellnessCheck.completed_at >= start,
                WellnessCheck.completed_at < end,
            )
            .limit(1)
        )
        return result.scalars().first()

    async def create_check(
        self, db: AsyncSession, user_id: uuid.UUID, data: WellnessCheckCreate
    ) -> WellnessCheckResponse:
        """
        Records today's check.

        Raises:
            ConflictError: the user already completed a check today
                           (checked up front, and by the unique day index
                           when two submissions race).
            EncryptionError: protecting analysis or an answer failed.
        """
        try:
            if await self._find_today(db, user_id) is not None:
                raise ConflictError(
                    message="Wellness check already completed today",
                    context={"user_id": str(user_id)},
                )

            now = datetime.now(timezone.utc)
            check = WellnessCheck(
                id=uuid.uuid4(),
                user_id=user_id,
                mood=data.mood,
                analysis=self.cipher.protect(data.analysis),
                answers=self._protect_answers(data.answers),
                completed_at=now,
                created_at=now,
            )
            db.add(check)
            await db.flush()
            logger.info("Wellness check %s saved for user %s", check.id, user_id)
            return self._to_response(check)

        except MindVaultError:
            raise
        except IntegrityError as e:
            # A concurrent request inserted today's check first
            logger.warning("Duplicate wellness check for user %s rejected by database", user_id)
            raise ConflictError(
                message="Wellness check already completed today",
                context={"user_id": str(user_id)},
            ) from e
        except SQLAlchemyError as e:
            logger.error("Database error saving wellness check: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the wellness check. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

    async def get_today_check(
        self, db: AsyncSession, user_id: uuid.UUID
    ) -> Optional[WellnessCheckResponse]:
        try:
            check = await self._find_today(db, user_id)
            return self._to_response(check) if check is not None else None
        except MindVaultError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error loading today's wellness check: %s", str(e))
            raise DatabaseError(
                message="Could not retrieve today's wellness check. Please try again.",
            ) from e

    async def get_streak(self, db: AsyncSession, user_id: uuid.UUID) -> int:
        try:
            result = await db.execute(
                select(WellnessCheck.completed_at)
                .where(WellnessCheck.user_id == user_id)
                .order_by(desc(WellnessCheck.completed_at))
            )
            completed: List[datetime] = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error computing wellness streak: %s", str(e))
            raise DatabaseError(
                message="Could not compute the wellness streak. Please try again.",
            ) from e

        return count_streak(completed, datetime.now(timezone.utc).date())

    async def get_history(
        self, db: AsyncSession, user_id: uuid.UUID, limit: int = 30, skip: int = 0
    ) -> WellnessHistoryResponse:
        """Most recent checks first."""
        try:
            result = await db.execute(
                select(WellnessCheck)
                .where(WellnessCheck.user_id == user_id)
                .order_by(desc(WellnessCheck.completed_at))
                .offset(skip)
                .limit(limit)
            )
            checks = result.scalars().all()
            return WellnessHistoryResponse(checks=[self._to_response(c) for c in checks])
        except MindVaultError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error loading wellness history: %s", str(e))
            raise DatabaseError(
                message="Could not retrieve wellness history. Please try again.",
            ) from e
