"""
MindVault — Encryption Backfill (`mindvault-backfill`)
========================================================

What:  Encrypts protected columns of rows written before encryption existed.
How:   Walks every protected column, and protects each non-empty value that
       is not already a token. Rows that are already tokens are skipped, so
       the tool can be re-run safely.

Usage:
    mindvault-backfill --dry-run     # report what would change
    mindvault-backfill               # encrypt and commit

Refuses to run without ENCRYPTION_KEY: backfilling with a temporary key
would make the data unreadable on the next start.
"""

import argparse
import asyncio
import logging
from typing import Dict, Iterable, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mindvault.config import settings
from mindvault.database import async_session_factory, dispose_engine
from mindvault.models import ChatMessage, ChatSession, JournalEntry, WellnessCheck
from mindvault.services.field_cipher import FieldCipher, is_protected

logger = logging.getLogger(__name__)

# (model, text columns whose whole value is a token)
TEXT_COLUMNS = (
    (JournalEntry, ("title", "content")),
    (ChatSession, ("title",)),
    (ChatMessage, ("content",)),
    (WellnessCheck, ("analysis",)),
)


def _needs_protection(value) -> bool:
    return isinstance(value, str) and bool(value) and not is_protected(value)


def _protect_columns(
    rows: Iterable, columns: Sequence[str], cipher: FieldCipher, dry_run: bool
) -> Dict[str, int]:
    counts = {column: 0 for column in columns}
    for row in rows:
        for column in columns:
            value = getattr(row, column)
            if not _needs_protection(value):
                continue
            counts[column] += 1
            if not dry_run:
                setattr(row, column, cipher.protect(value))
    return counts


def _protect_answers(rows: Iterable, cipher: FieldCipher, dry_run: bool) -> int:
    changed = 0
    for row in rows:
        answers = row.answers or {}
        pending = [k for k, v in answers.items() if _needs_protection(v)]
        if not pending:
            continue
        changed += len(pending)
        if dry_run:
            continue
        # New dict: in-place JSONB mutation is not change-tracked
        row.answers = {
            k: cipher.protect(v) if k in pending else v for k, v in answers.items()
        }
    return changed


async def backfill(
    db: AsyncSession, cipher: FieldCipher, dry_run: bool = False
) -> Dict[str, int]:
    """
    Protects every plaintext value in the database.

    Returns:
        Count of values protected (or that would be, with dry_run) keyed
        by "<table>.<column>".
    """
    totals: Dict[str, int] = {}

    for model, columns in TEXT_COLUMNS:
        result = await db.execute(select(model))
        rows = result.scalars().all()

        counts = _protect_columns(rows, columns, cipher, dry_run)
        for column, count in counts.items():
            totals[f"{model.__tablename__}.{column}"] = count

        if model is WellnessCheck:
            totals["wellness_checks.answers"] = _protect_answers(rows, cipher, dry_run)

    if not dry_run:
        await db.flush()
    return totals


async def run(dry_run: bool) -> Dict[str, int]:
    cipher = FieldCipher.from_settings(settings)
    try:
        async with async_session_factory() as session:
            totals = await backfill(session, cipher, dry_run=dry_run)
            if dry_run:
                await session.rollback()
            else:
                await session.commit()
    finally:
        await dispose_engine()
    return totals


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="mindvault-backfill",
        description="Encrypt protected columns that still hold plaintext.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Count plaintext values without writing anything",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )

    if not settings.encryption_key:
        logger.error("ENCRYPTION_KEY is not set; refusing to backfill")
        return 1

    totals = asyncio.run(run(args.dry_run))

    verb = "would protect" if args.dry_run else "protected"
    for column, count in totals.items():
        logger.info("%s: %s %d value(s)", column, verb, count)
    logger.info("Backfill %s: %d value(s) total", "dry run" if args.dry_run else "done",
                sum(totals.values()))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
