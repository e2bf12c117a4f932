"""
MindVault Backend — Journal Route Handlers
============================================

What:  CRUD and search endpoints for journal entries under /api/journal.
How:   Extracts query/body parameters, delegates to JournalService.
Who:   Called by the journaling screens of the frontend.

Caching:
    Entries are private and mutable: every response is `Cache-Control:
    private, no-store` so decrypted text never lands in a shared cache.
"""

import logging
import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from mindvault.database import get_db_session
from mindvault.dependencies import get_current_user_id, get_journal_service
from mindvault.schemas.common import ErrorResponse, MessageResponse
from mindvault.schemas.journal import (
    JournalEntryCreate,
    JournalEntryListResponse,
    JournalEntryResponse,
    JournalEntryUpdate,
    JournalSearchResponse,
)
from mindvault.services.journal_service import JournalService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/journal", tags=["Journal"])

NO_STORE = "private, no-store"


@router.get(
    "",
    response_model=JournalEntryListResponse,
    responses={500: {"model": ErrorResponse}},
    summary="List journal entries",
)
async def list_entries(
    response: Response,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    sort_by: str = Query(default="created_at", description="created_at, updated_at or mood"),
    order: str = Query(default="desc", description="asc or desc"),
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: JournalService = Depends(get_journal_service),
    db: AsyncSession = Depends(get_db_session),
) -> JournalEntryListResponse:
    result = await service.list_entries(
        db, user_id, page=page, limit=limit, sort_by=sort_by, order=order
    )
    response.headers["X-Total-Count"] = str(result.total)
    response.headers["Cache-Control"] = NO_STORE
    return result


@router.get(
    "/search",
    response_model=JournalSearchResponse,
    summary="Search journal entries",
    description=(
        "Case-insensitive match of `query` against title, content and tags, "
        "optionally narrowed by mood and a created_at date range."
    ),
)
async def search_entries(
    response: Response,
    query: str | None = Query(default=None, max_length=200),
    mood: str | None = Query(default=None),
    start_date: datetime | None = Query(default=None),
    end_date: datetime | None = Query(default=None),
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: JournalService = Depends(get_journal_service),
    db: AsyncSession = Depends(get_db_session),
) -> JournalSearchResponse:
    response.headers["Cache-Control"] = NO_STORE
    return await service.search_entries(
        db, user_id, query=query, mood=mood, start_date=start_date, end_date=end_date
    )


@router.get(
    "/{entry_id}",
    response_model=JournalEntryResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get a journal entry",
)
async def get_entry(
    entry_id: uuid.UUID,
    response: Response,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: JournalService = Depends(get_journal_service),
    db: AsyncSession = Depends(get_db_session),
) -> JournalEntryResponse:
    response.headers["Cache-Control"] = NO_STORE
    return await service.get_entry(db, user_id, entry_id)


@router.post(
    "",
    status_code=201,
    response_model=JournalEntryResponse,
    summary="Create a journal entry",
)
async def create_entry(
    payload: JournalEntryCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: JournalService = Depends(get_journal_service),
    db: AsyncSession = Depends(get_db_session),
) -> JournalEntryResponse:
    return await service.create_entry(db, user_id, payload)


@router.put(
    "/{entry_id}",
    response_model=JournalEntryResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Update a journal entry",
)
async def update_entry(
    entry_id: uuid.UUID,
    payload: JournalEntryUpdate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: JournalService = Depends(get_journal_service),
    db: AsyncSession = Depends(get_db_session),
) -> JournalEntryResponse:
    return await service.update_entry(db, user_id, entry_id, payload)


@router.delete(
    "/{entry_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Delete a journal entry",
)
async def delete_entry(
    entry_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: JournalService = Depends(get_journal_service),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await service.delete_entry(db, user_id, entry_id)
    return MessageResponse(message="Journal entry deleted successfully")
