"""
MindVault Backend — Chat Route Handlers
=========================================

What:  Chat session and message endpoints under /api/chat/sessions.
How:   Thin handlers delegating to ChatService.
"""

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from mindvault.database import get_db_session
from mindvault.dependencies import get_chat_service, get_current_user_id
from mindvault.schemas.chat import (
    ChatMessageCreate,
    ChatMessageListResponse,
    ChatMessageResponse,
    ChatSessionCreate,
    ChatSessionDetailResponse,
    ChatSessionListResponse,
    ChatSessionResponse,
    ChatSessionUpdate,
)
from mindvault.schemas.common import ErrorResponse, MessageResponse
from mindvault.services.chat_service import ChatService

router = APIRouter(prefix="/api/chat", tags=["Chat"])

_not_found = {404: {"description": "Chat session not found", "model": ErrorResponse}}


@router.get("/sessions", response_model=ChatSessionListResponse, summary="List active chat sessions")
async def list_sessions(
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: ChatService = Depends(get_chat_service),
    db: AsyncSession = Depends(get_db_session),
) -> ChatSessionListResponse:
    return await service.list_sessions(db, user_id)


@router.post(
    "/sessions",
    status_code=201,
    response_model=ChatSessionResponse,
    summary="Start a chat session",
)
async def create_session(
    payload: ChatSessionCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: ChatService = Depends(get_chat_service),
    db: AsyncSession = Depends(get_db_session),
) -> ChatSessionResponse:
    return await service.create_session(db, user_id, payload.title)


@router.get(
    "/sessions/{session_id}",
    response_model=ChatSessionDetailResponse,
    responses=_not_found,
    summary="Get a chat session with its messages",
)
async def get_session(
    session_id: str,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: ChatService = Depends(get_chat_service),
    db: AsyncSession = Depends(get_db_session),
) -> ChatSessionDetailResponse:
    return await service.get_session(db, user_id, session_id)


@router.put(
    "/sessions/{session_id}",
    response_model=ChatSessionResponse,
    responses=_not_found,
    summary="Rename a chat session",
)
async def update_session(
    session_id: str,
    payload: ChatSessionUpdate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: ChatService = Depends(get_chat_service),
    db: AsyncSession = Depends(get_db_session),
) -> ChatSessionResponse:
    return await service.update_session_title(db, user_id, session_id, payload.title)


@router.delete(
    "/sessions/{session_id}",
    response_model=MessageResponse,
    responses=_not_found,
    summary="Delete (deactivate) a chat session",
)
async def delete_session(
    session_id: str,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: ChatService = Depends(get_chat_service),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await service.delete_session(db, user_id, session_id)
    return MessageResponse(message="Chat session deleted successfully")


@router.get(
    "/sessions/{session_id}/messages",
    response_model=ChatMessageListResponse,
    responses=_not_found,
    summary="List messages of a chat session",
)
async def list_messages(
    session_id: str,
    limit: int = Query(default=50, ge=1, le=200),
    before: datetime | None = Query(default=None, description="Only messages older than this"),
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: ChatService = Depends(get_chat_service),
    db: AsyncSession = Depends(get_db_session),
) -> ChatMessageListResponse:
    return await service.list_messages(db, user_id, session_id, limit=limit, before=before)


@router.post(
    "/sessions/{session_id}/messages",
    status_code=201,
    response_model=ChatMessageResponse,
    responses=_not_found,
    summary="Add a message to a chat session",
)
async def add_message(
    session_id: str,
    payload: ChatMessageCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: ChatService = Depends(get_chat_service),
    db: AsyncSession = Depends(get_db_session),
) -> ChatMessageResponse:
    return await service.add_message(db, user_id, session_id, payload.role, payload.content)
