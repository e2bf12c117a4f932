"""
MindVault Backend — Chat Request/Response Schemas
===================================================

Plaintext in, plaintext out. Session titles and message content are
encrypted only inside the database.
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class ChatSessionCreate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=200)


class ChatSessionUpdate(BaseModel):
    title: str = Field(min_length=1, max_length=200)


class ChatMessageCreate(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str = Field(min_length=1, max_length=5000)


class ChatSessionResponse(BaseModel):
    session_id: str
    title: str
    is_active: bool
    created_at: datetime
    last_message_at: datetime


class ChatMessageResponse(BaseModel):
    id: uuid.UUID
    session_id: str
    role: str
    content: str
    timestamp: datetime


class ChatSessionDetailResponse(BaseModel):
    session: ChatSessionResponse
    messages: List[ChatMessageResponse]


class ChatSessionListResponse(BaseModel):
    sessions: List[ChatSessionResponse]


class ChatMessageListResponse(BaseModel):
    messages: List[ChatMessageResponse]
    count: int
