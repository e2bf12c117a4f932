"""
MindVault Backend — Journal Request/Response Schemas
======================================================

What:  Pydantic models defining the journal API contract.
Why:   Strict input validation, automatic serialization, and OpenAPI docs.

Every text field here is PLAINTEXT. Tokens never cross the API boundary:
JournalService reveals them before building a response model.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class MLAnalysis(BaseModel):
    """Emotion analysis attached to an entry by the ML pipeline."""
    primary_emotion: Optional[str] = None
    emotion_confidence: Optional[float] = None
    detected_emotions: List[Dict[str, Any]] = Field(default_factory=list)
    emotional_state_summary: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    timestamp: Optional[str] = None


class KeystrokeData(BaseModel):
    """Typing metrics captured by the client while the entry was written."""
    total_keystrokes: Optional[int] = None
    typing_duration: Optional[float] = None
    avg_wpm: Optional[float] = None
    pause_count: Optional[int] = None
    error_rate: Optional[float] = None
    mental_state: Optional[str] = None


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class JournalEntryCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200, description="Entry title")
    content: str = Field(min_length=1, description="Entry body")
    mood: str = Field(default="neutral", max_length=50)
    tags: List[str] = Field(default_factory=list)
    is_private: bool = Field(default=True)
    ml_analysis: Optional[MLAnalysis] = None
    keystroke_data: Optional[KeystrokeData] = None

    @field_validator("tags")
    @classmethod
    def strip_tags(cls, v: List[str]) -> List[str]:
        """Trims whitespace and drops empty tags."""
        return [tag.strip() for tag in v if tag and tag.strip()]


class JournalEntryUpdate(BaseModel):
    """
    Partial update. Omitted (or empty) title/content/mood keep the stored
    value; tags and is_private are replaced whenever they are sent.
    """
    title: Optional[str] = Field(default=None, max_length=200)
    content: Optional[str] = None
    mood: Optional[str] = Field(default=None, max_length=50)
    tags: Optional[List[str]] = None
    is_private: Optional[bool] = None


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class JournalEntryResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str = Field(description="Decrypted title")
    content: str = Field(description="Decrypted content")
    mood: str
    tags: List[str]
    is_private: bool
    ml_analysis: Optional[Dict[str, Any]] = None
    keystroke_data: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime


class JournalEntryListResponse(BaseModel):
    """Offset-paginated list of entries."""
    entries: List[JournalEntryResponse]
    total: int = Field(description="Total entries owned by the user")
    total_pages: int
    current_page: int


class JournalSearchResponse(BaseModel):
    entries: List[JournalEntryResponse]
    count: int


JOURNAL_SORT_FIELDS = {"created_at", "updated_at", "mood"}
