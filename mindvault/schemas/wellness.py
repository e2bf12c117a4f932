"""
MindVault Backend — Wellness Check Schemas
============================================
"""

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class WellnessCheckCreate(BaseModel):
    mood: int = Field(ge=0, le=10, description="Self-reported mood, 0-10")
    analysis: str = Field(min_length=1, description="Generated wellness analysis")
    answers: Dict[str, str] = Field(
        default_factory=dict,
        description="Question id -> answer text",
    )


class WellnessCheckResponse(BaseModel):
    id: uuid.UUID
    mood: int
    analysis: str
    answers: Dict[str, str]
    completed_at: datetime


class WellnessTodayResponse(BaseModel):
    check: Optional[WellnessCheckResponse] = None


class WellnessStreakResponse(BaseModel):
    streak: int = Field(description="Consecutive days with a completed check")


class WellnessHistoryResponse(BaseModel):
    checks: List[WellnessCheckResponse]
