"""
MindVault Backend — Wellness Route Handlers
=============================================
"""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from mindvault.database import get_db_session
from mindvault.dependencies import get_current_user_id, get_wellness_service
from mindvault.schemas.common import ErrorResponse
from mindvault.schemas.wellness import (
    WellnessCheckCreate,
    WellnessCheckResponse,
    WellnessHistoryResponse,
    WellnessStreakResponse,
    WellnessTodayResponse,
)
from mindvault.services.wellness_service import WellnessService

router = APIRouter(prefix="/api/wellness", tags=["Wellness"])


@router.post(
    "",
    status_code=201,
    response_model=WellnessCheckResponse,
    responses={409: {"description": "Already completed today", "model": ErrorResponse}},
    summary="Submit today's wellness check",
)
async def create_check(
    payload: WellnessCheckCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: WellnessService = Depends(get_wellness_service),
    db: AsyncSession = Depends(get_db_session),
) -> WellnessCheckResponse:
    return await service.create_check(db, user_id, payload)


@router.get("/today", response_model=WellnessTodayResponse, summary="Today's wellness check, if any")
async def get_today(
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: WellnessService = Depends(get_wellness_service),
    db: AsyncSession = Depends(get_db_session),
) -> WellnessTodayResponse:
    return WellnessTodayResponse(check=await service.get_today_check(db, user_id))


@router.get("/streak", response_model=WellnessStreakResponse, summary="Current check-in streak")
async def get_streak(
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: WellnessService = Depends(get_wellness_service),
    db: AsyncSession = Depends(get_db_session),
) -> WellnessStreakResponse:
    return WellnessStreakResponse(streak=await service.get_streak(db, user_id))


@router.get("/history", response_model=WellnessHistoryResponse, summary="Past wellness checks")
async def get_history(
    limit: int = Query(default=30, ge=1, le=365),
    skip: int = Query(default=0, ge=0),
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: WellnessService = Depends(get_wellness_service),
    db: AsyncSession = Depends(get_db_session),
) -> WellnessHistoryResponse:
    return await service.get_history(db, user_id, limit=limit, skip=skip)
