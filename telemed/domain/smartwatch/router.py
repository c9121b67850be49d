"""Smartwatch router - Patient wearable data endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import AuthUser, require_patient
from ...database import get_db
from .schemas import (
    DummyDataRequest,
    FeedbackGenerateRequest,
    HealthGoalRequest,
    PersonalityRequest,
    SmartwatchDataRequest,
)
from .service import SmartwatchService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/smartwatch", tags=["Smartwatch"])


def get_smartwatch_service(db: Session = Depends(get_db)) -> SmartwatchService:
    """Dependency injection for SmartwatchService"""
    return SmartwatchService(db)


# ============================================================================
# READINGS
# ============================================================================


@router.post("/data")
async def save_data(
    data: SmartwatchDataRequest,
    current_user: AuthUser = Depends(require_patient),
    service: SmartwatchService = Depends(get_smartwatch_service),
):
    return service.save_data(current_user, data)


@router.get("/data")
async def get_data(
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    dataType: Optional[str] = None,
    current_user: AuthUser = Depends(require_patient),
    service: SmartwatchService = Depends(get_smartwatch_service),
):
    return service.get_data(current_user, startDate, endDate, dataType)


@router.post("/dummy-data")
async def save_dummy_data(
    data: DummyDataRequest = DummyDataRequest(),
    current_user: AuthUser = Depends(require_patient),
    service: SmartwatchService = Depends(get_smartwatch_service),
):
    """Store a random comprehensive reading for demos"""
    return service.save_dummy_data(current_user, data)


@router.get("/analysis")
async def get_analysis(
    days: int = Query(7, ge=1, le=90),
    current_user: AuthUser = Depends(require_patient),
    service: SmartwatchService = Depends(get_smartwatch_service),
):
    return service.get_analysis(current_user, days)


# ============================================================================
# PERSONALITY
# ============================================================================


@router.post("/personality")
async def save_personality(
    data: PersonalityRequest,
    current_user: AuthUser = Depends(require_patient),
    service: SmartwatchService = Depends(get_smartwatch_service),
):
    return service.save_personality(current_user, data)


@router.get("/personality")
async def get_personality(
    current_user: AuthUser = Depends(require_patient),
    service: SmartwatchService = Depends(get_smartwatch_service),
):
    return service.get_personality(current_user)


# ============================================================================
# FEEDBACK
# ============================================================================


@router.post("/feedback/generate")
async def generate_feedback(
    data: FeedbackGenerateRequest,
    current_user: AuthUser = Depends(require_patient),
    service: SmartwatchService = Depends(get_smartwatch_service),
):
    return service.generate_feedback(current_user, data)


@router.get("/feedback/unread")
async def get_unread_feedback(
    current_user: AuthUser = Depends(require_patient),
    service: SmartwatchService = Depends(get_smartwatch_service),
):
    return service.get_unread_feedback(current_user)


@router.put("/feedback/{feedback_id}/read")
async def mark_feedback_read(
    feedback_id: int,
    current_user: AuthUser = Depends(require_patient),
    service: SmartwatchService = Depends(get_smartwatch_service),
):
    return service.mark_feedback_read(feedback_id, current_user)


# ============================================================================
# GOALS
# ============================================================================


@router.post("/goals")
async def save_goal(
    data: HealthGoalRequest,
    current_user: AuthUser = Depends(require_patient),
    service: SmartwatchService = Depends(get_smartwatch_service),
):
    return service.save_goal(current_user, data)


@router.get("/goals")
async def get_goals(
    current_user: AuthUser = Depends(require_patient),
    service: SmartwatchService = Depends(get_smartwatch_service),
):
    return service.get_goals(current_user)
