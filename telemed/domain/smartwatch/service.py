"""Smartwatch service - Wearable uploads, feedback, goals and weekly analysis"""

import logging
import time
from datetime import timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import AuthUser
from ...models import AIFeedback, PatientHealthGoal, PatientPersonality, SmartwatchData
from ...utils.timezone import parse_iso_datetime, to_utc_iso, utc_now
from . import analysis
from .repository import SmartwatchRepository
from .schemas import (
    DummyDataRequest,
    FeedbackGenerateRequest,
    HealthGoalRequest,
    PersonalityRequest,
    SmartwatchDataRequest,
)

logger = logging.getLogger(__name__)

FEEDBACK_WINDOW_DAYS = 7


def _parse_optional_datetime(value: Optional[str], field: str):
    if not value:
        return None
    try:
        return parse_iso_datetime(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid {field} format") from e


def reading_to_dict(reading: SmartwatchData) -> dict:
    return {
        "id": reading.id,
        "patientId": reading.patient_id,
        "deviceType": reading.device_type,
        "deviceId": reading.device_id,
        "dataType": reading.data_type,
        "data": reading.data,
        "recordedAt": to_utc_iso(reading.recorded_at),
        "syncedAt": to_utc_iso(reading.synced_at),
    }


def personality_to_dict(personality: PatientPersonality) -> dict:
    return {
        "id": personality.id,
        "patientId": personality.patient_id,
        "personalityData": personality.personality_data,
        "confidenceScore": personality.confidence_score,
        "lastUpdated": to_utc_iso(personality.last_updated),
    }


def feedback_to_dict(feedback: AIFeedback) -> dict:
    return {
        "id": feedback.id,
        "patientId": feedback.patient_id,
        "feedbackData": feedback.feedback_data,
        "triggerType": feedback.trigger_type,
        "triggerData": feedback.trigger_data,
        "isRead": feedback.is_read,
        "isActioned": feedback.is_actioned,
        "scheduledFor": to_utc_iso(feedback.scheduled_for),
        "createdAt": to_utc_iso(feedback.created_at),
    }


def goal_to_dict(goal: PatientHealthGoal) -> dict:
    return {
        "id": goal.id,
        "goalType": goal.goal_type,
        "targetValue": goal.target_value,
        "unit": goal.unit,
        "timeframe": goal.timeframe,
        "startDate": to_utc_iso(goal.start_date),
        "targetDate": to_utc_iso(goal.target_date),
        "status": goal.status,
        "progress": goal.progress,
    }


class SmartwatchService:
    """Service layer for patient wearable data"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SmartwatchRepository()

    # ========================================================================
    # READINGS
    # ========================================================================

    def save_data(self, user: AuthUser, data: SmartwatchDataRequest) -> dict:
        if not data.deviceType or not data.dataType or data.data is None:
            raise HTTPException(status_code=400, detail="deviceType, dataType and data are required")

        recorded_at = _parse_optional_datetime(data.recordedAt, "recordedAt") or utc_now()
        reading = self.repo.create_reading(
            self.db,
            patient_id=user.id,
            device_type=data.deviceType,
            device_id=data.deviceId or "",
            data_type=data.dataType,
            data=data.data,
            recorded_at=recorded_at,
        )
        logger.info(f"✅ Stored {data.dataType} reading from {data.deviceType} for patient {user.id}")
        return {"success": True, "data": reading_to_dict(reading)}

    def get_data(
        self,
        user: AuthUser,
        start_date: Optional[str],
        end_date: Optional[str],
        data_type: Optional[str],
    ) -> dict:
        readings = self.repo.get_readings(
            self.db,
            user.id,
            _parse_optional_datetime(start_date, "startDate"),
            _parse_optional_datetime(end_date, "endDate"),
            data_type,
        )
        return {"success": True, "data": [reading_to_dict(r) for r in readings]}

    def save_dummy_data(self, user: AuthUser, data: DummyDataRequest) -> dict:
        reading = self.repo.create_reading(
            self.db,
            patient_id=user.id,
            device_type=data.deviceType,
            device_id=f"dummy-{int(time.time() * 1000)}",
            data_type=data.dataType,
            data=analysis.generate_dummy_reading(),
            recorded_at=utc_now(),
        )
        logger.info(f"🧪 Generated dummy smartwatch reading for patient {user.id}")
        return {"success": True, "data": reading_to_dict(reading)}

    # ========================================================================
    # PERSONALITY
    # ========================================================================

    def save_personality(self, user: AuthUser, data: PersonalityRequest) -> dict:
        if data.personalityData is None:
            raise HTTPException(status_code=400, detail="personalityData is required")

        personality = self.repo.upsert_personality(self.db, user.id, data.personalityData, data.confidenceScore)
        return {"success": True, "data": personality_to_dict(personality)}

    def get_personality(self, user: AuthUser) -> dict:
        personality = self.repo.get_personality(self.db, user.id)
        return {"success": True, "data": personality_to_dict(personality) if personality else None}

    # ========================================================================
    # FEEDBACK
    # ========================================================================

    def generate_feedback(self, user: AuthUser, data: FeedbackGenerateRequest) -> dict:
        if not data.triggerType:
            raise HTTPException(status_code=400, detail="triggerType is required")

        scheduled_for = _parse_optional_datetime(data.scheduledFor, "scheduledFor")
        since = utc_now() - timedelta(days=FEEDBACK_WINDOW_DAYS)
        readings = self.repo.get_readings(self.db, user.id, start=since)
        payloads = [r.data for r in reversed(readings)]

        feedback = self.repo.create_feedback(
            self.db,
            patient_id=user.id,
            feedback_data=analysis.choose_feedback(payloads),
            trigger_type=data.triggerType,
            trigger_data=data.triggerData,
            scheduled_for=scheduled_for,
        )
        logger.info(
            f"✅ Generated {feedback.feedback_data['messageType']} feedback for patient {user.id} "
            f"from {len(payloads)} readings"
        )
        return {"success": True, "data": feedback_to_dict(feedback)}

    def get_unread_feedback(self, user: AuthUser) -> dict:
        feedbacks = self.repo.get_unread_feedback(self.db, user.id)
        return {"success": True, "data": [feedback_to_dict(f) for f in feedbacks]}

    def mark_feedback_read(self, feedback_id: int, user: AuthUser) -> dict:
        feedback = self.repo.get_feedback(self.db, feedback_id, user.id)
        if not feedback:
            raise HTTPException(status_code=404, detail="Feedback not found")

        feedback = self.repo.mark_feedback_read(self.db, feedback)
        return {"success": True, "data": feedback_to_dict(feedback)}

    # ========================================================================
    # GOALS
    # ========================================================================

    def save_goal(self, user: AuthUser, data: HealthGoalRequest) -> dict:
        if not all([data.goalType, data.targetValue, data.unit, data.timeframe]):
            raise HTTPException(status_code=400, detail="goalType, targetValue, unit and timeframe are required")

        goal = self.repo.create_goal(
            self.db,
            patient_id=user.id,
            goal_type=data.goalType,
            target_value=data.targetValue,
            unit=data.unit,
            timeframe=data.timeframe,
            target_date=_parse_optional_datetime(data.targetDate, "targetDate"),
        )
        return {"success": True, "data": goal_to_dict(goal)}

    def get_goals(self, user: AuthUser) -> dict:
        goals = self.repo.get_goals(self.db, user.id)
        return {"success": True, "data": [goal_to_dict(g) for g in goals]}

    # ========================================================================
    # ANALYSIS
    # ========================================================================

    def get_analysis(self, user: AuthUser, days: int) -> dict:
        since = utc_now() - timedelta(days=days)
        readings = self.repo.get_readings(self.db, user.id, start=since)

        if readings:
            payloads = [r.data for r in reversed(readings)]
            source = "stored"
        else:
            payloads = [analysis.generate_dummy_reading() for _ in range(days)]
            source = "dummy"
            logger.info(f"⚠️ No smartwatch data for patient {user.id}; analysing generated readings")

        result = analysis.analyze(payloads)
        result["source"] = source
        result["periodDays"] = days
        return {"success": True, "data": result}
