"""Smartwatch repository - Wearable readings, personality, feedback and goals"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import AIFeedback, PatientHealthGoal, PatientPersonality, SmartwatchData
from ...utils.timezone import utc_now


class SmartwatchRepository:
    """Repository for smartwatch-related database operations"""

    # ========================================================================
    # READINGS
    # ========================================================================

    @staticmethod
    def create_reading(db: Session, **reading_data) -> SmartwatchData:
        reading = SmartwatchData(**reading_data)
        db.add(reading)
        db.commit()
        db.refresh(reading)
        return reading

    @staticmethod
    def get_readings(
        db: Session,
        patient_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        data_type: Optional[str] = None,
    ) -> list[SmartwatchData]:
        query = db.query(SmartwatchData).filter(SmartwatchData.patient_id == patient_id)
        if start:
            query = query.filter(SmartwatchData.recorded_at >= start)
        if end:
            query = query.filter(SmartwatchData.recorded_at <= end)
        if data_type:
            query = query.filter(SmartwatchData.data_type == data_type)
        return query.order_by(SmartwatchData.recorded_at.desc()).all()

    # ========================================================================
    # PERSONALITY
    # ========================================================================

    @staticmethod
    def get_personality(db: Session, patient_id: int) -> Optional[PatientPersonality]:
        return db.query(PatientPersonality).filter(PatientPersonality.patient_id == patient_id).first()

    @staticmethod
    def upsert_personality(
        db: Session, patient_id: int, personality_data: dict, confidence_score: Optional[float]
    ) -> PatientPersonality:
        personality = SmartwatchRepository.get_personality(db, patient_id)
        if personality is None:
            personality = PatientPersonality(patient_id=patient_id)
            db.add(personality)
        personality.personality_data = personality_data
        personality.confidence_score = confidence_score
        personality.last_updated = utc_now()
        db.commit()
        db.refresh(personality)
        return personality

    # ========================================================================
    # FEEDBACK
    # ========================================================================

    @staticmethod
    def create_feedback(db: Session, **feedback_data) -> AIFeedback:
        feedback = AIFeedback(**feedback_data)
        db.add(feedback)
        db.commit()
        db.refresh(feedback)
        return feedback

    @staticmethod
    def get_unread_feedback(db: Session, patient_id: int) -> list[AIFeedback]:
        return (
            db.query(AIFeedback)
            .filter(AIFeedback.patient_id == patient_id, AIFeedback.is_read.is_(False))
            .order_by(AIFeedback.created_at.desc(), AIFeedback.id.desc())
            .all()
        )

    @staticmethod
    def get_feedback(db: Session, feedback_id: int, patient_id: int) -> Optional[AIFeedback]:
        return (
            db.query(AIFeedback)
            .filter(AIFeedback.id == feedback_id, AIFeedback.patient_id == patient_id)
            .first()
        )

    @staticmethod
    def mark_feedback_read(db: Session, feedback: AIFeedback) -> AIFeedback:
        feedback.is_read = True
        db.commit()
        db.refresh(feedback)
        return feedback

    # ========================================================================
    # GOALS
    # ========================================================================

    @staticmethod
    def create_goal(db: Session, **goal_data) -> PatientHealthGoal:
        goal = PatientHealthGoal(**goal_data)
        db.add(goal)
        db.commit()
        db.refresh(goal)
        return goal

    @staticmethod
    def get_goals(db: Session, patient_id: int) -> list[PatientHealthGoal]:
        return (
            db.query(PatientHealthGoal)
            .filter(PatientHealthGoal.patient_id == patient_id)
            .order_by(PatientHealthGoal.created_at.desc(), PatientHealthGoal.id.desc())
            .all()
        )
