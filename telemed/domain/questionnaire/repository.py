"""Questionnaire repository - Database operations for pre-consultation questionnaires"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Appointment, Questionnaire
from ...utils.timezone import utc_now


class QuestionnaireRepository:
    """Repository for questionnaire database operations"""

    @staticmethod
    def get_appointment(db: Session, appointment_id: int) -> Optional[Appointment]:
        return db.query(Appointment).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def get_by_appointment(db: Session, appointment_id: int) -> Optional[Questionnaire]:
        return db.query(Questionnaire).filter(Questionnaire.appointment_id == appointment_id).first()

    @staticmethod
    def save_answer(db: Session, appointment_id: int, question_id: str, answer) -> Questionnaire:
        """Merge one answer into the stored answers, creating the questionnaire if needed"""
        questionnaire = QuestionnaireRepository.get_by_appointment(db, appointment_id)
        if questionnaire is None:
            questionnaire = Questionnaire(appointment_id=appointment_id, questions_answers={question_id: answer})
            db.add(questionnaire)
        else:
            # Reassign so the JSON column is flagged dirty
            answers = dict(questionnaire.questions_answers or {})
            answers[question_id] = answer
            questionnaire.questions_answers = answers
        db.commit()
        db.refresh(questionnaire)
        return questionnaire

    @staticmethod
    def mark_completed(db: Session, questionnaire: Questionnaire) -> Questionnaire:
        questionnaire.completed_at = utc_now()
        db.commit()
        db.refresh(questionnaire)
        return questionnaire
