"""Questionnaire service - Templates, answer capture and completion"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import AuthUser
from ...models import Appointment
from ...utils.timezone import to_utc_iso
from .repository import QuestionnaireRepository
from .schemas import AnswerRequest, CompleteRequest

logger = logging.getLogger(__name__)

BASIC_QUESTIONS = [
    {
        "id": "symptoms",
        "type": "textarea",
        "question": "Please describe your current symptoms in detail",
        "required": True,
    },
    {
        "id": "symptom_duration",
        "type": "select",
        "question": "When did the symptoms start?",
        "options": ["Today", "Yesterday", "2-3 days ago", "About a week ago", "More than a month ago"],
        "required": True,
    },
    {
        "id": "allergies",
        "type": "textarea",
        "question": "Do you have any allergies?",
        "required": False,
    },
    {
        "id": "medications",
        "type": "textarea",
        "question": "Are you currently taking any medication?",
        "required": False,
    },
    {
        "id": "medical_history",
        "type": "textarea",
        "question": "Please tell us about your past medical history",
        "required": False,
    },
]

FOLLOW_UP_QUESTION = {
    "id": "previous_treatment",
    "type": "textarea",
    "question": "How have you been since your last consultation?",
    "required": True,
}


def get_questionnaire_template(appointment_type: str) -> list[dict]:
    """Question list for an appointment type; follow-ups ask about the previous treatment first"""
    questions = [dict(q) for q in BASIC_QUESTIONS]
    if appointment_type == "follow_up":
        questions.insert(0, dict(FOLLOW_UP_QUESTION))
    return questions


class QuestionnaireService:
    """Service layer for questionnaire operations"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = QuestionnaireRepository()

    def _get_owned_appointment(self, appointment_id: int, user: AuthUser) -> Appointment:
        appointment = self.repo.get_appointment(self.db, appointment_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        if appointment.patient_id != user.id:
            raise HTTPException(status_code=403, detail="Access denied")
        return appointment

    def get_questionnaire(self, appointment_id: int, user: AuthUser) -> dict:
        appointment = self._get_owned_appointment(appointment_id, user)
        template = get_questionnaire_template(appointment.appointment_type)

        questionnaire = self.repo.get_by_appointment(self.db, appointment_id)
        if questionnaire is None:
            return {
                "questionnaire": {"appointmentId": appointment_id, "answers": {}, "completedAt": None},
                "template": template,
            }

        return {
            "questionnaire": {
                "id": questionnaire.id,
                "appointmentId": questionnaire.appointment_id,
                "answers": questionnaire.questions_answers or {},
                "completedAt": to_utc_iso(questionnaire.completed_at),
                "createdAt": to_utc_iso(questionnaire.created_at),
                "updatedAt": to_utc_iso(questionnaire.updated_at),
            },
            "template": template,
        }

    def save_answer(self, data: AnswerRequest, user: AuthUser) -> dict:
        if not data.appointmentId or not data.questionId or "answer" not in data.model_fields_set:
            raise HTTPException(status_code=400, detail="appointmentId, questionId and answer are required")

        self._get_owned_appointment(data.appointmentId, user)
        self.repo.save_answer(self.db, data.appointmentId, data.questionId, data.answer)
        logger.info(f"✅ Saved answer '{data.questionId}' for appointment {data.appointmentId}")
        return {"success": True}

    def complete(self, data: CompleteRequest, user: AuthUser) -> dict:
        if not data.appointmentId:
            raise HTTPException(status_code=400, detail="appointmentId is required")

        self._get_owned_appointment(data.appointmentId, user)
        questionnaire = self.repo.get_by_appointment(self.db, data.appointmentId)
        if not questionnaire:
            raise HTTPException(status_code=404, detail="Questionnaire not found")

        questionnaire = self.repo.mark_completed(self.db, questionnaire)
        logger.info(f"✅ Questionnaire {questionnaire.id} completed")
        return {
            "success": True,
            "questionnaire": {
                "id": questionnaire.id,
                "appointmentId": questionnaire.appointment_id,
                "completedAt": to_utc_iso(questionnaire.completed_at),
            },
        }
