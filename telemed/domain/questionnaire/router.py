"""Questionnaire router - Pre-consultation questionnaire for patients"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import AuthUser, require_patient
from ...database import get_db
from .schemas import AnswerRequest, CompleteRequest
from .service import QuestionnaireService

router = APIRouter(prefix="/api/patient/questionnaire", tags=["Questionnaire"])


def get_questionnaire_service(db: Session = Depends(get_db)) -> QuestionnaireService:
    """Dependency injection for QuestionnaireService"""
    return QuestionnaireService(db)


@router.post("/answer")
async def save_answer(
    data: AnswerRequest,
    current_user: AuthUser = Depends(require_patient),
    service: QuestionnaireService = Depends(get_questionnaire_service),
):
    return service.save_answer(data, current_user)


@router.post("/complete")
async def complete_questionnaire(
    data: CompleteRequest,
    current_user: AuthUser = Depends(require_patient),
    service: QuestionnaireService = Depends(get_questionnaire_service),
):
    return service.complete(data, current_user)


@router.get("/{appointment_id}")
async def get_questionnaire(
    appointment_id: int,
    current_user: AuthUser = Depends(require_patient),
    service: QuestionnaireService = Depends(get_questionnaire_service),
):
    """Stored answers plus the question template for the appointment type"""
    return service.get_questionnaire(appointment_id, current_user)
