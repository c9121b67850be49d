"""Questionnaire domain schemas"""

from typing import Any, Optional

from pydantic import BaseModel


class AnswerRequest(BaseModel):
    """A single answer; missing fields are reported as 400 by the service"""

    appointmentId: Optional[int] = None
    questionId: Optional[str] = None
    answer: Optional[Any] = None


class CompleteRequest(BaseModel):
    appointmentId: Optional[int] = None
