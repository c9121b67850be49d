"""Medical record schemas"""

from typing import Any, Optional

from pydantic import BaseModel


class MedicalRecordCreate(BaseModel):
    appointmentId: int
    subjective: Optional[str] = None
    objective: Optional[str] = None
    assessment: Optional[str] = None
    plan: Optional[str] = None
    vitalSigns: Optional[dict[str, Any]] = None
    # Validated by the service so incomplete entries answer 400
    prescriptions: Optional[list[dict[str, Any]]] = None
    aiSummary: Optional[dict[str, Any]] = None


class MedicalRecordUpdate(BaseModel):
    """Partial update; only fields present in the body are written"""

    subjective: Optional[str] = None
    objective: Optional[str] = None
    assessment: Optional[str] = None
    plan: Optional[str] = None
    vitalSigns: Optional[dict[str, Any]] = None
    prescriptions: Optional[list[dict[str, Any]]] = None
    aiSummary: Optional[dict[str, Any]] = None
