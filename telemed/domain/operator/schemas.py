"""Operator console schemas"""

from typing import Optional

from pydantic import BaseModel


class AssignDoctorRequest(BaseModel):
    """
    Drop of a waiting patient onto a doctor's board slot.
    timeSlot is HH:MM in JST; date defaults to the appointment's JST date.
    """

    appointmentId: Optional[int] = None
    doctorId: Optional[int] = None
    timeSlot: Optional[str] = None
    date: Optional[str] = None


class OperatorAppointmentUpdate(BaseModel):
    """Partial update; only fields present in the body are applied"""

    status: Optional[str] = None
    assignedWorkerId: Optional[int] = None
    scheduledAt: Optional[str] = None
    chiefComplaint: Optional[str] = None
    durationMinutes: Optional[int] = None
