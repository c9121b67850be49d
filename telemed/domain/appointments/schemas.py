"""Appointment domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import APPOINTMENT_TYPES


class AppointmentCreateRequest(BaseModel):
    """
    Booking request. Date and times are JST wall-clock values; required
    fields are optional here so the service can answer 400 instead of 422.
    """

    doctorId: Optional[int] = None
    appointmentDate: Optional[str] = None
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    appointmentType: str = "initial"
    chiefComplaint: Optional[str] = None

    @field_validator("appointmentType")
    @classmethod
    def check_appointment_type(cls, v):
        if v not in APPOINTMENT_TYPES:
            raise ValueError(f"appointmentType must be one of: {', '.join(APPOINTMENT_TYPES)}")
        return v

    @field_validator("chiefComplaint")
    @classmethod
    def check_chief_complaint(cls, v):
        if v is not None and len(v) > 2000:
            raise ValueError("Chief complaint must be 2000 characters or fewer")
        return v


class TimeSlot(BaseModel):
    startTime: str
    endTime: str
    available: bool


class DoctorSlots(BaseModel):
    date: str
    doctorId: int
    doctorName: str
    specialty: str
    timeSlots: list[TimeSlot]


class AvailableSlotsResponse(BaseModel):
    slots: list[DoctorSlots]
