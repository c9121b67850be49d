"""Appointments router - Patient booking and doctor appointment views"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import AuthUser, require_doctor, require_patient, require_worker
from ...database import get_db
from .schemas import AppointmentCreateRequest, AvailableSlotsResponse
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Appointments"])


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db)


# ============================================================================
# PATIENT BOOKING
# ============================================================================


@router.get("/patient/appointments")
async def list_my_appointments(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[str] = None,
    current_user: AuthUser = Depends(require_patient),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Get the calling patient's appointments, newest first"""
    return service.list_patient_appointments(current_user, page, limit, status)


@router.get("/patient/appointments/available-slots", response_model=AvailableSlotsResponse)
async def get_available_slots(
    date: Optional[str] = None,
    specialty: Optional[str] = None,
    current_user: AuthUser = Depends(require_patient),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Open 30-minute JST slots per doctor for one date"""
    return service.get_available_slots(date, specialty)


@router.post("/patient/appointments", status_code=201)
async def book_appointment(
    data: AppointmentCreateRequest,
    current_user: AuthUser = Depends(require_patient),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.book_appointment(current_user, data)


@router.post("/patient/appointments/{appointment_id}/check-in")
async def check_in(
    appointment_id: int,
    current_user: AuthUser = Depends(require_patient),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.check_in(appointment_id, current_user)


@router.post("/patient/appointments/{appointment_id}/cancel")
async def cancel_appointment(
    appointment_id: int,
    current_user: AuthUser = Depends(require_patient),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.cancel(appointment_id, current_user)


@router.get("/patient/notifications")
async def get_notifications(
    current_user: AuthUser = Depends(require_patient),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.get_notifications(current_user)


# ============================================================================
# WORKER VIEWS
# ============================================================================


@router.get("/worker/appointments/{appointment_id}/details")
async def get_appointment_details(
    appointment_id: int,
    current_user: AuthUser = Depends(require_worker),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.get_appointment_details(appointment_id)


@router.get("/worker/doctor/appointments")
async def list_doctor_appointments(
    date: Optional[str] = None,
    current_user: AuthUser = Depends(require_doctor),
    service: AppointmentService = Depends(get_appointment_service),
):
    """The calling doctor's appointments, optionally limited to one JST date"""
    return service.list_doctor_appointments(current_user, date)


@router.get("/worker/doctor/statistics")
async def get_doctor_statistics(
    current_user: AuthUser = Depends(require_doctor),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.get_doctor_statistics(current_user)
