"""Operator routers - Console, assignment board and appointment management"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import AuthUser, require_operator
from ...database import get_db
from .schemas import AssignDoctorRequest, OperatorAppointmentUpdate
from .service import OperatorService

router = APIRouter(prefix="/api/worker/operator", tags=["Operator"])

# Mounted twice by the app: /api/worker/operator/appointments and /api/worker/appointments
appointments_router = APIRouter(tags=["Operator Appointments"])


def get_operator_service(db: Session = Depends(get_db)) -> OperatorService:
    """Dependency injection for OperatorService"""
    return OperatorService(db)


# ============================================================================
# CONSOLE
# ============================================================================


@router.get("/dashboard")
async def get_dashboard(
    current_user: AuthUser = Depends(require_operator),
    service: OperatorService = Depends(get_operator_service),
):
    return service.get_dashboard()


@router.get("/realtime-status")
async def get_realtime_status(
    current_user: AuthUser = Depends(require_operator),
    service: OperatorService = Depends(get_operator_service),
):
    return service.get_realtime_status()


# ============================================================================
# ASSIGNMENT BOARD
# ============================================================================


@router.get("/assignment-board")
async def get_assignment_board(
    date: Optional[str] = None,
    current_user: AuthUser = Depends(require_operator),
    service: OperatorService = Depends(get_operator_service),
):
    """Doctors, waiting patients and placed appointments for one JST date"""
    return service.get_assignment_board(date)


@router.post("/assign-doctor")
async def assign_doctor(
    data: AssignDoctorRequest,
    current_user: AuthUser = Depends(require_operator),
    service: OperatorService = Depends(get_operator_service),
):
    return service.assign_doctor(data, current_user)


# ============================================================================
# APPOINTMENTS
# ============================================================================


@appointments_router.get("")
async def list_appointments(
    status: Optional[str] = None,
    date: Optional[str] = None,
    current_user: AuthUser = Depends(require_operator),
    service: OperatorService = Depends(get_operator_service),
):
    return service.list_appointments(status, date)


@appointments_router.put("/{appointment_id}")
async def update_appointment(
    appointment_id: int,
    data: OperatorAppointmentUpdate,
    current_user: AuthUser = Depends(require_operator),
    service: OperatorService = Depends(get_operator_service),
):
    return service.update_appointment(appointment_id, data, current_user)


@appointments_router.delete("/{appointment_id}")
async def cancel_appointment(
    appointment_id: int,
    current_user: AuthUser = Depends(require_operator),
    service: OperatorService = Depends(get_operator_service),
):
    return service.cancel_appointment(appointment_id, current_user)
