"""Doctor routers - Admin doctor management and a doctor's own patients"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import AuthUser, require_admin, require_doctor
from ...database import get_db
from .schemas import DoctorStatusRequest, ScheduleReplaceRequest
from .service import DoctorService

admin_router = APIRouter(prefix="/api/worker/admin/doctors", tags=["Admin Doctors"])
patients_router = APIRouter(prefix="/api/worker/doctor/patients", tags=["Doctor Patients"])


def get_doctor_service(db: Session = Depends(get_db)) -> DoctorService:
    """Dependency injection for DoctorService"""
    return DoctorService(db)


# ============================================================================
# ADMIN DOCTORS
# ============================================================================


@admin_router.get("")
async def list_doctors(
    current_user: AuthUser = Depends(require_admin),
    service: DoctorService = Depends(get_doctor_service),
):
    return service.list_doctors()


@admin_router.get("/{doctor_id}/schedule")
async def get_doctor_schedule(
    doctor_id: int,
    date: Optional[str] = None,
    current_user: AuthUser = Depends(require_admin),
    service: DoctorService = Depends(get_doctor_service),
):
    """Schedules for one JST month (date=YYYY-MM)"""
    return service.get_month_schedule(doctor_id, date)


@admin_router.put("/{doctor_id}/schedule")
async def replace_doctor_schedule(
    doctor_id: int,
    data: ScheduleReplaceRequest,
    current_user: AuthUser = Depends(require_admin),
    service: DoctorService = Depends(get_doctor_service),
):
    return service.replace_schedules(doctor_id, data, current_user)


@admin_router.put("/{doctor_id}/status")
async def update_doctor_status(
    doctor_id: int,
    data: DoctorStatusRequest,
    current_user: AuthUser = Depends(require_admin),
    service: DoctorService = Depends(get_doctor_service),
):
    return service.set_status(doctor_id, data, current_user)


# ============================================================================
# DOCTOR PATIENTS
# ============================================================================


@patients_router.get("")
async def list_my_patients(
    current_user: AuthUser = Depends(require_doctor),
    service: DoctorService = Depends(get_doctor_service),
):
    return service.list_patients(current_user)


@patients_router.get("/{patient_id}")
async def get_my_patient(
    patient_id: int,
    current_user: AuthUser = Depends(require_doctor),
    service: DoctorService = Depends(get_doctor_service),
):
    return service.get_patient(patient_id, current_user)
