"""Medical records router - Doctor charting and patient prescription views"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import AuthUser, require_doctor, require_patient, require_worker
from ...database import get_db
from .schemas import MedicalRecordCreate, MedicalRecordUpdate
from .service import MedicalRecordService

router = APIRouter(prefix="/api", tags=["Medical Records"])


def get_medical_record_service(db: Session = Depends(get_db)) -> MedicalRecordService:
    """Dependency injection for MedicalRecordService"""
    return MedicalRecordService(db)


# ============================================================================
# WORKER MEDICAL RECORDS
# ============================================================================


@router.get("/worker/medical-records/{appointment_id}")
async def get_medical_record(
    appointment_id: int,
    current_user: AuthUser = Depends(require_worker),
    service: MedicalRecordService = Depends(get_medical_record_service),
):
    """Existing record for an appointment, or the appointment summary for a new one"""
    return service.get_for_appointment(appointment_id)


@router.post("/worker/medical-records", status_code=201)
async def create_medical_record(
    data: MedicalRecordCreate,
    current_user: AuthUser = Depends(require_doctor),
    service: MedicalRecordService = Depends(get_medical_record_service),
):
    return {"success": True, "record": service.create(data, current_user)}


@router.put("/worker/medical-records/{record_id}")
async def update_medical_record(
    record_id: int,
    data: MedicalRecordUpdate,
    current_user: AuthUser = Depends(require_doctor),
    service: MedicalRecordService = Depends(get_medical_record_service),
):
    return {"success": True, "record": service.update(record_id, data, current_user)}


# ============================================================================
# DOCTOR ALIASES
# ============================================================================


@router.get("/worker/doctor/medical-records")
async def list_doctor_medical_records(
    current_user: AuthUser = Depends(require_doctor),
    service: MedicalRecordService = Depends(get_medical_record_service),
):
    return {"medicalRecords": service.list_for_doctor(current_user)}


@router.post("/worker/doctor/medical-records", status_code=201)
async def create_doctor_medical_record(
    data: MedicalRecordCreate,
    current_user: AuthUser = Depends(require_doctor),
    service: MedicalRecordService = Depends(get_medical_record_service),
):
    return {"medicalRecord": service.create(data, current_user)}


@router.put("/worker/doctor/medical-records/{record_id}")
async def update_doctor_medical_record(
    record_id: int,
    data: MedicalRecordUpdate,
    current_user: AuthUser = Depends(require_doctor),
    service: MedicalRecordService = Depends(get_medical_record_service),
):
    return {"medicalRecord": service.update(record_id, data, current_user)}


# ============================================================================
# PATIENT PRESCRIPTIONS
# ============================================================================


@router.get("/patient/prescriptions")
async def list_my_prescriptions(
    current_user: AuthUser = Depends(require_patient),
    service: MedicalRecordService = Depends(get_medical_record_service),
):
    return service.list_patient_prescriptions(current_user)


@router.get("/patient/prescriptions/medical-records/{appointment_id}/prescriptions")
async def get_prescriptions_for_appointment(
    appointment_id: int,
    current_user: AuthUser = Depends(require_patient),
    service: MedicalRecordService = Depends(get_medical_record_service),
):
    return service.get_patient_prescription(appointment_id, current_user)
