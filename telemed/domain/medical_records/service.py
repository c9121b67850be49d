"""Medical record service - SOAP notes, vital signs and prescriptions"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import AuthUser
from ...models import Appointment, MedicalRecord
from ...utils.timezone import to_utc_iso, utc_to_jst_date_string
from .repository import MedicalRecordRepository
from .schemas import MedicalRecordCreate, MedicalRecordUpdate

logger = logging.getLogger(__name__)

REQUIRED_PRESCRIPTION_FIELDS = ("name", "dosage", "frequency", "duration")

FIELD_MAP = {
    "subjective": "subjective",
    "objective": "objective",
    "assessment": "assessment",
    "plan": "plan",
    "vitalSigns": "vital_signs",
    "prescriptions": "prescriptions",
    "aiSummary": "ai_summary",
}


def validate_prescriptions(prescriptions: Optional[list[dict]]) -> None:
    """Every prescription needs a name, dosage, frequency and duration"""
    for index, prescription in enumerate(prescriptions or []):
        missing = [f for f in REQUIRED_PRESCRIPTION_FIELDS if not prescription.get(f)]
        if missing:
            raise HTTPException(
                status_code=400,
                detail=f"Prescription {index + 1} is missing required fields: {', '.join(missing)}",
            )


def record_to_dict(record: MedicalRecord) -> dict:
    return {
        "id": record.id,
        "appointmentId": record.appointment_id,
        "subjective": record.subjective or "",
        "objective": record.objective or "",
        "assessment": record.assessment or "",
        "plan": record.plan or "",
        "vitalSigns": record.vital_signs or {},
        "prescriptions": record.prescriptions if isinstance(record.prescriptions, list) else [],
        "aiSummary": record.ai_summary,
        "createdAt": to_utc_iso(record.created_at),
        "updatedAt": to_utc_iso(record.updated_at),
    }


def appointment_brief(appointment: Appointment) -> dict:
    return {
        "id": appointment.id,
        "patient": {"id": appointment.patient_id, "name": appointment.patient.name if appointment.patient else None},
        "scheduledAt": to_utc_iso(appointment.scheduled_at),
        "chiefComplaint": appointment.chief_complaint,
        "doctor": (
            {"id": appointment.doctor.id, "name": appointment.doctor.name}
            if appointment.doctor
            else None
        ),
    }


class MedicalRecordService:
    """Service layer for medical records"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = MedicalRecordRepository()

    # ========================================================================
    # WORKER
    # ========================================================================

    def get_for_appointment(self, appointment_id: int) -> dict:
        appointment = self.repo.get_appointment(self.db, appointment_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")

        record = self.repo.get_by_appointment(self.db, appointment_id)
        if record is None:
            return {"isNew": True, "appointment": appointment_brief(appointment)}
        return {"isNew": False, "record": record_to_dict(record), "appointment": appointment_brief(appointment)}

    def list_for_doctor(self, user: AuthUser) -> list[dict]:
        return [record_to_dict(r) for r in self.repo.get_for_doctor(self.db, user.id)]

    def create(self, data: MedicalRecordCreate, user: AuthUser) -> dict:
        appointment = self.repo.get_appointment(self.db, data.appointmentId)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")

        if self.repo.get_by_appointment(self.db, data.appointmentId):
            raise HTTPException(status_code=400, detail="Medical record already exists for this appointment")

        validate_prescriptions(data.prescriptions)

        record = self.repo.create(
            self.db,
            appointment_id=data.appointmentId,
            subjective=data.subjective or None,
            objective=data.objective or None,
            assessment=data.assessment or None,
            plan=data.plan or None,
            vital_signs=data.vitalSigns or {},
            prescriptions=data.prescriptions or [],
            ai_summary=data.aiSummary or {},
        )
        logger.info(f"✅ Doctor {user.id} created medical record {record.id} for appointment {data.appointmentId}")
        return record_to_dict(record)

    def update(self, record_id: int, data: MedicalRecordUpdate, user: AuthUser) -> dict:
        record = self.repo.get_by_id(self.db, record_id)
        if not record:
            raise HTTPException(status_code=404, detail="Medical record not found")

        if "prescriptions" in data.model_fields_set:
            validate_prescriptions(data.prescriptions)

        updates = {
            FIELD_MAP[field]: getattr(data, field)
            for field in data.model_fields_set
            if field in FIELD_MAP
        }
        if "prescriptions" in updates and updates["prescriptions"] is None:
            updates["prescriptions"] = []
        if "vital_signs" in updates and updates["vital_signs"] is None:
            updates["vital_signs"] = {}

        record = self.repo.update(self.db, record, **updates)
        logger.info(f"✅ Doctor {user.id} updated medical record {record.id}")
        return record_to_dict(record)

    # ========================================================================
    # PATIENT PRESCRIPTIONS
    # ========================================================================

    def list_patient_prescriptions(self, user: AuthUser) -> dict:
        prescriptions = []
        for record, appointment in self.repo.get_for_patient(self.db, user.id):
            medications = record.prescriptions if isinstance(record.prescriptions, list) else []
            if not medications:
                continue
            doctor = appointment.doctor
            prescriptions.append(
                {
                    "appointmentId": appointment.id,
                    "scheduledAt": to_utc_iso(appointment.scheduled_at),
                    "appointmentDate": utc_to_jst_date_string(appointment.scheduled_at),
                    "appointmentStatus": appointment.status,
                    "appointmentType": appointment.appointment_type,
                    "doctorId": doctor.id if doctor else None,
                    "doctorName": doctor.name if doctor else "Unassigned",
                    "medications": medications,
                    "medicationCount": len(medications),
                    "prescribedAt": to_utc_iso(record.created_at),
                    "updatedAt": to_utc_iso(record.updated_at),
                }
            )
        return {"success": True, "prescriptions": prescriptions, "totalCount": len(prescriptions)}

    def get_patient_prescription(self, appointment_id: int, user: AuthUser) -> dict:
        appointment = self.repo.get_appointment(self.db, appointment_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Medical record not found")
        if appointment.patient_id != user.id:
            raise HTTPException(status_code=403, detail="Access denied")

        record = self.repo.get_by_appointment(self.db, appointment_id)
        if not record:
            raise HTTPException(status_code=404, detail="Medical record not found")

        return {
            "success": True,
            "appointmentId": appointment_id,
            "prescriptions": record.prescriptions if isinstance(record.prescriptions, list) else [],
            "createdAt": to_utc_iso(record.created_at),
            "updatedAt": to_utc_iso(record.updated_at),
        }
