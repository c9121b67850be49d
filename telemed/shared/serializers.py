"""Shared response builders for entities that appear across several domains"""

from typing import Optional

from ..models import Appointment, Patient, Worker
from ..utils.timezone import to_utc_iso, utc_to_jst_date_string, utc_to_jst_time_string


def patient_summary(patient: Optional[Patient]) -> Optional[dict]:
    if patient is None:
        return None
    return {"id": patient.id, "name": patient.name, "email": patient.email}


def patient_profile(patient: Patient) -> dict:
    return {
        "id": patient.id,
        "email": patient.email,
        "name": patient.name,
        "phoneNumber": patient.phone_number,
        "dateOfBirth": patient.date_of_birth.strftime("%Y-%m-%d") if patient.date_of_birth else None,
        "gender": patient.gender,
        "address": patient.address,
        "emergencyContact": patient.emergency_contact or {},
        "medicalHistory": patient.medical_history or {},
        "profileImageUrl": patient.profile_image_url,
        "createdAt": to_utc_iso(patient.created_at),
        "updatedAt": to_utc_iso(patient.updated_at),
    }


def worker_summary(worker: Optional[Worker]) -> Optional[dict]:
    if worker is None:
        return None
    return {"id": worker.id, "name": worker.name, "role": worker.role}


def worker_profile(worker: Worker) -> dict:
    return {
        "id": worker.id,
        "email": worker.email,
        "name": worker.name,
        "role": worker.role,
        "phoneNumber": worker.phone_number,
        "medicalLicenseNumber": worker.medical_license_number,
        "profileImageUrl": worker.profile_image_url,
        "isActive": worker.is_active,
        "specialties": [s.display_name for s in worker.specialties],
        "createdAt": to_utc_iso(worker.created_at),
        "updatedAt": to_utc_iso(worker.updated_at),
    }


def appointment_to_dict(appointment: Appointment, include_people: bool = True) -> dict:
    data = {
        "id": appointment.id,
        "patientId": appointment.patient_id,
        "doctorId": appointment.assigned_worker_id,
        "scheduledAt": to_utc_iso(appointment.scheduled_at),
        "date": utc_to_jst_date_string(appointment.scheduled_at),
        "startTime": utc_to_jst_time_string(appointment.scheduled_at),
        "durationMinutes": appointment.duration_minutes or 30,
        "status": appointment.status,
        "appointmentType": appointment.appointment_type or "initial",
        "chiefComplaint": appointment.chief_complaint or "",
        "meetingId": appointment.meeting_id,
        "startedAt": to_utc_iso(appointment.started_at),
        "endedAt": to_utc_iso(appointment.ended_at),
        "createdAt": to_utc_iso(appointment.created_at),
        "updatedAt": to_utc_iso(appointment.updated_at),
    }
    if include_people:
        data["patient"] = patient_summary(appointment.patient)
        data["doctor"] = worker_summary(appointment.doctor)
    return data
