"""Doctor service - Admin doctor management and a doctor's patient list"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import AuthUser
from ...models import Worker
from ...shared.serializers import appointment_to_dict, patient_profile, worker_profile
from ...utils.timezone import jst_month_range, utc_to_jst_date_string
from ..schedules.repository import ScheduleRepository
from ..schedules.service import DEFAULT_MAX_APPOINTMENTS, parse_schedule_window, schedule_to_dict
from .repository import DoctorRepository
from .schemas import DoctorStatusRequest, ScheduleReplaceRequest

logger = logging.getLogger(__name__)


class DoctorService:
    """Service layer for doctor administration and doctor-patient views"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = DoctorRepository()
        self.schedule_repo = ScheduleRepository()

    def _get_doctor(self, doctor_id: int) -> Worker:
        doctor = self.repo.get_doctor(self.db, doctor_id)
        if not doctor:
            raise HTTPException(status_code=404, detail="Doctor not found")
        return doctor

    # ========================================================================
    # ADMIN
    # ========================================================================

    def list_doctors(self) -> dict:
        return {"doctors": [worker_profile(d) for d in self.repo.get_doctors(self.db)]}

    def get_month_schedule(self, doctor_id: int, month: Optional[str]) -> dict:
        if not month:
            raise HTTPException(status_code=400, detail="date parameter (YYYY-MM) is required")
        try:
            start, end = jst_month_range(month)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        self._get_doctor(doctor_id)
        schedules = self.schedule_repo.get_in_range(self.db, doctor_id, start, end)
        return {"schedules": [schedule_to_dict(s) for s in schedules]}

    def replace_schedules(self, doctor_id: int, data: ScheduleReplaceRequest, admin: AuthUser) -> dict:
        if data.schedules is None or (not data.schedules and not data.month):
            raise HTTPException(status_code=400, detail="schedules are required")

        rows = []
        for entry in data.schedules:
            schedule_date = parse_schedule_window(entry.date, entry.startTime, entry.endTime)
            rows.append(
                {
                    "schedule_date": schedule_date,
                    "start_time": entry.startTime,
                    "end_time": entry.endTime,
                    "status": entry.status,
                    "max_appointments": entry.maxAppointments or DEFAULT_MAX_APPOINTMENTS,
                }
            )

        if data.month:
            try:
                start, end = jst_month_range(data.month)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e)) from e
            if any(not start <= row["schedule_date"] < end for row in rows):
                raise HTTPException(status_code=400, detail="All schedules must fall within the given month")
        else:
            months = sorted(utc_to_jst_date_string(row["schedule_date"])[:7] for row in rows)
            start, _ = jst_month_range(months[0])
            _, end = jst_month_range(months[-1])

        self._get_doctor(doctor_id)
        schedules = self.schedule_repo.replace_range(self.db, doctor_id, start, end, rows)
        logger.info(
            f"✅ Admin {admin.id} replaced schedules for doctor {doctor_id} "
            f"({len(schedules)} entries, {utc_to_jst_date_string(start)} - {utc_to_jst_date_string(end)})"
        )
        return {"success": True, "schedules": [schedule_to_dict(s) for s in schedules]}

    def set_status(self, doctor_id: int, data: DoctorStatusRequest, admin: AuthUser) -> dict:
        if not isinstance(data.isActive, bool):
            raise HTTPException(status_code=400, detail="isActive must be a boolean")

        doctor = self.repo.set_active(self.db, self._get_doctor(doctor_id), data.isActive)
        logger.info(f"✅ Admin {admin.id} set doctor {doctor.id} active={doctor.is_active}")
        return {
            "success": True,
            "doctor": {"id": doctor.id, "name": doctor.name, "email": doctor.email, "isActive": doctor.is_active},
        }

    # ========================================================================
    # DOCTOR PATIENTS
    # ========================================================================

    def list_patients(self, user: AuthUser) -> dict:
        return {"patients": [patient_profile(p) for p in self.repo.get_patients_for_doctor(self.db, user.id)]}

    def get_patient(self, patient_id: int, user: AuthUser) -> dict:
        appointments = self.repo.get_shared_appointments(self.db, user.id, patient_id)
        patient = self.repo.get_patient(self.db, patient_id) if appointments else None
        if not patient:
            raise HTTPException(status_code=404, detail="Patient not found or not assigned to this doctor")

        data = patient_profile(patient)
        data["appointments"] = [appointment_to_dict(a, include_people=False) for a in appointments]
        return {"patient": data}
