"""
Operator service - Live queue, assignment board and doctor assignment

The assignment board is the operator's main tool: waiting patients are
dropped onto a doctor's 30-minute JST slot. Assigning re-checks the doctor's
calendar under a row lock so two operators cannot fill the same slot.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import AuthUser
from ...models import APPOINTMENT_STATUSES, ACTIVE_APPOINTMENT_STATUSES, Appointment
from ...shared.serializers import appointment_to_dict
from ...utils.timezone import (
    TIME_PATTERN,
    get_current_jst_date,
    jst_day_range,
    jst_to_utc,
    parse_iso_datetime,
    to_utc_iso,
    utc_now,
    utc_to_jst,
    utc_to_jst_date_string,
    utc_to_jst_time_string,
)
from ..appointments.repository import AppointmentRepository
from ..appointments.service import doctor_specialty_label
from ..appointments.time_calculator import appointment_end, board_time_slots, minutes_between
from .repository import OperatorRepository
from .schemas import AssignDoctorRequest, OperatorAppointmentUpdate

logger = logging.getLogger(__name__)

LONG_WAIT_MINUTES = 30
VERY_LONG_WAIT_MINUTES = 60
HIGH_LOAD_THRESHOLD = 10
RECENT_COMPLETION_WINDOW = timedelta(minutes=30)
ASSIGNABLE_STATUSES = ("scheduled", "waiting", "assigned")
BOARD_STATUSES = ("assigned", "in_progress", "completed")
MIN_DURATION_MINUTES = 5
MAX_DURATION_MINUTES = 480

EVENT_LABELS = {"waiting": "waiting", "in_progress": "in consultation", "completed": "consultation finished"}


def waiting_minutes(appointment: Appointment, now: datetime) -> int:
    """Minutes since the scheduled time; zero for patients who arrived early"""
    return max(0, minutes_between(appointment.scheduled_at, now))


def appointment_priority(appointment: Appointment) -> str:
    return "high" if appointment.appointment_type == "emergency" else "normal"


class OperatorService:
    """Service layer for the operator console"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = OperatorRepository()
        self.appointment_repo = AppointmentRepository()

    # ========================================================================
    # DASHBOARD
    # ========================================================================

    def get_dashboard(self) -> dict:
        now = utc_now()
        today_start, today_end = jst_day_range(get_current_jst_date())

        waiting = self.repo.get_by_status(self.db, ("waiting",), today_start, today_end)
        in_progress = self.repo.get_by_status(self.db, ("in_progress",), today_start, today_end)

        doctors = self.repo.get_doctors(self.db)
        busy_ids = self.repo.get_busy_doctor_ids(self.db)
        doctor_statuses = []
        for doctor in doctors:
            if doctor.id in busy_ids:
                status = "busy"
            elif doctor.is_active:
                status = "available"
            else:
                status = "offline"
            doctor_statuses.append(
                {
                    "id": doctor.id,
                    "name": doctor.name,
                    "email": doctor.email,
                    "isActive": doctor.is_active,
                    "specialties": [s.display_name for s in doctor.specialties],
                    "status": status,
                    "currentPatientCount": 1 if doctor.id in busy_ids else 0,
                }
            )

        waiting_patients = [
            {
                "id": apt.id,
                "patient": {"id": apt.patient.id, "name": apt.patient.name},
                "chiefComplaint": apt.chief_complaint,
                "appointmentType": apt.appointment_type,
                "scheduledAt": to_utc_iso(apt.scheduled_at),
                "waitingTime": waiting_minutes(apt, now),
                "priority": appointment_priority(apt),
            }
            for apt in waiting
        ]

        alerts = [
            {
                "type": "long_wait",
                "severity": "high" if p["waitingTime"] > VERY_LONG_WAIT_MINUTES else "medium",
                "message": f"{p['patient']['name']} has been waiting for {p['waitingTime']} minutes",
                "patientId": p["patient"]["id"],
                "appointmentId": p["id"],
            }
            for p in waiting_patients
            if p["waitingTime"] > LONG_WAIT_MINUTES
        ]

        return {
            "statistics": {
                "waitingPatients": len(waiting),
                "inProgressConsultations": len(in_progress),
                "availableDoctors": sum(1 for d in doctor_statuses if d["status"] == "available"),
                "totalDoctors": len(doctors),
            },
            "doctors": doctor_statuses,
            "waitingPatients": waiting_patients,
            "alerts": alerts,
            "hourlyStats": self._hourly_stats(today_start, today_end, now),
        }

    def _hourly_stats(self, start: datetime, end: datetime, now: datetime) -> list[dict]:
        """Appointment counts and mean wait per JST hour of the day"""
        buckets = {hour: {"count": 0, "waits": []} for hour in range(24)}
        for apt in self.repo.get_scheduled_between(self.db, start, end):
            if apt.status == "cancelled":
                continue
            bucket = buckets[utc_to_jst(apt.scheduled_at).hour]
            bucket["count"] += 1
            if apt.started_at:
                bucket["waits"].append(max(0, minutes_between(apt.scheduled_at, apt.started_at)))
            elif apt.status == "waiting":
                bucket["waits"].append(waiting_minutes(apt, now))

        return [
            {
                "hour": hour,
                "appointments": bucket["count"],
                "avgWaitTime": round(sum(bucket["waits"]) / len(bucket["waits"])) if bucket["waits"] else 0,
            }
            for hour, bucket in buckets.items()
        ]

    def get_realtime_status(self) -> dict:
        now = utc_now()
        today_start, _ = jst_day_range(get_current_jst_date())

        waits = [waiting_minutes(apt, now) for apt in self.repo.get_by_status(self.db, ("waiting",))]
        active = self.repo.get_by_status(self.db, ("in_progress",))

        events = []
        for apt in self.repo.get_recent_events(self.db, now - RECENT_COMPLETION_WINDOW):
            patient_name = apt.patient.name if apt.patient else "Unknown"
            events.append(
                {
                    "id": apt.id,
                    "type": apt.status,
                    "patientName": patient_name,
                    "doctorId": apt.assigned_worker_id,
                    "timestamp": to_utc_iso(apt.updated_at),
                    "message": f"{patient_name} - {EVENT_LABELS.get(apt.status, apt.status)}",
                }
            )

        critical_alerts = []
        if len(waits) > HIGH_LOAD_THRESHOLD:
            critical_alerts.append(
                {
                    "type": "high_load",
                    "message": f"More than {HIGH_LOAD_THRESHOLD} patients are waiting ({len(waits)})",
                    "severity": "critical",
                }
            )

        return {
            "timestamp": to_utc_iso(now),
            "status": {
                "waitingCount": len(waits),
                "averageWaitTime": round(sum(waits) / len(waits)) if waits else 0,
                "longestWaitTime": max(waits) if waits else 0,
                "activeConsultations": len(active),
                "completedToday": self.repo.count_completed_since(self.db, today_start),
            },
            "recentEvents": events,
            "criticalAlerts": critical_alerts,
        }

    # ========================================================================
    # ASSIGNMENT BOARD
    # ========================================================================

    def get_assignment_board(self, date: Optional[str] = None) -> dict:
        date = date or get_current_jst_date()
        try:
            day_start, day_end = jst_day_range(date)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        doctors = self.repo.get_doctors(self.db)
        waiting = self.repo.get_by_status(self.db, ("waiting",), day_start, day_end)
        placed = self.repo.get_by_status(self.db, BOARD_STATUSES, day_start, day_end, with_doctor_only=True)

        assignments: dict[str, dict[str, dict]] = {}
        for apt in placed:
            slot_key = utc_to_jst_time_string(apt.scheduled_at)
            assignments.setdefault(str(apt.assigned_worker_id), {})[slot_key] = {
                "appointmentId": apt.id,
                "patientName": apt.patient.name if apt.patient else None,
                "chiefComplaint": apt.chief_complaint,
                "status": apt.status,
                "duration": apt.duration_minutes,
            }

        return {
            "date": date,
            "doctors": [
                {
                    "id": doctor.id,
                    "name": doctor.name,
                    "specialties": [s.display_name for s in doctor.specialties],
                    "specialty": doctor_specialty_label(doctor),
                    "isActive": doctor.is_active,
                }
                for doctor in doctors
            ],
            "waitingPatients": [
                {
                    "appointmentId": apt.id,
                    "patient": {"id": apt.patient.id, "name": apt.patient.name},
                    "chiefComplaint": apt.chief_complaint,
                    "appointmentType": apt.appointment_type,
                    "priority": appointment_priority(apt),
                    "requestedAt": to_utc_iso(apt.scheduled_at),
                }
                for apt in waiting
            ],
            "assignments": assignments,
            "timeSlots": board_time_slots(),
        }

    def assign_doctor(self, data: AssignDoctorRequest, operator: AuthUser) -> dict:
        if not data.appointmentId or not data.doctorId or not data.timeSlot:
            raise HTTPException(status_code=400, detail="appointmentId, doctorId and timeSlot are required")
        if not TIME_PATTERN.match(data.timeSlot):
            raise HTTPException(status_code=400, detail="Invalid time slot format (expected HH:MM)")

        logger.info(
            f"📥 Operator {operator.id} assigning appointment {data.appointmentId} "
            f"to doctor {data.doctorId} at {data.date or '(appointment date)'} {data.timeSlot} JST"
        )

        try:
            appointment = self.repo.get_appointment(self.db, data.appointmentId)
            if not appointment:
                raise HTTPException(status_code=404, detail="Appointment not found")

            # Lock the doctor row so the conflict check and update are atomic
            doctor = self.appointment_repo.get_doctor(self.db, data.doctorId, for_update=True)
            if not doctor:
                raise HTTPException(status_code=404, detail="Doctor not found")
            if not doctor.is_active:
                raise HTTPException(status_code=400, detail="Doctor is not active")
            if appointment.status not in ASSIGNABLE_STATUSES:
                raise HTTPException(
                    status_code=400,
                    detail=f"Cannot assign an appointment with status '{appointment.status}'",
                )

            date = data.date or utc_to_jst_date_string(appointment.scheduled_at)
            try:
                start = jst_to_utc(date, data.timeSlot)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e)) from e
            end = appointment_end(start, appointment.duration_minutes)

            conflicts = self.appointment_repo.find_conflicts(
                self.db, doctor.id, start, end, exclude_id=appointment.id
            )
            if conflicts:
                conflict = conflicts[0]
                logger.warning(
                    f"⚠️ Slot {date} {data.timeSlot} for doctor {doctor.id} "
                    f"overlaps appointment {conflict.id}"
                )
                raise HTTPException(
                    status_code=409,
                    detail={
                        "message": "The doctor already has an appointment in this time slot",
                        "conflictingAppointmentId": conflict.id,
                        "conflictingTimeSlot": utc_to_jst_time_string(conflict.scheduled_at),
                    },
                )

            appointment = self.appointment_repo.update_appointment(
                self.db,
                appointment,
                assigned_worker_id=doctor.id,
                status="assigned",
                scheduled_at=start,
            )
        except HTTPException:
            self.db.rollback()
            raise
        except Exception:
            self.db.rollback()
            logger.exception("❌ Failed to assign doctor")
            raise

        logger.info(f"✅ Appointment {appointment.id} assigned to doctor {doctor.id}")
        return {
            "success": True,
            "assignment": {
                "appointmentId": appointment.id,
                "doctorId": appointment.assigned_worker_id,
                "scheduledAt": to_utc_iso(appointment.scheduled_at),
                "status": appointment.status,
                "timeSlot": data.timeSlot,
                "date": date,
            },
        }

    # ========================================================================
    # APPOINTMENT MANAGEMENT
    # ========================================================================

    def list_appointments(self, status: Optional[str] = None, date: Optional[str] = None) -> dict:
        start = end = None
        if date:
            try:
                start, end = jst_day_range(date)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e)) from e

        appointments = self.repo.list_appointments(self.db, status, start, end)
        return {
            "appointments": [appointment_to_dict(apt) for apt in appointments],
            "total": len(appointments),
        }

    def update_appointment(self, appointment_id: int, data: OperatorAppointmentUpdate, operator: AuthUser) -> dict:
        fields = data.model_fields_set
        if "status" in fields and data.status not in APPOINTMENT_STATUSES:
            raise HTTPException(
                status_code=400, detail=f"status must be one of: {', '.join(APPOINTMENT_STATUSES)}"
            )
        if "durationMinutes" in fields and not (
            data.durationMinutes and MIN_DURATION_MINUTES <= data.durationMinutes <= MAX_DURATION_MINUTES
        ):
            raise HTTPException(
                status_code=400,
                detail=f"durationMinutes must be between {MIN_DURATION_MINUTES} and {MAX_DURATION_MINUTES}",
            )

        updates = {}
        if "status" in fields:
            updates["status"] = data.status
        if "assignedWorkerId" in fields:
            updates["assigned_worker_id"] = data.assignedWorkerId
        if "scheduledAt" in fields:
            try:
                updates["scheduled_at"] = parse_iso_datetime(data.scheduledAt)
            except (TypeError, ValueError, AttributeError) as e:
                raise HTTPException(status_code=400, detail="scheduledAt must be an ISO-8601 datetime") from e
        if "chiefComplaint" in fields:
            updates["chief_complaint"] = data.chiefComplaint
        if "durationMinutes" in fields:
            updates["duration_minutes"] = data.durationMinutes

        try:
            appointment = self.repo.get_appointment(self.db, appointment_id)
            if not appointment:
                raise HTTPException(status_code=404, detail="Appointment not found")

            doctor_id = updates.get("assigned_worker_id", appointment.assigned_worker_id)
            status = updates.get("status", appointment.status)
            if updates.get("assigned_worker_id"):
                doctor = self.appointment_repo.get_doctor(self.db, doctor_id, for_update=True)
                if not doctor:
                    raise HTTPException(status_code=404, detail="Doctor not found")
                if not doctor.is_active:
                    raise HTTPException(status_code=400, detail="Doctor is not active")

            reschedules = {"assigned_worker_id", "scheduled_at", "duration_minutes", "status"} & updates.keys()
            if doctor_id and status in ACTIVE_APPOINTMENT_STATUSES and reschedules:
                doctor = self.appointment_repo.get_doctor(self.db, doctor_id, for_update=True)
                if not doctor:
                    raise HTTPException(status_code=404, detail="Doctor not found")
                start = updates.get("scheduled_at", appointment.scheduled_at)
                end = appointment_end(start, updates.get("duration_minutes", appointment.duration_minutes))
                conflicts = self.appointment_repo.find_conflicts(
                    self.db, doctor_id, start, end, exclude_id=appointment.id
                )
                if conflicts:
                    raise HTTPException(
                        status_code=409,
                        detail={
                            "message": "The doctor already has an appointment at this time",
                            "conflictingAppointmentId": conflicts[0].id,
                        },
                    )

            # Consultation start and end are stamped once
            if "status" in updates and status in ("in_progress", "completed"):
                now = utc_now()
                if not appointment.started_at:
                    updates["started_at"] = now
                if status == "completed" and not appointment.ended_at:
                    updates["ended_at"] = now

            appointment = self.appointment_repo.update_appointment(self.db, appointment, **updates)
        except HTTPException:
            self.db.rollback()
            raise

        logger.info(f"✅ Operator {operator.id} updated appointment {appointment.id}: {sorted(updates)}")
        return {"success": True, "appointment": appointment_to_dict(appointment)}

    def cancel_appointment(self, appointment_id: int, operator: AuthUser) -> dict:
        appointment = self.repo.get_appointment(self.db, appointment_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        if appointment.status == "cancelled":
            raise HTTPException(status_code=400, detail="Appointment is already cancelled")

        self.appointment_repo.update_appointment(self.db, appointment, status="cancelled")
        logger.info(f"✅ Operator {operator.id} cancelled appointment {appointment_id}")
        return {"success": True, "message": "Appointment cancelled successfully"}
