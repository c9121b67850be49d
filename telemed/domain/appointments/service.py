"""Appointment service - Booking, slot availability and doctor statistics"""

import logging
import math
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import AuthUser
from ...models import Appointment
from ...security_utils import sanitize_text
from ...shared.serializers import appointment_to_dict, patient_profile, worker_summary
from ...utils.timezone import (
    get_current_jst_date,
    jst_day_range,
    jst_month_range,
    jst_to_utc,
    to_utc_iso,
    utc_now,
    utc_to_jst_date_string,
    utc_to_jst_time_string,
)
from .repository import AppointmentRepository
from .schemas import AppointmentCreateRequest
from .time_calculator import (
    appointment_end,
    intervals_overlap,
    minutes_between,
    split_into_slots,
)

logger = logging.getLogger(__name__)

CHECK_IN_STATUSES = ("scheduled",)
CANCELLABLE_STATUSES = ("scheduled", "waiting", "assigned")
REMINDER_WINDOW = timedelta(hours=24)


def doctor_specialty_label(doctor) -> str:
    """Joined specialty display names, falling back to the worker role"""
    names = [s.display_name for s in doctor.specialties]
    return ", ".join(names) if names else doctor.role


def _week_start_jst(today: str) -> str:
    day = datetime.strptime(today, "%Y-%m-%d")
    return (day - timedelta(days=day.weekday())).strftime("%Y-%m-%d")


class AppointmentService:
    """Service layer for appointment operations"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AppointmentRepository()

    def _get_owned_appointment(self, appointment_id: int, user: AuthUser) -> Appointment:
        appointment = self.repo.get_appointment(self.db, appointment_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        if appointment.patient_id != user.id:
            raise HTTPException(status_code=403, detail="Access denied")
        return appointment

    # ========================================================================
    # PATIENT APPOINTMENTS
    # ========================================================================

    def list_patient_appointments(
        self, user: AuthUser, page: int, limit: int, status: Optional[str] = None
    ) -> dict:
        offset = (page - 1) * limit
        items, total = self.repo.get_patient_appointments(
            self.db, user.id, status=status, offset=offset, limit=limit
        )

        appointments = []
        for appointment in items:
            data = appointment_to_dict(appointment, include_people=False)
            data["doctor"] = (
                {"id": appointment.doctor.id, "name": appointment.doctor.name}
                if appointment.doctor
                else None
            )
            questionnaire = appointment.questionnaire
            data["questionnaireCompletedAt"] = (
                to_utc_iso(questionnaire.completed_at) if questionnaire else None
            )
            appointments.append(data)

        return {
            "appointments": appointments,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": math.ceil(total / limit) if total else 0,
            },
        }

    def get_available_slots(self, date: Optional[str], specialty: Optional[str] = None) -> dict:
        if not date:
            raise HTTPException(status_code=400, detail="date is required")
        try:
            day_start, day_end = jst_day_range(date)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        results = []
        for doctor in self.repo.get_doctors(self.db, specialty=specialty):
            schedules = self.repo.get_available_schedules(self.db, doctor.id, day_start)
            if not schedules:
                continue

            booked = [
                (apt.scheduled_at, appointment_end(apt.scheduled_at, apt.duration_minutes))
                for apt in self.repo.get_active_appointments_near(self.db, doctor.id, day_start, day_end)
            ]

            time_slots = []
            for schedule in schedules:
                for slot_start, slot_end in split_into_slots(schedule.start_time, schedule.end_time):
                    start_utc = jst_to_utc(date, slot_start)
                    end_utc = jst_to_utc(date, slot_end)
                    available = not any(
                        intervals_overlap(start_utc, end_utc, booked_start, booked_end)
                        for booked_start, booked_end in booked
                    )
                    time_slots.append(
                        {"startTime": slot_start, "endTime": slot_end, "available": available}
                    )

            if time_slots:
                results.append(
                    {
                        "date": date,
                        "doctorId": doctor.id,
                        "doctorName": doctor.name,
                        "specialty": doctor_specialty_label(doctor),
                        "timeSlots": time_slots,
                    }
                )

        return {"slots": results}

    def book_appointment(self, user: AuthUser, data: AppointmentCreateRequest) -> dict:
        if not data.doctorId or not data.appointmentDate or not data.startTime or not data.endTime:
            raise HTTPException(
                status_code=400,
                detail="doctorId, appointmentDate, startTime and endTime are required",
            )

        try:
            start = jst_to_utc(data.appointmentDate, data.startTime)
            end = jst_to_utc(data.appointmentDate, data.endTime)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        if end <= start:
            raise HTTPException(status_code=400, detail="End time must be after start time")

        logger.info(
            f"📥 Booking request: patient {user.id} -> doctor {data.doctorId} "
            f"at {data.appointmentDate} {data.startTime}-{data.endTime} JST"
        )

        try:
            # Lock the doctor row so the conflict check and insert are atomic
            doctor = self.repo.get_doctor(self.db, data.doctorId, for_update=True)
            if not doctor:
                raise HTTPException(status_code=404, detail="Doctor not found")

            conflicts = self.repo.find_conflicts(self.db, doctor.id, start, end)
            if conflicts:
                logger.warning(
                    f"⚠️ Booking conflict for doctor {doctor.id}: overlaps appointment {conflicts[0].id}"
                )
                raise HTTPException(
                    status_code=409,
                    detail={
                        "message": "The selected time slot is no longer available",
                        "conflictingAppointmentId": conflicts[0].id,
                    },
                )

            appointment = self.repo.create_appointment(
                self.db,
                patient_id=user.id,
                assigned_worker_id=doctor.id,
                scheduled_at=start,
                duration_minutes=minutes_between(start, end),
                status="scheduled",
                appointment_type=data.appointmentType,
                chief_complaint=sanitize_text(data.chiefComplaint) if data.chiefComplaint else None,
            )
        except HTTPException:
            self.db.rollback()
            raise
        except Exception:
            self.db.rollback()
            logger.exception("❌ Failed to book appointment")
            raise

        logger.info(f"✅ Appointment {appointment.id} booked for patient {user.id}")
        return {"appointment": appointment_to_dict(appointment)}

    def check_in(self, appointment_id: int, user: AuthUser) -> dict:
        appointment = self._get_owned_appointment(appointment_id, user)
        if appointment.status not in CHECK_IN_STATUSES:
            raise HTTPException(
                status_code=400,
                detail=f"Cannot check in to an appointment with status '{appointment.status}'",
            )

        appointment = self.repo.update_appointment(self.db, appointment, status="waiting")
        logger.info(f"✅ Patient {user.id} checked in to appointment {appointment.id}")
        return {"message": "Checked in", "appointment": appointment_to_dict(appointment)}

    def cancel(self, appointment_id: int, user: AuthUser) -> dict:
        appointment = self._get_owned_appointment(appointment_id, user)
        if appointment.status not in CANCELLABLE_STATUSES:
            raise HTTPException(
                status_code=400,
                detail=f"Cannot cancel an appointment with status '{appointment.status}'",
            )

        appointment = self.repo.update_appointment(self.db, appointment, status="cancelled")
        logger.info(f"✅ Appointment {appointment.id} cancelled by patient {user.id}")
        return {"message": "Appointment cancelled", "appointment": appointment_to_dict(appointment)}

    # ========================================================================
    # WORKER VIEWS
    # ========================================================================

    def get_appointment_details(self, appointment_id: int) -> dict:
        appointment = self.repo.get_appointment(self.db, appointment_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")

        data = appointment_to_dict(appointment, include_people=False)
        data["patient"] = patient_profile(appointment.patient) if appointment.patient else None
        data["doctor"] = worker_summary(appointment.doctor)
        questionnaire = appointment.questionnaire
        data["questionnaire"] = (
            {
                "id": questionnaire.id,
                "answers": questionnaire.questions_answers or {},
                "urgencyLevel": questionnaire.urgency_level,
                "completedAt": to_utc_iso(questionnaire.completed_at),
            }
            if questionnaire
            else None
        )
        return {"appointment": data}

    def list_doctor_appointments(self, user: AuthUser, date: Optional[str] = None) -> dict:
        start = end = None
        if date:
            try:
                start, end = jst_day_range(date)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e)) from e

        appointments = self.repo.get_doctor_appointments(self.db, user.id, start, end)
        return {"appointments": [appointment_to_dict(apt) for apt in appointments]}

    def get_doctor_statistics(self, user: AuthUser) -> dict:
        today = get_current_jst_date()
        today_start, today_end = jst_day_range(today)
        week_start, _ = jst_day_range(_week_start_jst(today))
        week_end = week_start + timedelta(days=7)
        month_start, month_end = jst_month_range(today[:7])

        today_counts = self.repo.count_by_status(self.db, user.id, today_start, today_end)
        week_counts = self.repo.count_by_status(self.db, user.id, week_start, week_end)
        month_counts = self.repo.count_by_status(self.db, user.id, month_start, month_end)

        durations = [
            minutes_between(apt.started_at, apt.ended_at)
            for apt in self.repo.completed_between(self.db, user.id, today_start, today_end)
            if apt.started_at and apt.ended_at
        ]
        average_consultation = round(sum(durations) / len(durations), 1) if durations else 0

        def period_summary(counts: dict[str, int]) -> dict:
            return {
                "total": sum(counts.values()),
                "completed": counts.get("completed", 0),
                "cancelled": counts.get("cancelled", 0),
            }

        upcoming = sum(
            today_counts.get(status, 0) for status in ("scheduled", "waiting", "assigned")
        )

        return {
            "today": {
                "total": sum(today_counts.values()),
                "completed": today_counts.get("completed", 0),
                "upcoming": upcoming,
                "averageConsultationTime": average_consultation,
            },
            "thisWeek": period_summary(week_counts),
            "thisMonth": period_summary(month_counts),
            "appointmentTypes": self.repo.count_by_type(self.db, user.id),
            "commonChiefComplaints": [
                {"complaint": complaint, "count": count}
                for complaint, count in self.repo.top_chief_complaints(self.db, user.id)
            ],
        }

    # ========================================================================
    # NOTIFICATIONS
    # ========================================================================

    def get_notifications(self, user: AuthUser) -> dict:
        now = utc_now()
        notifications = []

        for apt in self.repo.get_upcoming_for_patient(self.db, user.id, now, now + REMINDER_WINDOW):
            doctor_name = apt.doctor.name if apt.doctor else "your doctor"
            notifications.append(
                {
                    "id": f"appointment-{apt.id}",
                    "type": "appointment_reminder",
                    "title": "Upcoming appointment",
                    "message": (
                        f"Consultation with {doctor_name} on "
                        f"{utc_to_jst_date_string(apt.scheduled_at)} at {utc_to_jst_time_string(apt.scheduled_at)}"
                    ),
                    "createdAt": to_utc_iso(apt.created_at),
                    "read": False,
                    "data": {"appointmentId": apt.id, "scheduledAt": to_utc_iso(apt.scheduled_at)},
                }
            )

        for message in self.repo.get_unread_worker_messages(self.db, user.id):
            sender = message.worker.name if message.worker else "Clinic"
            notifications.append(
                {
                    "id": f"message-{message.id}",
                    "type": "new_message",
                    "title": f"New message from {sender}",
                    "message": message.content[:100],
                    "createdAt": to_utc_iso(message.sent_at),
                    "read": False,
                    "data": {"appointmentId": message.appointment_id, "messageId": message.id},
                }
            )

        for feedback in self.repo.get_unread_feedback(self.db, user.id):
            content = (feedback.feedback_data or {}).get("content", "")
            notifications.append(
                {
                    "id": f"feedback-{feedback.id}",
                    "type": "ai_feedback",
                    "title": "New health feedback",
                    "message": content[:100],
                    "createdAt": to_utc_iso(feedback.created_at),
                    "read": False,
                    "data": {"feedbackId": feedback.id},
                }
            )

        notifications.sort(key=lambda n: n["createdAt"] or "", reverse=True)
        return {"notifications": notifications, "unreadCount": len(notifications)}