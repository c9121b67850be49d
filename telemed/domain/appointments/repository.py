"""Appointment repository - Database operations for appointments"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import (
    ACTIVE_APPOINTMENT_STATUSES,
    AIFeedback,
    Appointment,
    ChatMessage,
    Specialty,
    Worker,
    WorkerSchedule,
)
from .time_calculator import appointment_end, intervals_overlap

# Longest appointment we look back for when checking overlaps
MAX_DURATION_LOOKBACK = timedelta(hours=24)


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_appointment(db: Session, appointment_id: int) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.patient), joinedload(Appointment.doctor))
            .filter(Appointment.id == appointment_id)
            .first()
        )

    @staticmethod
    def get_patient_appointments(
        db: Session,
        patient_id: int,
        status: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[Appointment], int]:
        """Get a page of a patient's appointments (newest first) plus the total count"""
        query = db.query(Appointment).filter(Appointment.patient_id == patient_id)
        if status:
            query = query.filter(Appointment.status == status)

        total = query.count()
        items = (
            query.options(joinedload(Appointment.doctor), joinedload(Appointment.questionnaire))
            .order_by(Appointment.scheduled_at.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return items, total

    @staticmethod
    def get_doctor_appointments(
        db: Session,
        doctor_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Appointment]:
        query = (
            db.query(Appointment)
            .options(joinedload(Appointment.patient))
            .filter(Appointment.assigned_worker_id == doctor_id)
        )
        if start is not None:
            query = query.filter(Appointment.scheduled_at >= start)
        if end is not None:
            query = query.filter(Appointment.scheduled_at < end)
        return query.order_by(Appointment.scheduled_at.desc()).all()

    @staticmethod
    def create_appointment(db: Session, **appointment_data) -> Appointment:
        appointment = Appointment(**appointment_data)
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def update_appointment(db: Session, appointment: Appointment, **updates) -> Appointment:
        for key, value in updates.items():
            if hasattr(appointment, key):
                setattr(appointment, key, value)
        db.commit()
        db.refresh(appointment)
        return appointment

    # Doctors and schedules
    @staticmethod
    def get_doctors(db: Session, specialty: Optional[str] = None, active_only: bool = True) -> list[Worker]:
        query = db.query(Worker).filter(Worker.role == "doctor")
        if active_only:
            query = query.filter(Worker.is_active.is_(True))
        if specialty:
            query = query.filter(
                Worker.specialties.any(
                    (Specialty.name == specialty) | (Specialty.display_name == specialty)
                )
            )
        return query.order_by(Worker.id).all()

    @staticmethod
    def get_doctor(db: Session, doctor_id: int, for_update: bool = False) -> Optional[Worker]:
        """
        Get a doctor by ID. With for_update=True the row is locked until the
        transaction ends, which serializes concurrent bookings for one doctor.
        """
        query = db.query(Worker).filter(Worker.id == doctor_id, Worker.role == "doctor")
        if for_update:
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def get_available_schedules(db: Session, doctor_id: int, schedule_date: datetime) -> list[WorkerSchedule]:
        return (
            db.query(WorkerSchedule)
            .filter(
                WorkerSchedule.worker_id == doctor_id,
                WorkerSchedule.schedule_date == schedule_date,
                WorkerSchedule.status == "available",
            )
            .order_by(WorkerSchedule.start_time)
            .all()
        )

    # Conflict detection
    @staticmethod
    def get_active_appointments_near(
        db: Session, doctor_id: int, start: datetime, end: datetime
    ) -> list[Appointment]:
        """Active appointments of a doctor that could overlap [start, end)"""
        return (
            db.query(Appointment)
            .filter(
                Appointment.assigned_worker_id == doctor_id,
                Appointment.status.in_(ACTIVE_APPOINTMENT_STATUSES),
                Appointment.scheduled_at < end,
                Appointment.scheduled_at >= start - MAX_DURATION_LOOKBACK,
            )
            .order_by(Appointment.scheduled_at)
            .all()
        )

    @staticmethod
    def find_conflicts(
        db: Session,
        doctor_id: int,
        start: datetime,
        end: datetime,
        exclude_id: Optional[int] = None,
    ) -> list[Appointment]:
        """Active appointments of a doctor overlapping the half-open interval [start, end)"""
        candidates = AppointmentRepository.get_active_appointments_near(db, doctor_id, start, end)
        return [
            apt
            for apt in candidates
            if apt.id != exclude_id
            and intervals_overlap(
                start, end, apt.scheduled_at, appointment_end(apt.scheduled_at, apt.duration_minutes)
            )
        ]

    # Statistics
    @staticmethod
    def count_by_status(
        db: Session, doctor_id: int, start: datetime, end: datetime
    ) -> dict[str, int]:
        rows = (
            db.query(Appointment.status, func.count(Appointment.id))
            .filter(
                Appointment.assigned_worker_id == doctor_id,
                Appointment.scheduled_at >= start,
                Appointment.scheduled_at < end,
            )
            .group_by(Appointment.status)
            .all()
        )
        return {status: count for status, count in rows}

    @staticmethod
    def count_by_type(db: Session, doctor_id: int) -> dict[str, int]:
        rows = (
            db.query(Appointment.appointment_type, func.count(Appointment.id))
            .filter(Appointment.assigned_worker_id == doctor_id)
            .group_by(Appointment.appointment_type)
            .all()
        )
        return {apt_type: count for apt_type, count in rows}

    @staticmethod
    def top_chief_complaints(db: Session, doctor_id: int, limit: int = 5) -> list[tuple[str, int]]:
        return (
            db.query(Appointment.chief_complaint, func.count(Appointment.id).label("count"))
            .filter(
                Appointment.assigned_worker_id == doctor_id,
                Appointment.chief_complaint.isnot(None),
                Appointment.chief_complaint != "",
            )
            .group_by(Appointment.chief_complaint)
            .order_by(func.count(Appointment.id).desc(), Appointment.chief_complaint)
            .limit(limit)
            .all()
        )

    @staticmethod
    def completed_between(db: Session, doctor_id: int, start: datetime, end: datetime) -> list[Appointment]:
        return (
            db.query(Appointment)
            .filter(
                Appointment.assigned_worker_id == doctor_id,
                Appointment.status == "completed",
                Appointment.scheduled_at >= start,
                Appointment.scheduled_at < end,
            )
            .all()
        )

    # Notifications
    @staticmethod
    def get_upcoming_for_patient(db: Session, patient_id: int, start: datetime, end: datetime) -> list[Appointment]:
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.doctor))
            .filter(
                Appointment.patient_id == patient_id,
                Appointment.status.in_(("scheduled", "waiting", "assigned")),
                Appointment.scheduled_at >= start,
                Appointment.scheduled_at < end,
            )
            .order_by(Appointment.scheduled_at)
            .all()
        )

    @staticmethod
    def get_unread_worker_messages(db: Session, patient_id: int) -> list[ChatMessage]:
        return (
            db.query(ChatMessage)
            .join(Appointment, ChatMessage.appointment_id == Appointment.id)
            .options(joinedload(ChatMessage.worker))
            .filter(
                Appointment.patient_id == patient_id,
                ChatMessage.worker_id.isnot(None),
                ChatMessage.read_at.is_(None),
            )
            .order_by(ChatMessage.sent_at.desc())
            .all()
        )

    @staticmethod
    def get_unread_feedback(db: Session, patient_id: int) -> list[AIFeedback]:
        return (
            db.query(AIFeedback)
            .filter(AIFeedback.patient_id == patient_id, AIFeedback.is_read.is_(False))
            .order_by(AIFeedback.created_at.desc())
            .all()
        )
