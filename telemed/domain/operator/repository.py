"""Operator repository - Queue, board and assignment queries"""

from datetime import datetime
from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, joinedload

from ...models import Appointment, Worker


class OperatorRepository:
    """Repository for operator console database operations"""

    @staticmethod
    def get_appointment(db: Session, appointment_id: int) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.patient), joinedload(Appointment.doctor))
            .filter(Appointment.id == appointment_id)
            .first()
        )

    @staticmethod
    def get_doctors(db: Session) -> list[Worker]:
        return db.query(Worker).filter(Worker.role == "doctor").order_by(Worker.id).all()

    @staticmethod
    def get_busy_doctor_ids(db: Session) -> set[int]:
        rows = (
            db.query(Appointment.assigned_worker_id)
            .filter(Appointment.status == "in_progress", Appointment.assigned_worker_id.isnot(None))
            .distinct()
            .all()
        )
        return {row[0] for row in rows}

    @staticmethod
    def get_by_status(
        db: Session,
        statuses: tuple[str, ...],
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        with_doctor_only: bool = False,
    ) -> list[Appointment]:
        query = (
            db.query(Appointment)
            .options(joinedload(Appointment.patient), joinedload(Appointment.doctor))
            .filter(Appointment.status.in_(statuses))
        )
        if start is not None:
            query = query.filter(Appointment.scheduled_at >= start)
        if end is not None:
            query = query.filter(Appointment.scheduled_at < end)
        if with_doctor_only:
            query = query.filter(Appointment.assigned_worker_id.isnot(None))
        return query.order_by(Appointment.scheduled_at).all()

    @staticmethod
    def get_scheduled_between(db: Session, start: datetime, end: datetime) -> list[Appointment]:
        return (
            db.query(Appointment)
            .filter(Appointment.scheduled_at >= start, Appointment.scheduled_at < end)
            .all()
        )

    @staticmethod
    def count_completed_since(db: Session, since: datetime) -> int:
        return (
            db.query(Appointment)
            .filter(Appointment.status == "completed", Appointment.ended_at >= since)
            .count()
        )

    @staticmethod
    def get_recent_events(db: Session, completed_since: datetime, limit: int = 10) -> list[Appointment]:
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.patient))
            .filter(
                or_(
                    Appointment.status.in_(("waiting", "in_progress")),
                    and_(Appointment.status == "completed", Appointment.ended_at >= completed_since),
                )
            )
            .order_by(Appointment.updated_at.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def list_appointments(
        db: Session,
        status: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Appointment]:
        query = db.query(Appointment).options(
            joinedload(Appointment.patient), joinedload(Appointment.doctor)
        )
        if status:
            query = query.filter(Appointment.status == status)
        if start is not None:
            query = query.filter(Appointment.scheduled_at >= start)
        if end is not None:
            query = query.filter(Appointment.scheduled_at < end)
        return query.order_by(Appointment.scheduled_at).all()
