"""Schedule repository - Doctor working windows stored per JST date"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import WorkerSchedule


class ScheduleRepository:
    """Repository for worker schedule database operations"""

    @staticmethod
    def get_by_id(db: Session, schedule_id: int) -> Optional[WorkerSchedule]:
        return db.query(WorkerSchedule).filter(WorkerSchedule.id == schedule_id).first()

    @staticmethod
    def get_in_range(
        db: Session,
        worker_id: int,
        start: datetime,
        end: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> list[WorkerSchedule]:
        """Schedules whose date falls in [start, end); open-ended when end is None"""
        query = db.query(WorkerSchedule).filter(
            WorkerSchedule.worker_id == worker_id,
            WorkerSchedule.schedule_date >= start,
        )
        if end is not None:
            query = query.filter(WorkerSchedule.schedule_date < end)
        query = query.order_by(WorkerSchedule.schedule_date, WorkerSchedule.start_time)
        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def get_on_date(db: Session, worker_id: int, schedule_date: datetime) -> list[WorkerSchedule]:
        return (
            db.query(WorkerSchedule)
            .filter(WorkerSchedule.worker_id == worker_id, WorkerSchedule.schedule_date == schedule_date)
            .order_by(WorkerSchedule.start_time)
            .all()
        )

    @staticmethod
    def create(db: Session, **schedule_data) -> WorkerSchedule:
        schedule = WorkerSchedule(**schedule_data)
        db.add(schedule)
        db.commit()
        db.refresh(schedule)
        return schedule

    @staticmethod
    def update(db: Session, schedule: WorkerSchedule, **updates) -> WorkerSchedule:
        for key, value in updates.items():
            setattr(schedule, key, value)
        db.commit()
        db.refresh(schedule)
        return schedule

    @staticmethod
    def delete(db: Session, schedule: WorkerSchedule) -> None:
        db.delete(schedule)
        db.commit()

    @staticmethod
    def replace_range(
        db: Session, worker_id: int, start: datetime, end: datetime, rows: list[dict]
    ) -> list[WorkerSchedule]:
        """Delete the worker's schedules in [start, end) and insert rows in one transaction"""
        try:
            db.query(WorkerSchedule).filter(
                WorkerSchedule.worker_id == worker_id,
                WorkerSchedule.schedule_date >= start,
                WorkerSchedule.schedule_date < end,
            ).delete(synchronize_session=False)
            schedules = [WorkerSchedule(worker_id=worker_id, **row) for row in rows]
            db.add_all(schedules)
            db.commit()
        except Exception:
            db.rollback()
            raise
        for schedule in schedules:
            db.refresh(schedule)
        return schedules
