"""Schedule service - Doctors managing their own working windows"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import AuthUser
from ...models import WorkerSchedule
from ...shared.validators import validate_time_range
from ...utils.timezone import (
    TIME_PATTERN,
    get_current_jst_date,
    jst_date_to_utc,
    jst_day_range,
    to_utc_iso,
    utc_to_jst_date_string,
)
from ..appointments.time_calculator import intervals_overlap, to_minutes
from .repository import ScheduleRepository
from .schemas import ScheduleRequest

logger = logging.getLogger(__name__)

DEFAULT_MAX_APPOINTMENTS = 10
UPCOMING_LIMIT = 100


def schedule_to_dict(schedule: WorkerSchedule) -> dict:
    return {
        "id": schedule.id,
        "workerId": schedule.worker_id,
        "scheduleDate": to_utc_iso(schedule.schedule_date),
        "date": utc_to_jst_date_string(schedule.schedule_date),
        "startTime": schedule.start_time,
        "endTime": schedule.end_time,
        "status": schedule.status,
        "maxAppointments": schedule.max_appointments,
        "isAvailable": schedule.status == "available",
        "createdAt": to_utc_iso(schedule.created_at),
        "updatedAt": to_utc_iso(schedule.updated_at),
    }


def parse_schedule_window(date: Optional[str], start_time: Optional[str], end_time: Optional[str]):
    """
    Validate a JST date and HH:MM window and return the stored schedule_date.
    Raises HTTPException(400) on any malformed part.
    """
    if not date or not start_time or not end_time:
        raise HTTPException(status_code=400, detail="date, startTime and endTime are required")
    try:
        schedule_date = jst_date_to_utc(date)
    except ValueError as e:
        raise HTTPException(status_code=400, detail="Invalid date format") from e
    if not TIME_PATTERN.match(start_time) or not TIME_PATTERN.match(end_time):
        raise HTTPException(status_code=400, detail="Invalid time format")
    try:
        validate_time_range(start_time, end_time)
    except ValueError as e:
        raise HTTPException(status_code=400, detail="End time must be after start time") from e
    return schedule_date


class ScheduleService:
    """Service layer for a doctor's own schedule"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ScheduleRepository()

    def _get_owned_schedule(self, schedule_id: int, user: AuthUser, action: str) -> WorkerSchedule:
        schedule = self.repo.get_by_id(self.db, schedule_id)
        if not schedule:
            raise HTTPException(status_code=404, detail="Schedule not found")
        if schedule.worker_id != user.id:
            raise HTTPException(status_code=403, detail=f"You can only {action} your own schedules")
        return schedule

    def list_schedules(self, user: AuthUser, date: Optional[str] = None) -> list[dict]:
        if date:
            try:
                start, end = jst_day_range(date)
            except ValueError as e:
                raise HTTPException(status_code=400, detail="Invalid date format") from e
            schedules = self.repo.get_in_range(self.db, user.id, start, end)
        else:
            # Today onwards in JST
            start = jst_date_to_utc(get_current_jst_date())
            schedules = self.repo.get_in_range(self.db, user.id, start, limit=UPCOMING_LIMIT)
        return [schedule_to_dict(s) for s in schedules]

    def create_schedule(self, user: AuthUser, data: ScheduleRequest) -> dict:
        schedule_date = parse_schedule_window(data.date, data.startTime, data.endTime)

        if self.repo.get_on_date(self.db, user.id, schedule_date):
            logger.warning(f"⚠️ Doctor {user.id} already has a schedule on {data.date}")
            raise HTTPException(status_code=409, detail="A schedule already exists for this date")

        schedule = self.repo.create(
            self.db,
            worker_id=user.id,
            schedule_date=schedule_date,
            start_time=data.startTime,
            end_time=data.endTime,
            status="available",
            max_appointments=data.maxAppointments or DEFAULT_MAX_APPOINTMENTS,
        )
        logger.info(f"✅ Doctor {user.id} added schedule {schedule.id} on {data.date}")
        return schedule_to_dict(schedule)

    def update_schedule(self, schedule_id: int, user: AuthUser, data: ScheduleRequest) -> dict:
        schedule_date = parse_schedule_window(data.date, data.startTime, data.endTime)
        schedule = self._get_owned_schedule(schedule_id, user, "update")

        new_start, new_end = to_minutes(data.startTime), to_minutes(data.endTime)
        for other in self.repo.get_on_date(self.db, user.id, schedule_date):
            if other.id == schedule.id:
                continue
            if intervals_overlap(new_start, new_end, to_minutes(other.start_time), to_minutes(other.end_time)):
                raise HTTPException(status_code=409, detail="The schedule overlaps another schedule on this date")

        schedule = self.repo.update(
            self.db,
            schedule,
            schedule_date=schedule_date,
            start_time=data.startTime,
            end_time=data.endTime,
            max_appointments=data.maxAppointments or DEFAULT_MAX_APPOINTMENTS,
        )
        logger.info(f"✅ Doctor {user.id} updated schedule {schedule.id}")
        return schedule_to_dict(schedule)

    def delete_schedule(self, schedule_id: int, user: AuthUser) -> None:
        schedule = self._get_owned_schedule(schedule_id, user, "delete")
        if schedule.status == "busy":
            raise HTTPException(status_code=400, detail="Cannot delete busy schedule")

        self.repo.delete(self.db, schedule)
        logger.info(f"✅ Doctor {user.id} deleted schedule {schedule_id}")
