"""Doctor schedule router - A doctor's own working windows"""

from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ...auth import AuthUser, require_doctor
from ...database import get_db
from .schemas import ScheduleRequest
from .service import ScheduleService

router = APIRouter(prefix="/api/worker/doctor/schedule", tags=["Doctor Schedule"])


def get_schedule_service(db: Session = Depends(get_db)) -> ScheduleService:
    """Dependency injection for ScheduleService"""
    return ScheduleService(db)


@router.get("")
async def list_schedules(
    date: Optional[str] = None,
    current_user: AuthUser = Depends(require_doctor),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Schedules for one JST date, or upcoming schedules when no date is given"""
    return service.list_schedules(current_user, date)


@router.post("", status_code=201)
async def create_schedule(
    data: ScheduleRequest,
    current_user: AuthUser = Depends(require_doctor),
    service: ScheduleService = Depends(get_schedule_service),
):
    return service.create_schedule(current_user, data)


@router.put("/{schedule_id}")
async def update_schedule(
    schedule_id: int,
    data: ScheduleRequest,
    current_user: AuthUser = Depends(require_doctor),
    service: ScheduleService = Depends(get_schedule_service),
):
    return service.update_schedule(schedule_id, current_user, data)


@router.delete("/{schedule_id}", status_code=204)
async def delete_schedule(
    schedule_id: int,
    current_user: AuthUser = Depends(require_doctor),
    service: ScheduleService = Depends(get_schedule_service),
):
    service.delete_schedule(schedule_id, current_user)
    return Response(status_code=204)
