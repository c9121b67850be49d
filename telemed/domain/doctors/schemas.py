"""Admin doctor schemas"""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from ...models import SCHEDULE_STATUSES
from ...shared.validators import validate_month_string


class ScheduleEntry(BaseModel):
    date: Optional[str] = None
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    status: str = "available"
    maxAppointments: Optional[int] = Field(default=None, ge=1, le=100)

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        if v not in SCHEDULE_STATUSES:
            raise ValueError(f"status must be one of: {', '.join(SCHEDULE_STATUSES)}")
        return v


class ScheduleReplaceRequest(BaseModel):
    """
    Replacement schedules for a doctor. When month (YYYY-MM) is given the whole
    month is replaced, which also allows clearing it with an empty list.
    """

    schedules: Optional[list[ScheduleEntry]] = None
    month: Optional[str] = None

    @field_validator("month")
    @classmethod
    def check_month(cls, v):
        return validate_month_string(v)


class DoctorStatusRequest(BaseModel):
    # Any JSON value; the service rejects non-booleans with 400
    isActive: Any = None
