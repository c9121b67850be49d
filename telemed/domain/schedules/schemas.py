"""Schedule schemas"""

from typing import Optional

from pydantic import BaseModel, Field


class ScheduleRequest(BaseModel):
    """
    Doctor schedule create/update body. Date is YYYY-MM-DD (JST), times HH:MM.
    Format errors are answered with 400 by the service.
    """

    date: Optional[str] = None
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    maxAppointments: Optional[int] = Field(default=None, ge=1, le=100)
