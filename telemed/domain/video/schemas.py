"""Video session schemas"""

from typing import Optional

from pydantic import BaseModel, field_validator

END_REASONS = ("completed", "timeout", "error", "cancelled")


class CreateSessionRequest(BaseModel):
    appointmentId: int


class EndSessionRequest(BaseModel):
    reason: str = "completed"

    @field_validator("reason")
    @classmethod
    def check_reason(cls, v):
        if v not in END_REASONS:
            raise ValueError(f"reason must be one of: {', '.join(END_REASONS)}")
        return v


class SessionTokenResponse(BaseModel):
    sessionId: str
    realtimeSessionId: str
    token: str
    expiresAt: Optional[str] = None
    status: str
    isNewSession: Optional[bool] = None
    permissions: Optional[list[str]] = None
