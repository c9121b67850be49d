"""Smartwatch schemas - Pydantic models for wearable uploads"""

from typing import Any, Optional

from pydantic import BaseModel, field_validator


class SmartwatchDataRequest(BaseModel):
    deviceType: Optional[str] = None
    deviceId: Optional[str] = None
    dataType: Optional[str] = None
    data: Optional[dict[str, Any]] = None
    recordedAt: Optional[str] = None


class PersonalityRequest(BaseModel):
    personalityData: Optional[dict[str, Any]] = None
    confidenceScore: Optional[float] = None

    @field_validator("confidenceScore")
    @classmethod
    def check_confidence(cls, v):
        if v is not None and not 0 <= v <= 1:
            raise ValueError("confidenceScore must be between 0 and 1")
        return v


class FeedbackGenerateRequest(BaseModel):
    triggerType: Optional[str] = None
    triggerData: Optional[Any] = None
    scheduledFor: Optional[str] = None


class HealthGoalRequest(BaseModel):
    goalType: Optional[str] = None
    targetValue: Optional[str] = None
    unit: Optional[str] = None
    timeframe: Optional[str] = None
    targetDate: Optional[str] = None


class DummyDataRequest(BaseModel):
    deviceType: str = "fitbit"
    dataType: str = "comprehensive"
