"""Auth domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import (
    validate_date_string,
    validate_email,
    validate_gender,
    validate_phone,
)


class LoginRequest(BaseModel):
    """Credentials; missing fields are reported as 400 by the service"""

    email: Optional[str] = None
    password: Optional[str] = None


class RefreshRequest(BaseModel):
    refreshToken: Optional[str] = None


class PatientRegisterRequest(BaseModel):
    """Schema for patient self-registration"""

    email: str
    name: str
    password: str
    phoneNumber: Optional[str] = None
    dateOfBirth: Optional[str] = None
    gender: Optional[str] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator("phoneNumber")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("dateOfBirth")
    @classmethod
    def check_date_of_birth(cls, v):
        return validate_date_string(v)

    @field_validator("gender")
    @classmethod
    def check_gender(cls, v):
        return validate_gender(v)


class PatientProfileUpdate(BaseModel):
    """Schema for partial patient profile updates"""

    name: Optional[str] = None
    phoneNumber: Optional[str] = None
    dateOfBirth: Optional[str] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    emergencyContact: Optional[dict] = None
    medicalHistory: Optional[dict] = None

    @field_validator("phoneNumber")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("dateOfBirth")
    @classmethod
    def check_date_of_birth(cls, v):
        return validate_date_string(v)

    @field_validator("gender")
    @classmethod
    def check_gender(cls, v):
        return validate_gender(v)


class PasswordResetRequest(BaseModel):
    email: str
    userType: str = "patient"

    @field_validator("userType")
    @classmethod
    def check_user_type(cls, v):
        if v not in ("patient", "worker"):
            raise ValueError("userType must be 'patient' or 'worker'")
        return v


class PasswordResetConfirm(BaseModel):
    token: str
    newPassword: str


class UserInfo(BaseModel):
    id: int
    email: str
    name: str
    userType: str
    role: Optional[str] = None


class TokenResponse(BaseModel):
    accessToken: str
    refreshToken: str
    user: UserInfo
