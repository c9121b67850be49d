"""Auth service - Login, registration, token refresh and profile logic"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...auth import AuthUser
from ...config import IS_PRODUCTION
from ...security_utils import (
    create_access_token,
    create_refresh_token,
    generate_password_reset_token,
    hash_password,
    validate_password_strength,
    verify_jwt_token,
    verify_password,
    verify_password_reset_token,
    verify_refresh_token,
)
from ...session_store import session_store
from ...shared.serializers import patient_profile, worker_profile
from .repository import AuthRepository
from .schemas import (
    LoginRequest,
    PasswordResetConfirm,
    PasswordResetRequest,
    PatientProfileUpdate,
    PatientRegisterRequest,
)

logger = logging.getLogger(__name__)


def _parse_birth_date(value: Optional[str]) -> Optional[datetime]:
    return datetime.strptime(value, "%Y-%m-%d") if value else None


class AuthService:
    """Service layer for authentication and account management"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AuthRepository()

    @staticmethod
    def _require_credentials(data: LoginRequest) -> tuple[str, str]:
        if not data.email or not data.password:
            raise HTTPException(status_code=400, detail="Email and password are required")
        return data.email.strip().lower(), data.password

    @staticmethod
    def _issue_tokens(account, user_type: str, role: Optional[str] = None) -> dict:
        session_store.create_session(account.id, user_type, role)
        user = {
            "id": account.id,
            "email": account.email,
            "name": account.name,
            "userType": user_type,
        }
        if role:
            user["role"] = role
        return {
            "accessToken": create_access_token(account.id, account.email, user_type, role),
            "refreshToken": create_refresh_token(account.id, user_type),
            "user": user,
        }

    # ========================================================================
    # LOGIN / LOGOUT
    # ========================================================================

    def login_patient(self, data: LoginRequest) -> dict:
        email, password = self._require_credentials(data)
        logger.info(f"📥 Patient login attempt: {email}")

        patient = self.repo.get_patient_by_email(self.db, email)
        if not patient or not verify_password(password, patient.password_hash):
            logger.warning(f"⚠️ Invalid patient credentials for {email}")
            raise HTTPException(status_code=401, detail="Invalid credentials")

        logger.info(f"✅ Patient {patient.id} logged in")
        return self._issue_tokens(patient, "patient")

    def login_worker(self, data: LoginRequest) -> dict:
        email, password = self._require_credentials(data)
        logger.info(f"📥 Worker login attempt: {email}")

        worker = self.repo.get_worker_by_email(self.db, email)
        if not worker or not verify_password(password, worker.password_hash):
            logger.warning(f"⚠️ Invalid worker credentials for {email}")
            raise HTTPException(status_code=401, detail="Invalid credentials")

        if not worker.is_active:
            logger.warning(f"⚠️ Inactive worker {worker.id} attempted login")
            raise HTTPException(status_code=403, detail="Account is deactivated")

        logger.info(f"✅ Worker {worker.id} ({worker.role}) logged in")
        return self._issue_tokens(worker, "worker", worker.role)

    def refresh(self, refresh_token: Optional[str]) -> dict:
        payload = verify_refresh_token(refresh_token) if refresh_token else None
        if not payload:
            raise HTTPException(status_code=401, detail="Invalid refresh token")

        user_type = payload["userType"]
        account_id = int(payload["id"])
        if user_type == "patient":
            account = self.repo.get_patient_by_id(self.db, account_id)
            role = None
        else:
            account = self.repo.get_worker_by_id(self.db, account_id)
            role = account.role if account else None
            if account and not account.is_active:
                raise HTTPException(status_code=403, detail="Account is deactivated")

        if not account:
            raise HTTPException(status_code=401, detail="Account no longer exists")

        return {"accessToken": create_access_token(account.id, account.email, user_type, role)}

    def logout(self, user: AuthUser) -> dict:
        session_store.delete_session(user.id, user.user_type)
        if user.token:
            payload = verify_jwt_token(user.token) or {}
            session_store.blacklist_token(user.token, reason="logout", expires_at=payload.get("exp"))
        logger.info(f"✅ {user.user_type} {user.id} logged out")
        return {"message": "Successfully logged out"}

    # ========================================================================
    # REGISTRATION / PASSWORD RESET
    # ========================================================================

    def register_patient(self, data: PatientRegisterRequest) -> dict:
        logger.info(f"📥 Registering patient: {data.email}")

        strength = validate_password_strength(data.password)
        if not strength["isValid"]:
            raise HTTPException(
                status_code=400,
                detail={"message": "Password is too weak", "feedback": strength["feedback"]},
            )

        if self.repo.get_patient_by_email(self.db, data.email):
            raise HTTPException(status_code=409, detail="Email is already registered")

        try:
            patient = self.repo.create_patient(
                self.db,
                email=data.email,
                name=data.name,
                password_hash=hash_password(data.password),
                phone_number=data.phoneNumber,
                date_of_birth=_parse_birth_date(data.dateOfBirth),
                gender=data.gender,
                emergency_contact={},
                medical_history={},
            )
        except IntegrityError as e:
            # Concurrent registration with the same email
            self.db.rollback()
            raise HTTPException(status_code=409, detail="Email is already registered") from e

        logger.info(f"✅ Patient registered: {patient.id}")
        return {"message": "Patient registered successfully", "patient": patient_profile(patient)}

    def request_password_reset(self, data: PasswordResetRequest) -> dict:
        email = data.email.strip().lower()
        if data.userType == "patient":
            account = self.repo.get_patient_by_email(self.db, email)
        else:
            account = self.repo.get_worker_by_email(self.db, email)

        response = {"message": "If the account exists, a reset link has been sent"}
        if account:
            token = generate_password_reset_token(account.id, data.userType)
            logger.info(f"📧 Password reset requested for {data.userType} {account.id}")
            if not IS_PRODUCTION:
                response["resetToken"] = token
        else:
            logger.info(f"ℹ️ Password reset requested for unknown {data.userType} email")
        return response

    def confirm_password_reset(self, data: PasswordResetConfirm) -> dict:
        payload = verify_password_reset_token(data.token)
        if not payload:
            raise HTTPException(status_code=400, detail="Invalid or expired reset token")

        strength = validate_password_strength(data.newPassword)
        if not strength["isValid"]:
            raise HTTPException(
                status_code=400,
                detail={"message": "Password is too weak", "feedback": strength["feedback"]},
            )

        if payload["userType"] == "patient":
            account = self.repo.get_patient_by_id(self.db, payload["id"])
        else:
            account = self.repo.get_worker_by_id(self.db, payload["id"])
        if not account:
            raise HTTPException(status_code=400, detail="Invalid or expired reset token")

        self.repo.set_password_hash(self.db, account, hash_password(data.newPassword))
        session_store.delete_session(account.id, payload["userType"])
        logger.info(f"✅ Password reset for {payload['userType']} {account.id}")
        return {"message": "Password has been reset"}

    # ========================================================================
    # PROFILES
    # ========================================================================

    def get_patient_profile(self, user: AuthUser) -> dict:
        patient = self.repo.get_patient_by_id(self.db, user.id)
        if not patient:
            raise HTTPException(status_code=404, detail="Patient not found")
        return patient_profile(patient)

    def update_patient_profile(self, user: AuthUser, data: PatientProfileUpdate) -> dict:
        patient = self.repo.get_patient_by_id(self.db, user.id)
        if not patient:
            raise HTTPException(status_code=404, detail="Patient not found")

        updates = {
            "name": data.name,
            "phone_number": data.phoneNumber,
            "date_of_birth": _parse_birth_date(data.dateOfBirth),
            "gender": data.gender,
            "address": data.address,
            "emergency_contact": data.emergencyContact,
            "medical_history": data.medicalHistory,
        }
        patient = self.repo.update_patient(self.db, patient, **updates)
        logger.info(f"✅ Patient {patient.id} profile updated")
        return patient_profile(patient)

    def get_worker_profile(self, user: AuthUser) -> dict:
        worker = self.repo.get_worker_by_id(self.db, user.id)
        if not worker:
            raise HTTPException(status_code=404, detail="Worker not found")
        return worker_profile(worker)
