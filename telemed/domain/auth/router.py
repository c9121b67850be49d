"""Auth router - Login, registration and profile endpoints"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ...auth import AuthUser, get_current_user
from ...config import LOGIN_RATE_LIMIT, LOGIN_RATE_WINDOW
from ...database import get_db
from ...rate_limiter import create_rate_limiter
from .schemas import (
    LoginRequest,
    PasswordResetConfirm,
    PasswordResetRequest,
    PatientProfileUpdate,
    PatientRegisterRequest,
    RefreshRequest,
    TokenResponse,
)
from .service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Auth"])

rate_limit_login = create_rate_limiter(
    limit=LOGIN_RATE_LIMIT, window_seconds=LOGIN_RATE_WINDOW, key_prefix="login"
)
rate_limit_password_reset = create_rate_limiter(
    limit=5, window_seconds=3600, key_prefix="password_reset"
)


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    """Dependency injection for AuthService"""
    return AuthService(db)


# ============================================================================
# AUTHENTICATION
# ============================================================================


@router.post("/auth/patient/login", response_model=TokenResponse)
async def patient_login(
    data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
    _: None = Depends(rate_limit_login),
):
    return service.login_patient(data)


@router.post("/auth/worker/login", response_model=TokenResponse)
async def worker_login(
    data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
    _: None = Depends(rate_limit_login),
):
    return service.login_worker(data)


@router.post("/auth/refresh")
async def refresh_token(
    data: RefreshRequest,
    service: AuthService = Depends(get_auth_service),
):
    """Exchange a refresh token for a new access token"""
    return service.refresh(data.refreshToken)


@router.post("/auth/logout")
async def logout(
    current_user: AuthUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    return service.logout(current_user)


@router.post("/auth/patient/register", status_code=201)
async def register_patient(
    data: PatientRegisterRequest,
    service: AuthService = Depends(get_auth_service),
    _: None = Depends(rate_limit_login),
):
    return service.register_patient(data)


# ============================================================================
# PASSWORD RESET
# ============================================================================


@router.post("/auth/password-reset/request")
async def request_password_reset(
    data: PasswordResetRequest,
    service: AuthService = Depends(get_auth_service),
    _: None = Depends(rate_limit_password_reset),
):
    return service.request_password_reset(data)


@router.post("/auth/password-reset/confirm")
async def confirm_password_reset(
    data: PasswordResetConfirm,
    service: AuthService = Depends(get_auth_service),
):
    return service.confirm_password_reset(data)


# ============================================================================
# PROFILES
# ============================================================================


@router.get("/patient/profile")
async def get_patient_profile(
    current_user: AuthUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    if not current_user.is_patient:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return service.get_patient_profile(current_user)


@router.put("/patient/profile")
async def update_patient_profile(
    data: PatientProfileUpdate,
    current_user: AuthUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    if not current_user.is_patient:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return service.update_patient_profile(current_user, data)


@router.get("/worker/profile")
async def get_worker_profile(
    current_user: AuthUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    if not current_user.is_worker:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return service.get_worker_profile(current_user)
