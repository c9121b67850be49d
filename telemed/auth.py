import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .security_utils import verify_jwt_token
from .session_store import session_store

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@dataclass
class AuthUser:
    """Identity carried by an access token"""

    id: int
    email: str
    user_type: str  # patient, worker
    role: Optional[str] = None  # doctor, operator, admin (workers only)
    token: Optional[str] = None

    @property
    def is_patient(self) -> bool:
        return self.user_type == "patient"

    @property
    def is_worker(self) -> bool:
        return self.user_type == "worker"


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> AuthUser:
    """Get current user from a bearer access token"""

    if not credentials or not credentials.credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    token = credentials.credentials

    # Basic token format validation before processing
    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received, length: {len(token)}")
        raise HTTPException(
            status_code=401, detail="Invalid token format. Expected a valid JWT token."
        )

    if session_store.is_blacklisted(token):
        logger.warning("⚠️ Blacklisted token presented")
        raise HTTPException(status_code=401, detail="Token has been revoked")

    payload = verify_jwt_token(token)
    if not payload:
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired token. Please log in again.",
            headers={"X-Token-Expired": "true"},
        )

    if payload.get("type") == "refresh":
        raise HTTPException(status_code=401, detail="Refresh tokens cannot be used for API access")

    user_id = payload.get("id")
    user_type = payload.get("userType")
    if user_id is None or user_type not in ("patient", "worker"):
        logger.error(f"❌ Token missing required claims. Available claims: {list(payload.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    session_store.touch(int(user_id), user_type)

    return AuthUser(
        id=int(user_id),
        email=payload.get("email", ""),
        user_type=user_type,
        role=payload.get("role"),
        token=token,
    )


async def require_patient(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    if not user.is_patient:
        raise HTTPException(status_code=403, detail="Patients only")
    return user


async def require_worker(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    if not user.is_worker:
        raise HTTPException(status_code=403, detail="Workers only")
    return user


def require_roles(*roles: str):
    """
    Create a dependency that only admits workers with one of the given roles

    Example usage:
        require_operator = require_roles("operator", "admin")

        @router.get("/dashboard")
        async def dashboard(user: AuthUser = Depends(require_operator)):
            ...
    """

    async def role_checker(user: AuthUser = Depends(get_current_user)) -> AuthUser:
        if not user.is_worker or user.role not in roles:
            logger.warning(
                f"⚠️ {user.user_type} {user.id} (role={user.role}) denied; requires {', '.join(roles)}"
            )
            raise HTTPException(status_code=403, detail="Permission denied")
        return user

    return role_checker


require_doctor = require_roles("doctor")
require_operator = require_roles("operator", "admin")
require_admin = require_roles("admin")
