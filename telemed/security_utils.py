"""
Security Utilities
Password hashing and strength checks, JWT issuing/verification,
password-reset tokens and free-text sanitization
"""

import logging
import re
import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

# Input sanitization
import bleach

# Token generation and validation
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from jose import JWTError
from jose import jwt as jose_jwt

# Password hashing
from passlib.context import CryptContext

from .config import (
    ACCESS_TOKEN_EXPIRE_HOURS,
    JWT_ALGORITHM,
    PASSWORD_RESET_MAX_AGE,
    REFRESH_TOKEN_EXPIRE_DAYS,
    SECRET_KEY,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
SPECIAL_CHARACTERS = '!@#$%^&*(),.?":{}|<>'
COMMON_PATTERNS = ["123456", "password", "qwerty", "admin", "login"]

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=10)


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def hash_password(password: str) -> str:
    """Hash password using bcrypt"""
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against bcrypt hash"""
    if not plain_password or not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError) as e:
        logger.error(f"Password verification error: {e}")
        return False


def validate_password_strength(password: str) -> dict[str, Any]:
    """
    Check password strength and return detailed feedback

    Returns:
        dict with 'isValid' (bool), 'score' (0-5) and 'feedback' (list of suggestions)
    """
    password = password or ""
    score = 0
    feedback = []

    # Length check
    if len(password) < MIN_PASSWORD_LENGTH:
        feedback.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    elif len(password) >= 12:
        score += 2
    else:
        score += 1

    # Character variety checks
    if re.search(r"[a-z]", password):
        score += 1
    else:
        feedback.append("Add lowercase letters")

    if re.search(r"[A-Z]", password):
        score += 1
    else:
        feedback.append("Add uppercase letters")

    if re.search(r"\d", password):
        score += 1
    else:
        feedback.append("Add numbers")

    if any(ch in SPECIAL_CHARACTERS for ch in password):
        score += 1
    else:
        feedback.append("Add special characters")

    # Common pattern check
    lowered = password.lower()
    if any(pattern in lowered for pattern in COMMON_PATTERNS):
        score -= 2
        feedback.append("Avoid common words and sequences")

    score = max(0, min(score, 5))

    return {
        "isValid": len(password) >= MIN_PASSWORD_LENGTH and score >= 3,
        "score": score,
        "feedback": feedback,
    }


def generate_random_password(length: int = 12) -> str:
    """Generate a random password containing every character class"""
    if length < 4:
        raise ValueError("Password length must be at least 4")

    pools = [string.ascii_lowercase, string.ascii_uppercase, string.digits, SPECIAL_CHARACTERS]
    chars = [secrets.choice(pool) for pool in pools]
    everything = "".join(pools)
    chars.extend(secrets.choice(everything) for _ in range(length - len(chars)))

    # Fisher-Yates with a CSPRNG
    for i in range(len(chars) - 1, 0, -1):
        j = secrets.randbelow(i + 1)
        chars[i], chars[j] = chars[j], chars[i]

    return "".join(chars)


# ============================================================================
# JWT ACCESS / REFRESH TOKENS
# ============================================================================


def create_access_token(
    user_id: int,
    email: str,
    user_type: str,
    role: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed access token

    Payload: {sub, id, email, userType, role?, iat, exp}
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS))
    to_encode = {
        "sub": str(user_id),
        "id": user_id,
        "email": email,
        "userType": user_type,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    if role:
        to_encode["role"] = role

    return jose_jwt.encode(to_encode, SECRET_KEY, algorithm=JWT_ALGORITHM)


def create_refresh_token(user_id: int, user_type: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create a long-lived refresh token (type=refresh)"""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS))
    to_encode = {
        "sub": str(user_id),
        "id": user_id,
        "userType": user_type,
        "type": "refresh",
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jose_jwt.encode(to_encode, SECRET_KEY, algorithm=JWT_ALGORITHM)


def verify_jwt_token(token: str) -> Optional[dict[str, Any]]:
    """
    Verify and decode a JWT token

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None


def verify_refresh_token(token: str) -> Optional[dict[str, Any]]:
    payload = verify_jwt_token(token)
    if not payload or payload.get("type") != "refresh":
        return None
    return payload


def extract_token_from_header(header: Optional[str]) -> Optional[str]:
    """Return the token part of a 'Bearer <token>' header"""
    if not header or not header.startswith("Bearer "):
        return None
    token = header[len("Bearer "):].strip()
    return token or None


# ============================================================================
# PASSWORD RESET TOKENS
# ============================================================================


def generate_password_reset_token(user_id: int, user_type: str) -> str:
    """Generate a time-limited password reset token using itsdangerous"""
    serializer = URLSafeTimedSerializer(SECRET_KEY)
    return serializer.dumps({"id": user_id, "userType": user_type}, salt="password-reset")


def verify_password_reset_token(token: str, max_age: int = PASSWORD_RESET_MAX_AGE) -> Optional[dict[str, Any]]:
    """
    Verify and decode a password reset token

    Returns:
        Decoded data if valid, None if invalid or expired
    """
    serializer = URLSafeTimedSerializer(SECRET_KEY)
    try:
        return serializer.loads(token, salt="password-reset", max_age=max_age)
    except SignatureExpired:
        logger.warning("Password reset token expired")
        return None
    except BadSignature:
        logger.warning("Invalid password reset token signature")
        return None


# ============================================================================
# INPUT SANITIZATION
# ============================================================================


def sanitize_text(content: str) -> str:
    """Strip all markup from user-supplied free text (chat messages, notes)"""
    return bleach.clean(content or "", tags=[], attributes={}, strip=True).strip()
