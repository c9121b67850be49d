"""
In-memory session registry and token blacklist.

Sessions are keyed by "<userType>:<id>". The blacklist holds raw tokens that
were revoked before their expiry (logout, admin revocation, security events).
Both live in process memory, guarded by a lock, and are pruned lazily.
"""

import logging
import time
from threading import Lock
from typing import Optional

from .config import ACCESS_TOKEN_EXPIRE_HOURS

logger = logging.getLogger(__name__)

BLACKLIST_REASONS = ("logout", "revoked", "security")
SESSION_TTL_SECONDS = ACCESS_TOKEN_EXPIRE_HOURS * 3600
CLEANUP_INTERVAL = 60


class SessionStore:
    def __init__(self, ttl_seconds: int = SESSION_TTL_SECONDS):
        self.ttl_seconds = ttl_seconds
        self._sessions: dict[str, dict] = {}
        # token -> {"reason": str, "expires_at": float}
        self._blacklist: dict[str, dict] = {}
        self._lock = Lock()
        self._last_cleanup = 0.0

    @staticmethod
    def session_key(user_id: int, user_type: str) -> str:
        return f"{user_type}:{user_id}"

    def create_session(self, user_id: int, user_type: str, role: Optional[str] = None) -> dict:
        now = time.time()
        session = {
            "userId": user_id,
            "userType": user_type,
            "role": role,
            "created_at": now,
            "last_activity": now,
            "expires_at": now + self.ttl_seconds,
        }
        with self._lock:
            self._sessions[self.session_key(user_id, user_type)] = session
        self.cleanup_expired()
        return session

    def get_session(self, user_id: int, user_type: str) -> Optional[dict]:
        key = self.session_key(user_id, user_type)
        with self._lock:
            session = self._sessions.get(key)
            if session and session["expires_at"] <= time.time():
                del self._sessions[key]
                return None
            return session

    def touch(self, user_id: int, user_type: str) -> None:
        """Record activity on an existing session"""
        with self._lock:
            session = self._sessions.get(self.session_key(user_id, user_type))
            if session:
                session["last_activity"] = time.time()

    def delete_session(self, user_id: int, user_type: str) -> bool:
        with self._lock:
            return self._sessions.pop(self.session_key(user_id, user_type), None) is not None

    def blacklist_token(self, token: str, reason: str = "logout", expires_at: Optional[float] = None) -> None:
        if reason not in BLACKLIST_REASONS:
            raise ValueError(f"Unknown blacklist reason: {reason}")
        with self._lock:
            self._blacklist[token] = {
                "reason": reason,
                "expires_at": expires_at or time.time() + self.ttl_seconds,
            }
        logger.info(f"🔒 Token blacklisted (reason: {reason})")

    def is_blacklisted(self, token: str) -> bool:
        with self._lock:
            entry = self._blacklist.get(token)
            if entry is None:
                return False
            if entry["expires_at"] <= time.time():
                # Token has expired on its own; the signature check rejects it anyway
                del self._blacklist[token]
                return False
            return True

    def cleanup_expired(self, force: bool = False) -> int:
        """Drop expired sessions and blacklist entries; returns how many were removed"""
        now = time.time()
        if not force and now - self._last_cleanup < CLEANUP_INTERVAL:
            return 0

        with self._lock:
            expired_sessions = [k for k, v in self._sessions.items() if v["expires_at"] <= now]
            for key in expired_sessions:
                del self._sessions[key]
            expired_tokens = [k for k, v in self._blacklist.items() if v["expires_at"] <= now]
            for token in expired_tokens:
                del self._blacklist[token]
            self._last_cleanup = now

        removed = len(expired_sessions) + len(expired_tokens)
        if removed:
            logger.debug(f"🧹 Cleaned up {removed} expired sessions/blacklist entries")
        return removed

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()
            self._blacklist.clear()


session_store = SessionStore()
