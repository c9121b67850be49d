"""Video session service - Consultation rooms, participants and permissions"""

import logging
import time
import uuid
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import AuthUser
from ...models import Appointment, VideoSession
from ...utils.timezone import to_utc_iso, utc_now
from .calls_client import CallsClientError, CloudflareCallsClient
from .repository import OPEN_SESSION_STATUSES, VideoSessionRepository
from .schemas import EndSessionRequest

logger = logging.getLogger(__name__)

BASE_PERMISSIONS = ["join", "leave", "mute", "unmute", "share_screen"]


def generate_realtime_session_id() -> str:
    return f"session-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"


def permissions_for(user: AuthUser) -> list[str]:
    permissions = list(BASE_PERMISSIONS)
    if user.is_worker:
        permissions.append("end_session")
    if user.role == "admin":
        permissions.append("record")
    return permissions


def participant_key(user: AuthUser) -> str:
    return f"{user.user_type}:{user.id}"


class VideoSessionService:
    """Service layer for video consultation sessions"""

    def __init__(self, db: Session, calls_client: Optional[CloudflareCallsClient] = None):
        self.db = db
        self.repo = VideoSessionRepository()
        self.calls = calls_client or CloudflareCallsClient()

    @staticmethod
    def _check_access(appointment: Appointment, user: AuthUser) -> None:
        if user.is_patient and appointment.patient_id != user.id:
            raise HTTPException(status_code=403, detail="You do not have access to this appointment")
        if user.is_worker and user.role == "doctor" and appointment.assigned_worker_id != user.id:
            raise HTTPException(status_code=403, detail="You are not assigned to this appointment")

    async def _issue_token(self, realtime_session_id: str) -> dict:
        try:
            return await self.calls.create_session(realtime_session_id)
        except CallsClientError as e:
            logger.error(f"❌ Failed to obtain Calls token for {realtime_session_id}: {e}")
            raise HTTPException(status_code=503, detail="Video service is temporarily unavailable") from e

    def _register_participant(self, session: VideoSession, user: AuthUser) -> None:
        """Add the user to the session or reactivate a previous participation"""
        participant = self.repo.get_participant(self.db, session.id, user.user_type, user.id)
        if participant is None:
            self.repo.add_participant(
                self.db,
                video_session_id=session.id,
                user_type=user.user_type,
                user_id=user.id,
                role=user.role or user.user_type,
            )
        elif not participant.is_active:
            participant.is_active = True
            participant.joined_at = utc_now()
            participant.left_at = None

        keys = list(session.participants or [])
        if participant_key(user) not in keys:
            session.participants = keys + [participant_key(user)]

    def _session_to_dict(self, session: VideoSession) -> dict:
        return {
            "id": session.id,
            "appointmentId": session.appointment_id,
            "realtimeSessionId": session.realtime_session_id,
            "status": session.status,
            "startedAt": to_utc_iso(session.started_at),
            "endedAt": to_utc_iso(session.ended_at),
            "endReason": session.end_reason,
            "createdAt": to_utc_iso(session.created_at),
            "participants": [
                {
                    "id": p.id,
                    "userType": p.user_type,
                    "userId": p.user_id,
                    "role": p.role,
                    "joinedAt": to_utc_iso(p.joined_at),
                    "leftAt": to_utc_iso(p.left_at),
                    "isActive": p.is_active,
                }
                for p in self.repo.get_participants(self.db, session.id)
            ],
            "events": [
                {
                    "type": e.event_type,
                    "userType": e.user_type,
                    "userId": e.user_id,
                    "payload": e.payload,
                    "createdAt": to_utc_iso(e.created_at),
                }
                for e in self.repo.get_events(self.db, session.id)
            ],
        }

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    async def create_session(self, appointment_id: int, user: AuthUser) -> dict:
        appointment = self.repo.get_appointment(self.db, appointment_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        self._check_access(appointment, user)

        existing = self.repo.get_open_session(self.db, appointment_id)
        if existing:
            logger.info(f"🔁 {user.user_type} {user.id} joining existing session {existing.id}")
            result = await self.join_session(existing.id, user)
            result["isNewSession"] = False
            return result

        realtime_session_id = generate_realtime_session_id()
        calls_session = await self._issue_token(realtime_session_id)

        try:
            session = self.repo.create_session(
                self.db,
                appointment_id=appointment_id,
                realtime_session_id=realtime_session_id,
                status="waiting",
                participants=[],
            )
            self._register_participant(session, user)
            self.repo.add_event(
                self.db,
                session.id,
                "session_created",
                user_id=user.id,
                user_type=user.user_type,
                payload={"realtimeSessionId": realtime_session_id},
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception(f"❌ Failed to create video session for appointment {appointment_id}")
            raise

        logger.info(f"✅ Video session {session.id} created for appointment {appointment_id}")
        return {
            "sessionId": session.id,
            "realtimeSessionId": session.realtime_session_id,
            "token": calls_session["token"],
            "expiresAt": calls_session.get("expiresAt"),
            "status": session.status,
            "isNewSession": True,
            "permissions": permissions_for(user),
        }

    async def join_session(self, session_id: str, user: AuthUser) -> dict:
        session = self.repo.get_session(self.db, session_id)
        if not session:
            raise HTTPException(status_code=404, detail="Session not found")
        if session.status not in OPEN_SESSION_STATUSES:
            raise HTTPException(status_code=400, detail=f"Session is not joinable (status: {session.status})")

        appointment = self.repo.get_appointment(self.db, session.appointment_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        self._check_access(appointment, user)

        calls_session = await self._issue_token(session.realtime_session_id)

        try:
            self._register_participant(session, user)
            if session.status == "waiting":
                session.status = "active"
                session.started_at = utc_now()
            self.repo.add_event(self.db, session.id, "participant_joined", user_id=user.id, user_type=user.user_type)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"✅ {user.user_type} {user.id} joined video session {session.id}")
        return {
            "sessionId": session.id,
            "realtimeSessionId": session.realtime_session_id,
            "token": calls_session["token"],
            "expiresAt": calls_session.get("expiresAt"),
            "status": session.status,
            "permissions": permissions_for(user),
        }

    def leave_session(self, session_id: str, user: AuthUser) -> dict:
        session = self.repo.get_session(self.db, session_id)
        if not session:
            raise HTTPException(status_code=404, detail="Session not found")

        participant = self.repo.get_participant(self.db, session.id, user.user_type, user.id)
        if not participant or not participant.is_active:
            raise HTTPException(status_code=400, detail="You are not an active participant in this session")

        participant.is_active = False
        participant.left_at = utc_now()
        self.repo.add_event(self.db, session.id, "participant_left", user_id=user.id, user_type=user.user_type)
        self.db.flush()

        if not self.repo.get_participants(self.db, session.id, active_only=True):
            session.status = "ended"
            session.end_reason = "completed"
            session.ended_at = utc_now()
            self.repo.add_event(self.db, session.id, "session_ended", payload={"reason": "completed"})
            logger.info(f"🏁 Video session {session.id} ended: last participant left")

        self.db.commit()
        return {"success": True, "sessionStatus": session.status}

    def end_session(self, session_id: str, user: AuthUser, data: EndSessionRequest) -> dict:
        if not user.is_worker:
            raise HTTPException(status_code=403, detail="Only clinical staff can end a session")

        session = self.repo.get_session(self.db, session_id)
        if not session:
            raise HTTPException(status_code=404, detail="Session not found")

        appointment = self.repo.get_appointment(self.db, session.appointment_id)
        if appointment:
            self._check_access(appointment, user)
        if session.status not in OPEN_SESSION_STATUSES:
            raise HTTPException(status_code=400, detail=f"Session has already ended (status: {session.status})")

        now = utc_now()
        for participant in self.repo.get_participants(self.db, session.id, active_only=True):
            participant.is_active = False
            participant.left_at = now

        session.status = "ended"
        session.ended_at = now
        session.end_reason = data.reason
        self.repo.add_event(
            self.db, session.id, "session_ended", user_id=user.id, user_type=user.user_type,
            payload={"reason": data.reason},
        )
        self.db.commit()

        logger.info(f"🏁 Worker {user.id} ended video session {session.id} ({data.reason})")
        return {"success": True, "session": {"id": session.id, "status": session.status, "endReason": session.end_reason}}

    def get_session(self, session_id: str, user: AuthUser) -> dict:
        session = self.repo.get_session(self.db, session_id)
        if not session:
            raise HTTPException(status_code=404, detail="Session not found")

        appointment = self.repo.get_appointment(self.db, session.appointment_id)
        if appointment:
            self._check_access(appointment, user)
        return {"session": self._session_to_dict(session)}
