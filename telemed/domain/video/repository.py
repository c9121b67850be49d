"""Video session repository - Sessions, participants and audit events"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Appointment, SessionEvent, SessionParticipant, VideoSession

OPEN_SESSION_STATUSES = ("waiting", "active")


class VideoSessionRepository:
    """Repository for video session database operations"""

    @staticmethod
    def get_appointment(db: Session, appointment_id: int) -> Optional[Appointment]:
        return db.query(Appointment).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def get_session(db: Session, session_id: str) -> Optional[VideoSession]:
        return db.query(VideoSession).filter(VideoSession.id == session_id).first()

    @staticmethod
    def get_open_session(db: Session, appointment_id: int) -> Optional[VideoSession]:
        return (
            db.query(VideoSession)
            .filter(
                VideoSession.appointment_id == appointment_id,
                VideoSession.status.in_(OPEN_SESSION_STATUSES),
            )
            .order_by(VideoSession.created_at.desc())
            .first()
        )

    @staticmethod
    def create_session(db: Session, **session_data) -> VideoSession:
        session = VideoSession(**session_data)
        db.add(session)
        db.flush()
        return session

    @staticmethod
    def get_participant(
        db: Session, session_id: str, user_type: str, user_id: int
    ) -> Optional[SessionParticipant]:
        return (
            db.query(SessionParticipant)
            .filter(
                SessionParticipant.video_session_id == session_id,
                SessionParticipant.user_type == user_type,
                SessionParticipant.user_id == user_id,
            )
            .first()
        )

    @staticmethod
    def get_participants(db: Session, session_id: str, active_only: bool = False) -> list[SessionParticipant]:
        query = db.query(SessionParticipant).filter(SessionParticipant.video_session_id == session_id)
        if active_only:
            query = query.filter(SessionParticipant.is_active.is_(True))
        return query.order_by(SessionParticipant.joined_at).all()

    @staticmethod
    def add_participant(db: Session, **participant_data) -> SessionParticipant:
        participant = SessionParticipant(**participant_data)
        db.add(participant)
        db.flush()
        return participant

    @staticmethod
    def add_event(
        db: Session,
        session_id: str,
        event_type: str,
        user_id: Optional[int] = None,
        user_type: Optional[str] = None,
        payload: Optional[dict] = None,
    ) -> SessionEvent:
        event = SessionEvent(
            video_session_id=session_id,
            event_type=event_type,
            user_id=user_id,
            user_type=user_type,
            payload=payload,
        )
        db.add(event)
        return event

    @staticmethod
    def get_events(db: Session, session_id: str) -> list[SessionEvent]:
        return (
            db.query(SessionEvent)
            .filter(SessionEvent.video_session_id == session_id)
            .order_by(SessionEvent.created_at, SessionEvent.id)
            .all()
        )
