"""Chat service - Appointment message threads with role-based access"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import AuthUser
from ...models import Appointment, ChatMessage
from ...security_utils import sanitize_text
from ...utils.timezone import to_utc_iso, utc_now
from .repository import ChatRepository
from .schemas import MessageCreate

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 5000


def message_sender(message: ChatMessage) -> dict:
    if message.patient_id:
        return {
            "type": "patient",
            "id": message.patient_id,
            "name": message.patient.name if message.patient else "Patient",
        }
    if message.worker_id:
        return {
            "type": "worker",
            "id": message.worker_id,
            "name": message.worker.name if message.worker else "Staff",
            "role": message.worker.role if message.worker else None,
        }
    return {"type": "system"}


def message_to_dict(message: ChatMessage) -> dict:
    return {
        "id": message.id,
        "appointmentId": message.appointment_id,
        "patientId": message.patient_id,
        "workerId": message.worker_id,
        "messageType": message.message_type,
        "content": message.content,
        "sentAt": to_utc_iso(message.sent_at),
        "readAt": to_utc_iso(message.read_at),
        "createdAt": to_utc_iso(message.created_at),
        "sender": message_sender(message),
    }


class ChatService:
    """Service layer for appointment chat"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ChatRepository()

    def _get_accessible_appointment(self, appointment_id: int, user: AuthUser) -> Appointment:
        appointment = self.repo.get_appointment(self.db, appointment_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        if user.is_patient and appointment.patient_id != user.id:
            raise HTTPException(status_code=403, detail="You do not have access to this conversation")
        if user.is_worker and user.role == "doctor" and appointment.assigned_worker_id != user.id:
            raise HTTPException(status_code=403, detail="You are not assigned to this appointment")
        return appointment

    def get_messages(self, appointment_id: int, user: AuthUser, limit: int, offset: int) -> dict:
        self._get_accessible_appointment(appointment_id, user)
        messages = self.repo.get_messages(self.db, appointment_id, limit=limit, offset=offset)
        return {
            "messages": [message_to_dict(m) for m in messages],
            "hasMore": len(messages) == limit,
        }

    def send_message(self, appointment_id: int, user: AuthUser, data: MessageCreate) -> dict:
        if not data.content or not data.content.strip():
            raise HTTPException(status_code=400, detail="Message content is required")
        if len(data.content) > MAX_MESSAGE_LENGTH:
            raise HTTPException(status_code=400, detail=f"Message must be {MAX_MESSAGE_LENGTH} characters or fewer")

        content = sanitize_text(data.content)
        if not content:
            raise HTTPException(status_code=400, detail="Message content is required")

        self._get_accessible_appointment(appointment_id, user)
        message = self.repo.create_message(
            self.db,
            appointment_id=appointment_id,
            patient_id=user.id if user.is_patient else None,
            worker_id=user.id if user.is_worker else None,
            message_type=data.messageType,
            content=content,
            sent_at=utc_now(),
        )
        logger.info(f"💬 {user.user_type} {user.id} posted message {message.id} on appointment {appointment_id}")
        return {"message": message_to_dict(message)}

    def mark_read(self, message_id: int, user: AuthUser) -> dict:
        message = self.repo.get_message(self.db, message_id)
        if not message:
            raise HTTPException(status_code=404, detail="Message not found")

        # Only the receiving side may mark a message as read
        if user.is_patient and message.patient_id is not None:
            raise HTTPException(status_code=403, detail="You cannot mark this message as read")
        if user.is_worker and message.worker_id is not None:
            raise HTTPException(status_code=403, detail="You cannot mark this message as read")
        self._get_accessible_appointment(message.appointment_id, user)

        message = self.repo.mark_read(self.db, message, message.read_at or utc_now())
        return {"success": True, "readAt": to_utc_iso(message.read_at)}

    def unread_count(self, user: AuthUser) -> dict:
        if user.is_patient:
            count = self.repo.count_unread_for_patient(self.db, user.id)
        elif user.role == "doctor":
            count = self.repo.count_unread_for_worker(self.db, doctor_id=user.id)
        else:
            count = self.repo.count_unread_for_worker(self.db)
        return {"unreadCount": count}
