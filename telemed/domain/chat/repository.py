"""Chat repository - Per-appointment messages between patients and staff"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Appointment, ChatMessage


class ChatRepository:
    """Repository for chat message database operations"""

    @staticmethod
    def get_appointment(db: Session, appointment_id: int) -> Optional[Appointment]:
        return db.query(Appointment).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def get_message(db: Session, message_id: int) -> Optional[ChatMessage]:
        return db.query(ChatMessage).filter(ChatMessage.id == message_id).first()

    @staticmethod
    def get_messages(db: Session, appointment_id: int, limit: int = 100, offset: int = 0) -> list[ChatMessage]:
        return (
            db.query(ChatMessage)
            .options(joinedload(ChatMessage.patient), joinedload(ChatMessage.worker))
            .filter(ChatMessage.appointment_id == appointment_id)
            .order_by(ChatMessage.sent_at, ChatMessage.id)
            .offset(offset)
            .limit(limit)
            .all()
        )

    @staticmethod
    def create_message(db: Session, **message_data) -> ChatMessage:
        message = ChatMessage(**message_data)
        db.add(message)
        db.commit()
        db.refresh(message)
        return message

    @staticmethod
    def mark_read(db: Session, message: ChatMessage, read_at: datetime) -> ChatMessage:
        message.read_at = read_at
        db.commit()
        db.refresh(message)
        return message

    @staticmethod
    def count_unread_for_patient(db: Session, patient_id: int) -> int:
        """Unread staff messages on the patient's own appointments"""
        return (
            db.query(ChatMessage)
            .join(Appointment, ChatMessage.appointment_id == Appointment.id)
            .filter(
                Appointment.patient_id == patient_id,
                ChatMessage.worker_id.isnot(None),
                ChatMessage.read_at.is_(None),
            )
            .count()
        )

    @staticmethod
    def count_unread_for_worker(db: Session, doctor_id: Optional[int] = None) -> int:
        """Unread patient messages; limited to one doctor's appointments when doctor_id is given"""
        query = (
            db.query(ChatMessage)
            .join(Appointment, ChatMessage.appointment_id == Appointment.id)
            .filter(ChatMessage.patient_id.isnot(None), ChatMessage.read_at.is_(None))
        )
        if doctor_id is not None:
            query = query.filter(Appointment.assigned_worker_id == doctor_id)
        return query.count()
