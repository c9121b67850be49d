"""Chat router - Messages attached to an appointment"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import AuthUser, get_current_user
from ...database import get_db
from .schemas import MessageCreate
from .service import ChatService

router = APIRouter(prefix="/api/chat", tags=["Chat"])


def get_chat_service(db: Session = Depends(get_db)) -> ChatService:
    """Dependency injection for ChatService"""
    return ChatService(db)


@router.get("/appointments/{appointment_id}/messages")
async def get_messages(
    appointment_id: int,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    current_user: AuthUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    """Messages in ascending send order"""
    return service.get_messages(appointment_id, current_user, limit, offset)


@router.post("/appointments/{appointment_id}/messages", status_code=201)
async def send_message(
    appointment_id: int,
    data: MessageCreate,
    current_user: AuthUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    return service.send_message(appointment_id, current_user, data)


@router.put("/messages/{message_id}/read")
async def mark_message_read(
    message_id: int,
    current_user: AuthUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    return service.mark_read(message_id, current_user)


@router.get("/unread-count")
async def get_unread_count(
    current_user: AuthUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    return service.unread_count(current_user)
