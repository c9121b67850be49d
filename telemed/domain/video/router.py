"""Video sessions router - Consultation rooms backed by Cloudflare Calls"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import AuthUser, get_current_user, require_worker
from ...database import get_db
from .schemas import CreateSessionRequest, EndSessionRequest, SessionTokenResponse
from .service import VideoSessionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/video-sessions", tags=["Video Sessions"])


def get_video_service(db: Session = Depends(get_db)) -> VideoSessionService:
    """Dependency injection for VideoSessionService"""
    return VideoSessionService(db)


@router.post("/create", response_model=SessionTokenResponse)
async def create_session(
    data: CreateSessionRequest,
    current_user: AuthUser = Depends(get_current_user),
    service: VideoSessionService = Depends(get_video_service),
):
    """Create a session for an appointment, or join the one already open"""
    logger.info(f"📥 Video session requested for appointment {data.appointmentId} by {current_user.user_type}")
    return await service.create_session(data.appointmentId, current_user)


@router.post("/{session_id}/join", response_model=SessionTokenResponse)
async def join_session(
    session_id: str,
    current_user: AuthUser = Depends(get_current_user),
    service: VideoSessionService = Depends(get_video_service),
):
    return await service.join_session(session_id, current_user)


@router.post("/{session_id}/leave")
async def leave_session(
    session_id: str,
    current_user: AuthUser = Depends(get_current_user),
    service: VideoSessionService = Depends(get_video_service),
):
    return service.leave_session(session_id, current_user)


@router.post("/{session_id}/end")
async def end_session(
    session_id: str,
    data: EndSessionRequest = EndSessionRequest(),
    current_user: AuthUser = Depends(require_worker),
    service: VideoSessionService = Depends(get_video_service),
):
    return service.end_session(session_id, current_user, data)


@router.get("/{session_id}")
async def get_session(
    session_id: str,
    current_user: AuthUser = Depends(get_current_user),
    service: VideoSessionService = Depends(get_video_service),
):
    return service.get_session(session_id, current_user)
