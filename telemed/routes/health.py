import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..config import ENVIRONMENT
from ..database import get_db
from ..utils.timezone import to_utc_iso, utc_now

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Health"])


@router.get("/health")
async def api_health(db: Session = Depends(get_db)):
    """Liveness plus a database round trip"""
    try:
        db.execute(text("SELECT 1"))
        database = "connected"
    except Exception as e:
        logger.error(f"❌ Database health check failed: {e}")
        database = "unavailable"

    return {
        "status": "ok",
        "timestamp": to_utc_iso(utc_now()),
        "environment": ENVIRONMENT,
        "database": database,
    }
