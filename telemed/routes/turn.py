"""
Cloudflare TURN credentials for WebRTC ICE negotiation
"""

import logging

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..auth import AuthUser, get_current_user
from ..config import CF_TURN_API_TOKEN, CF_TURN_TOKEN_ID

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["WebRTC"])

TURN_API_URL = "https://rtc.live.cloudflare.com/v1/turn/keys/{key_id}/credentials/generate-ice-servers"
TURN_CREDENTIAL_TTL = 86400  # 24 hours

STUN_SERVERS = [
    {"urls": "stun:stun.l.google.com:19302"},
    {"urls": "stun:stun.cloudflare.com:3478"},
]


async def fetch_ice_servers(key_id: str, api_token: str) -> list[dict]:
    """Generate short-lived TURN credentials from Cloudflare"""
    async with httpx.AsyncClient() as client:
        response = await client.post(
            TURN_API_URL.format(key_id=key_id),
            headers={"Authorization": f"Bearer {api_token}", "Content-Type": "application/json"},
            json={"ttl": TURN_CREDENTIAL_TTL},
            timeout=10.0,
        )
        response.raise_for_status()
        ice_servers = response.json().get("iceServers", [])

    # The API answers with a single object or a list depending on key type
    if isinstance(ice_servers, dict):
        ice_servers = [ice_servers]
    return ice_servers


@router.get("/turn-credentials")
async def get_turn_credentials(current_user: AuthUser = Depends(get_current_user)):
    if not CF_TURN_TOKEN_ID or not CF_TURN_API_TOKEN:
        logger.warning("⚠️ TURN service not configured - returning STUN servers only")
        return JSONResponse(
            status_code=503,
            content={"error": "TURN service not configured", "iceServers": STUN_SERVERS},
        )

    try:
        ice_servers = await fetch_ice_servers(CF_TURN_TOKEN_ID, CF_TURN_API_TOKEN)
    except httpx.HTTPStatusError as e:
        logger.error(f"❌ TURN API error {e.response.status_code}: {e.response.text[:200]}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to get TURN credentials", "iceServers": STUN_SERVERS},
        )
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"❌ Failed to get TURN credentials: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to get TURN credentials", "iceServers": STUN_SERVERS},
        )

    logger.info(f"✅ Issued TURN credentials for {current_user.user_type} {current_user.id}")
    return {"iceServers": STUN_SERVERS + ice_servers, "ttl": TURN_CREDENTIAL_TTL}
