"""
Cloudflare Calls client - Creates realtime media sessions for video consults

Until the Calls app is provisioned the client runs in mock mode and issues a
base64 JSON token instead of calling the API.
"""

import asyncio
import base64
import json
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import httpx

from ...config import CALLS_MOCK_MODE, CF_CALLS_APP_ID, CF_CALLS_APP_SECRET

logger = logging.getLogger(__name__)

TOKEN_TTL_SECONDS = 3600


class CallsClientError(Exception):
    """Raised when the Calls API cannot create a session"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CloudflareCallsClient:
    """Client for the Cloudflare Calls API with linear-backoff retries"""

    BASE_URL = "https://rtc.live.cloudflare.com/v1"

    def __init__(
        self,
        app_id: Optional[str] = None,
        app_secret: Optional[str] = None,
        mock_mode: Optional[bool] = None,
        max_retries: int = 3,
        retry_delay: float = 1.0,
    ):
        self.app_id = app_id if app_id is not None else CF_CALLS_APP_ID
        self.app_secret = app_secret if app_secret is not None else CF_CALLS_APP_SECRET
        self.mock_mode = CALLS_MOCK_MODE if mock_mode is None else mock_mode
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    @staticmethod
    def _mock_session(session_id: str) -> dict[str, Any]:
        expires_ms = int(time.time() * 1000) + TOKEN_TTL_SECONDS * 1000
        payload = {"sessionId": session_id, "exp": expires_ms, "iss": "cloudflare-calls-mock"}
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=TOKEN_TTL_SECONDS)
        return {
            "sessionId": session_id,
            "token": base64.b64encode(json.dumps(payload).encode()).decode(),
            "expiresAt": expires_at.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        }

    async def _post_session(self, session_id: str) -> dict[str, Any]:
        url = f"{self.BASE_URL}/apps/{self.app_id}/sessions/new"
        async with httpx.AsyncClient() as client:
            response = await client.post(
                url,
                headers={"Authorization": f"Bearer {self.app_secret}", "Content-Type": "application/json"},
                json={"sessionId": session_id},
                timeout=10.0,
            )
        if response.status_code >= 400:
            raise CallsClientError(
                f"Failed to create session: {response.status_code} {response.text}",
                status_code=response.status_code,
            )
        data = response.json()
        return {
            "sessionId": data.get("sessionId", session_id),
            "token": data.get("token", ""),
            "expiresAt": data.get("expiresAt"),
        }

    async def create_session(self, session_id: str) -> dict[str, Any]:
        """
        Create a Calls session.

        Returns {sessionId, token, expiresAt}. Client errors (4xx) fail
        immediately; other failures are retried with linear backoff.
        """
        if self.mock_mode:
            logger.info(f"🎭 Calls mock mode: issuing mock token for {session_id}")
            return self._mock_session(session_id)

        if not self.app_id or not self.app_secret:
            raise CallsClientError("Cloudflare Calls configuration missing (CF_CALLS_APP_ID / CF_CALLS_APP_SECRET)")

        last_error: Optional[Exception] = None
        for attempt in range(self.max_retries):
            try:
                return await self._post_session(session_id)
            except CallsClientError as e:
                if e.status_code is not None and 400 <= e.status_code < 500:
                    logger.error(f"❌ Calls API rejected session {session_id}: {e}")
                    raise
                last_error = e
            except httpx.HTTPError as e:
                last_error = e

            logger.warning(f"⚠️ Calls create_session attempt {attempt + 1}/{self.max_retries} failed: {last_error}")
            if attempt < self.max_retries - 1:
                await asyncio.sleep(self.retry_delay * (attempt + 1))

        raise CallsClientError(f"Create session failed after {self.max_retries} attempts: {last_error}")
