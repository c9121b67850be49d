"""Tests for the security headers middleware and health endpoints."""

from unittest.mock import MagicMock, patch

import redis
from fastapi.testclient import TestClient

from telemed.security_headers import get_csp_policy, get_permissions_policy


class TestSecurityHeaders:
    """Tests for headers added to API responses."""

    def test_api_responses_carry_headers(self, client: TestClient) -> None:
        """Test the standard header set."""
        response = client.get("/")

        assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["Cache-Control"] == "no-store, no-cache, must-revalidate"
        assert "Strict-Transport-Security" not in response.headers

    def test_health_is_excluded(self, client: TestClient) -> None:
        """Test that health checks skip the headers."""
        response = client.get("/health")

        assert response.json() == {"status": "healthy"}
        assert "X-Frame-Options" not in response.headers

    def test_camera_and_microphone_allowed_for_self(self) -> None:
        """Test that video consultations can use the camera."""
        policy = get_permissions_policy()

        assert "camera=(self)" in policy
        assert "microphone=(self)" in policy
        assert "geolocation=()" in policy

    def test_csp_allows_cloudflare_realtime(self) -> None:
        """Test that the realtime endpoints are reachable."""
        assert "wss://rtc.live.cloudflare.com" in get_csp_policy()


class TestHealth:
    """Tests for health endpoints."""

    def test_api_health_checks_database(self, client: TestClient) -> None:
        """Test the database round trip."""
        response = client.get("/api/health")

        body = response.json()
        assert body["status"] == "ok"
        assert body["database"] == "connected"
        assert body["environment"] == "test"
        assert body["timestamp"].endswith("Z")

    def test_redis_health_reports_failure(self, client: TestClient) -> None:
        """Test that a Redis outage is reported, not raised."""
        failing = MagicMock()
        failing.ping.side_effect = redis.ConnectionError("refused")

        with patch("telemed.rate_limiter.get_redis_client", return_value=failing):
            response = client.get("/health/redis")

        assert response.json()["status"] == "unhealthy"
        assert response.json()["redis"]["connected"] is False

    def test_redis_health_reports_version(self, client: TestClient) -> None:
        """Test the healthy Redis response."""
        healthy = MagicMock()
        healthy.info.return_value = {"redis_version": "7.2.4", "connected_clients": 3}

        with patch("telemed.rate_limiter.get_redis_client", return_value=healthy):
            response = client.get("/health/redis")

        assert response.json()["status"] == "healthy"
        assert response.json()["redis"]["version"] == "7.2.4"
