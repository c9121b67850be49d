"""Unit tests for password, token and sanitization helpers."""

from datetime import timedelta

import pytest

from telemed.security_utils import (
    create_access_token,
    create_refresh_token,
    extract_token_from_header,
    generate_password_reset_token,
    generate_random_password,
    hash_password,
    sanitize_text,
    validate_password_strength,
    verify_jwt_token,
    verify_password,
    verify_password_reset_token,
    verify_refresh_token,
)


class TestPasswordHashing:
    """Tests for bcrypt password hashing."""

    def test_hash_password_returns_bcrypt_hash(self) -> None:
        """Test that hashing returns a bcrypt hash string."""
        hashed = hash_password("Str0ng!Passw0rd")

        assert hashed.startswith("$2b$")
        assert len(hashed) == 60

    def test_verify_correct_and_incorrect_password(self) -> None:
        """Test verification against the stored hash."""
        hashed = hash_password("Str0ng!Passw0rd")

        assert verify_password("Str0ng!Passw0rd", hashed) is True
        assert verify_password("wrong-password", hashed) is False

    def test_verify_empty_or_invalid_hash_returns_false(self) -> None:
        """Test that empty inputs and malformed hashes fail closed."""
        assert verify_password("", "anything") is False
        assert verify_password("password", "") is False
        assert verify_password("password", "not_a_valid_bcrypt_hash") is False

    def test_short_password_raises(self) -> None:
        """Test that hashing a too-short password raises ValueError."""
        with pytest.raises(ValueError):
            hash_password("short")


class TestPasswordStrength:
    """Tests for password strength scoring."""

    def test_strong_password_is_valid(self) -> None:
        """Test that a long mixed password passes."""
        result = validate_password_strength("Kx9#mQ2!vLp7")

        assert result["isValid"] is True
        assert result["score"] >= 3

    def test_common_pattern_is_penalized(self) -> None:
        """Test that common words reduce the score."""
        result = validate_password_strength("password123")

        assert result["isValid"] is False
        assert "Avoid common words and sequences" in result["feedback"]

    def test_random_password_contains_every_class(self) -> None:
        """Test that generated passwords pass the strength check."""
        password = generate_random_password(16)

        assert len(password) == 16
        assert validate_password_strength(password)["isValid"] is True


class TestJwtTokens:
    """Tests for access and refresh tokens."""

    def test_access_token_round_trip(self) -> None:
        """Test that access token claims survive encoding."""
        token = create_access_token(7, "dr@example.com", "worker", "doctor")
        payload = verify_jwt_token(token)

        assert payload["id"] == 7
        assert payload["userType"] == "worker"
        assert payload["role"] == "doctor"
        assert payload["sub"] == "7"

    def test_patient_token_has_no_role(self) -> None:
        """Test that patient tokens omit the role claim."""
        payload = verify_jwt_token(create_access_token(3, "p@example.com", "patient"))

        assert "role" not in payload

    def test_expired_token_is_rejected(self) -> None:
        """Test that an expired token fails verification."""
        token = create_access_token(1, "p@example.com", "patient", expires_delta=timedelta(seconds=-1))

        assert verify_jwt_token(token) is None

    def test_refresh_token_is_distinguished(self) -> None:
        """Test that only refresh tokens pass refresh verification."""
        refresh = create_refresh_token(1, "patient")
        access = create_access_token(1, "p@example.com", "patient")

        assert verify_refresh_token(refresh)["type"] == "refresh"
        assert verify_refresh_token(access) is None

    def test_tampered_token_is_rejected(self) -> None:
        """Test that a modified signature fails verification."""
        token = create_access_token(1, "p@example.com", "patient")

        assert verify_jwt_token(token[:-2] + "xx") is None

    def test_extract_token_from_header(self) -> None:
        """Test bearer header parsing."""
        assert extract_token_from_header("Bearer abc.def.ghi") == "abc.def.ghi"
        assert extract_token_from_header("Basic abc") is None
        assert extract_token_from_header(None) is None


class TestPasswordResetTokens:
    """Tests for itsdangerous password reset tokens."""

    def test_reset_token_round_trip(self) -> None:
        """Test that reset tokens decode to the issuing account."""
        token = generate_password_reset_token(5, "worker")

        assert verify_password_reset_token(token) == {"id": 5, "userType": "worker"}

    def test_expired_reset_token(self) -> None:
        """Test that max_age is enforced."""
        token = generate_password_reset_token(5, "patient")

        assert verify_password_reset_token(token, max_age=-1) is None

    def test_bad_signature(self) -> None:
        """Test that garbage tokens are rejected."""
        assert verify_password_reset_token("not-a-token") is None


class TestSanitizeText:
    """Tests for bleach-based sanitization."""

    def test_strips_markup_but_keeps_text(self) -> None:
        """Test that tags are removed and inner text kept."""
        assert sanitize_text("<b>Fever</b> since <i>Monday</i>") == "Fever since Monday"

    def test_plain_text_unchanged(self) -> None:
        """Test that plain text passes through."""
        assert sanitize_text("  Cough for three days  ") == "Cough for three days"
