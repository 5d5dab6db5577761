"""
Tests for password/API key hashing and access tokens
"""
import uuid
from datetime import timedelta
from types import SimpleNamespace

import pytest

from receipt_api.config import settings
from receipt_api.core import security, tokens
from receipt_api.core.errors import AuthenticationError, ConfigurationError
from receipt_api.database import utcnow


@pytest.fixture
def token_user():
    return SimpleNamespace(id=uuid.uuid4(), email="alice@example.com", phone_number="+15551234567")


def _replace_char(value: str, index: int) -> str:
    replacement = "A" if value[index] != "A" else "B"
    return value[:index] + replacement + value[index + 1:]


@pytest.mark.unit
class TestPasswordHashing:
    """Test bcrypt hashing"""

    def test_hash_and_verify(self):
        hashed = security.get_password_hash("correct horse")

        assert hashed != "correct horse"
        assert hashed.startswith("$2")
        assert security.verify_password("correct horse", hashed)
        assert not security.verify_password("wrong horse", hashed)

    def test_hashes_are_salted(self):
        assert security.get_password_hash("same") != security.get_password_hash("same")

    def test_rounds_from_settings(self):
        hashed = security.get_password_hash("pw")

        assert hashed.split("$")[2] == f"{settings.BCRYPT_ROUNDS:02d}"

    def test_malformed_hash_is_a_mismatch(self):
        assert security.verify_password("pw", "not-a-bcrypt-hash") is False
        assert security.verify_password("pw", "") is False

    def test_generate_api_key(self):
        first = security.generate_api_key()
        second = security.generate_api_key()

        assert first.startswith(settings.API_KEY_PREFIX)
        assert len(first) == len(settings.API_KEY_PREFIX) + 32
        assert first != second


@pytest.mark.unit
class TestTokens:
    """Test token issuing and verification"""

    def test_round_trip_claims(self, token_user):
        claims = tokens.verify_token(tokens.issue_token(token_user))

        assert claims.sub == token_user.id
        assert claims.email == token_user.email
        assert claims.phone_number == token_user.phone_number

    def test_expires_after_seven_days(self, token_user):
        now = utcnow().replace(microsecond=0)
        claims = tokens.verify_token(tokens.issue_token(token_user, now=now))

        assert claims.exp == now + timedelta(days=7)

    def test_expired_token_rejected(self, token_user):
        issued = utcnow() - timedelta(days=7, seconds=1)
        token = tokens.issue_token(token_user, now=issued)

        with pytest.raises(AuthenticationError):
            tokens.verify_token(token)

    @pytest.mark.parametrize("segment", [0, 1, 2])
    def test_tampered_token_rejected(self, token_user, segment):
        parts = tokens.issue_token(token_user).split(".")
        # Avoid the last signature character, whose low bits are padding
        index = 0 if segment == 2 else len(parts[segment]) // 2
        parts[segment] = _replace_char(parts[segment], index)

        with pytest.raises(AuthenticationError):
            tokens.verify_token(".".join(parts))

    def test_token_signed_with_other_secret_rejected(self, token_user, monkeypatch):
        token = tokens.issue_token(token_user)
        monkeypatch.setattr(settings, "JWT_SECRET", "a-different-secret")

        with pytest.raises(AuthenticationError):
            tokens.verify_token(token)

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
    def test_malformed_token_rejected(self, token):
        with pytest.raises(AuthenticationError):
            tokens.verify_token(token)


@pytest.mark.unit
class TestSigningSecret:
    """Test secret resolution per environment"""

    def test_configured_secret_used(self):
        assert tokens.get_signing_secret() == settings.JWT_SECRET

    def test_missing_secret_fails_outside_development(self, monkeypatch):
        monkeypatch.setattr(settings, "JWT_SECRET", None)
        monkeypatch.setattr(settings, "ENVIRONMENT", "production")

        with pytest.raises(ConfigurationError):
            tokens.get_signing_secret()

    def test_missing_secret_in_development_uses_fallback(self, monkeypatch):
        monkeypatch.setattr(settings, "JWT_SECRET", None)
        monkeypatch.setattr(settings, "ENVIRONMENT", "development")

        assert tokens.get_signing_secret() == tokens.DEV_FALLBACK_SECRET
