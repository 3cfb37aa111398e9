"""Tests for caller access tokens."""

from datetime import timedelta

from jose import jwt

from abacgate.core.abac.permissions import Caller
from abacgate.core.config import Settings
from abacgate.core.security import create_access_token, decode_access_token


def make_settings(**overrides):
    return Settings(_env_file=None, secret_key="test-secret", **overrides)


class TestAccessTokens:
    """Test token creation and decoding."""

    def test_round_trip(self):
        """Test a token decodes to the caller it was made for."""
        settings = make_settings()
        token = create_access_token("42", ["MANAGER", "USER"], settings)

        assert decode_access_token(token, settings) == Caller(id="42", roles=("MANAGER", "USER"))

    def test_expired_token(self):
        """Test expired tokens yield no caller."""
        settings = make_settings()
        token = create_access_token("42", ["USER"], settings, expires_delta=timedelta(seconds=-5))

        assert decode_access_token(token, settings) is None

    def test_wrong_secret(self):
        """Test tokens signed with another key are rejected."""
        token = create_access_token("42", ["USER"], make_settings())
        other = Settings(_env_file=None, secret_key="other-secret")

        assert decode_access_token(token, other) is None

    def test_garbage_token(self):
        """Test malformed tokens are rejected."""
        assert decode_access_token("not-a-token", make_settings()) is None

    def test_token_without_subject(self):
        """Test tokens missing a subject are rejected."""
        settings = make_settings()
        token = jwt.encode({"roles": ["ADMIN"]}, settings.secret_key, algorithm=settings.algorithm)

        assert decode_access_token(token, settings) is None

    def test_non_access_token(self):
        """Test tokens of another type are rejected."""
        settings = make_settings()
        token = jwt.encode(
            {"sub": "1", "roles": ["ADMIN"], "type": "refresh"},
            settings.secret_key,
            algorithm=settings.algorithm,
        )

        assert decode_access_token(token, settings) is None

    def test_single_role_string_claim(self):
        """Test a token whose roles claim is a plain string."""
        settings = make_settings()
        token = jwt.encode(
            {"sub": "7", "roles": "MANAGER", "type": "access"},
            settings.secret_key,
            algorithm=settings.algorithm,
        )

        assert decode_access_token(token, settings) == Caller(id="7", roles=("MANAGER",))


class TestSettings:
    """Test application settings."""

    def test_defaults(self):
        """Test default settings."""
        settings = Settings(_env_file=None)
        assert settings.policy_file is None
        assert settings.database_url is None
        assert settings.single_record_fallback == "original"

    def test_environment_overrides(self, monkeypatch):
        """Test settings read prefixed environment variables."""
        monkeypatch.setenv("ABACGATE_API_PREFIX", "/api")
        monkeypatch.setenv("ABACGATE_SINGLE_RECORD_FALLBACK", "empty")
        settings = Settings(_env_file=None)
        assert settings.api_prefix == "/api"
        assert settings.single_record_fallback == "empty"
