"""Unit tests for core/security.py -- password hashing and JWT issuing."""

from datetime import timedelta

import jwt
import pytest

from core.config import settings
from core.exceptions import InvalidTokenError
from core.security import (
    ACCESS,
    REFRESH,
    hash_password,
    issue_access_token,
    issue_refresh_token,
    verify,
    verify_password,
)


class TestPasswordHashing:
    def test_hash_verifies(self):
        stored = hash_password("correct horse")
        assert stored.startswith("$pbkdf2-sha256$")
        assert verify_password("correct horse", stored)
        assert not verify_password("wrong horse", stored)

    def test_salted(self):
        assert hash_password("same") != hash_password("same")


class TestTokens:
    def test_access_token_round_trip(self):
        token = issue_access_token(42)
        assert verify(token, settings.jwt_secret, ACCESS) == 42

    def test_claims(self):
        payload = jwt.decode(issue_refresh_token(7), settings.jwt_refresh_secret, algorithms=["HS256"])
        assert payload["id"] == 7
        assert payload["type"] == REFRESH
        assert payload["exp"] - payload["iat"] == settings.refresh_token_expire_days * 86400

    def test_default_access_lifetime(self):
        payload = jwt.decode(issue_access_token(7), settings.jwt_secret, algorithms=["HS256"])
        assert payload["exp"] - payload["iat"] == settings.access_token_expire_minutes * 60

    def test_refresh_token_rejected_as_access(self):
        with pytest.raises(InvalidTokenError):
            verify(issue_refresh_token(1), settings.jwt_secret, ACCESS)

    def test_access_token_rejected_as_refresh(self):
        with pytest.raises(InvalidTokenError):
            verify(issue_access_token(1), settings.jwt_refresh_secret, REFRESH)

    def test_expired(self):
        token = issue_access_token(1, expires_delta=timedelta(seconds=-1))
        with pytest.raises(InvalidTokenError):
            verify(token, settings.jwt_secret, ACCESS)

    def test_garbage(self):
        with pytest.raises(InvalidTokenError):
            verify("not.a.jwt", settings.jwt_secret, ACCESS)
