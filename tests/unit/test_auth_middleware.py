"""Tests for auth/middleware/auth_middleware.py"""

import time

import pytest
from fastapi import HTTPException
from jose import jwt

from auth.middleware.auth_middleware import (
    SessionClaims,
    decode_session_token,
    issue_session_token,
    require_sesskey,
)
from config import get_settings
from shared.utils.exceptions import PermissionDeniedException


class TestTokens:

    def test_round_trip(self):
        token = issue_session_token(42, sesskey="abc")
        claims = decode_session_token(token)
        assert claims == SessionClaims(user_id=42, sesskey="abc")

    def test_generated_sesskey(self):
        claims = decode_session_token(issue_session_token(7))
        assert len(claims.sesskey) > 10

    def test_wrong_secret(self):
        token = jwt.encode({"sub": "1", "sesskey": "k"}, "other-secret", algorithm="HS256")
        with pytest.raises(HTTPException) as exc_info:
            decode_session_token(token)
        assert exc_info.value.status_code == 401

    def test_expired(self):
        token = issue_session_token(1, ttl_seconds=-10)
        with pytest.raises(HTTPException):
            decode_session_token(token)

    @pytest.mark.parametrize("claims", [
        {"sesskey": "k"},
        {"sub": "not-a-number", "sesskey": "k"},
        {"sub": "1"},
    ])
    def test_missing_claims(self, claims):
        claims["exp"] = int(time.time()) + 60
        token = jwt.encode(claims, get_settings().session_secret, algorithm="HS256")
        with pytest.raises(HTTPException) as exc_info:
            decode_session_token(token)
        assert exc_info.value.status_code == 401


class TestRequireSesskey:

    def test_matching(self):
        require_sesskey(SessionClaims(user_id=1, sesskey="abc"), "abc")

    @pytest.mark.parametrize("sent", [None, "", "abd"])
    def test_mismatch(self, sent):
        with pytest.raises(PermissionDeniedException):
            require_sesskey(SessionClaims(user_id=1, sesskey="abc"), sent)
