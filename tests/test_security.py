"""Tests for JWT helpers."""

from datetime import timedelta

import jwt

from ledger_match.config import settings
from ledger_match.security import create_access_token, decode_access_token


def test_round_trip_preserves_subject() -> None:
    token = create_access_token(data={"sub": "user-1"})
    payload = decode_access_token(token)
    assert payload["sub"] == "user-1"
    assert "exp" in payload


def test_expired_token_is_rejected() -> None:
    token = create_access_token(data={"sub": "user-1"}, expires_delta=timedelta(seconds=-5))
    assert decode_access_token(token) is None


def test_token_signed_with_other_key_is_rejected() -> None:
    token = jwt.encode({"sub": "user-1"}, "a-different-signing-secret-of-sufficient-length", algorithm=settings.jwt_algorithm)
    assert decode_access_token(token) is None


def test_input_is_not_mutated() -> None:
    data = {"sub": "user-1"}
    create_access_token(data=data)
    assert data == {"sub": "user-1"}
