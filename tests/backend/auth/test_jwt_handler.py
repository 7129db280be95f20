from datetime import datetime, timedelta, timezone

import jwt
import pytest

from backend.auth import jwt_handler
from backend.core.config import Settings

SETTINGS = Settings(access_token_secret='access-secret', refresh_token_secret='refresh-secret')


def test_access_token_carries_user_id_role_and_fifteen_minute_expiry() -> None:
    token = jwt_handler.create_access_token(7, 'instructor', SETTINGS)

    payload = jwt_handler.decode_access_token(token, SETTINGS)

    assert payload['sub'] == '7'
    assert payload['role'] == 'instructor'
    assert payload['type'] == 'access'
    assert payload['exp'] - payload['iat'] == 900


def test_refresh_token_carries_user_id_and_seven_day_expiry() -> None:
    token = jwt_handler.create_refresh_token(7, SETTINGS)

    payload = jwt_handler.decode_refresh_token(token, SETTINGS)

    assert payload['sub'] == '7'
    assert 'role' not in payload
    assert payload['exp'] - payload['iat'] == 604800


def test_tokens_are_signed_with_distinct_secrets() -> None:
    access = jwt_handler.create_access_token(1, 'student', SETTINGS)
    refresh = jwt_handler.create_refresh_token(1, SETTINGS)

    with pytest.raises(jwt.InvalidSignatureError):
        jwt_handler.decode_refresh_token(access, SETTINGS)
    with pytest.raises(jwt.InvalidSignatureError):
        jwt_handler.decode_access_token(refresh, SETTINGS)


def test_decode_rejects_token_of_the_wrong_type() -> None:
    same_secret = Settings(access_token_secret='shared', refresh_token_secret='shared')
    refresh = jwt_handler.create_refresh_token(1, same_secret)

    with pytest.raises(jwt.InvalidTokenError):
        jwt_handler.decode_access_token(refresh, same_secret)


def test_tokens_minted_in_the_same_instant_differ() -> None:
    now = datetime.now(timezone.utc)

    first = jwt_handler.create_refresh_token(1, SETTINGS, now=now)
    second = jwt_handler.create_refresh_token(1, SETTINGS, now=now)

    assert first != second


def test_expired_access_token_raises_expired_signature() -> None:
    issued = datetime.now(timezone.utc) - timedelta(minutes=16)
    token = jwt_handler.create_access_token(1, 'student', SETTINGS, now=issued)

    with pytest.raises(jwt.ExpiredSignatureError):
        jwt_handler.decode_access_token(token, SETTINGS)
