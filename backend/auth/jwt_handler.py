import uuid
from datetime import datetime, timedelta, timezone

import jwt

from backend.core.config import Settings

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def _encode(claims: dict, secret: str, algorithm: str, ttl_seconds: int, now: datetime | None) -> str:
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        **claims,
        "jti": uuid.uuid4().hex,
        "iat": issued_at,
        "exp": issued_at + timedelta(seconds=ttl_seconds),
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def _decode(token: str, secret: str, algorithm: str, expected_type: str) -> dict:
    payload = jwt.decode(
        token,
        secret,
        algorithms=[algorithm],
        options={"require": ["exp", "iat", "sub"]},
    )
    if payload.get("type") != expected_type:
        raise jwt.InvalidTokenError(f"expected a {expected_type} token")
    return payload


def create_access_token(user_id: int, role: str, settings: Settings, now: datetime | None = None) -> str:
    return _encode(
        {"sub": str(user_id), "role": role, "type": ACCESS_TOKEN_TYPE},
        settings.access_token_secret,
        settings.jwt_algorithm,
        settings.access_token_ttl_seconds,
        now,
    )


def create_refresh_token(user_id: int, settings: Settings, now: datetime | None = None) -> str:
    return _encode(
        {"sub": str(user_id), "type": REFRESH_TOKEN_TYPE},
        settings.refresh_token_secret,
        settings.jwt_algorithm,
        settings.refresh_token_ttl_seconds,
        now,
    )


def decode_access_token(token: str, settings: Settings) -> dict:
    return _decode(token, settings.access_token_secret, settings.jwt_algorithm, ACCESS_TOKEN_TYPE)


def decode_refresh_token(token: str, settings: Settings) -> dict:
    return _decode(token, settings.refresh_token_secret, settings.jwt_algorithm, REFRESH_TOKEN_TYPE)
