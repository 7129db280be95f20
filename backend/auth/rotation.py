"""Session issuance, refresh token rotation and revocation."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from sqlalchemy.orm import Session

from backend.auth import jwt_handler
from backend.auth.session_store import SessionStore
from backend.core.config import Settings
from backend.core.errors import AuthenticationFailure, AuthorizationFailure
from backend.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedSession:
    user: User
    access_token: str
    refresh_token: str


def issue_session(user: User, store: SessionStore, settings: Settings) -> IssuedSession:
    issued_at = datetime.now(timezone.utc)
    access_token = jwt_handler.create_access_token(user.id, user.role, settings, now=issued_at)
    refresh_token = jwt_handler.create_refresh_token(user.id, settings, now=issued_at)
    store.save(user.id, refresh_token, issued_at + timedelta(seconds=settings.refresh_token_ttl_seconds))
    return IssuedSession(user=user, access_token=access_token, refresh_token=refresh_token)


def rotate_session(
    refresh_token: str | None,
    db: Session,
    store: SessionStore,
    settings: Settings,
) -> IssuedSession:
    """Exchange a live refresh token for a brand-new token pair.

    The presented token is consumed: its stored record is deleted before the
    replacement is minted, so a second presentation of the same token fails
    the store lookup.

    Raises:
        AuthenticationFailure: no token was presented, or its user is gone.
        AuthorizationFailure: the token is invalid, expired, unknown to the
            store, or stored under a different user.
    """
    if not refresh_token:
        raise AuthenticationFailure("Unauthorized, no refresh token")

    try:
        payload = jwt_handler.decode_refresh_token(refresh_token, settings)
        user_id = int(payload["sub"])
    except (jwt.InvalidTokenError, KeyError, ValueError) as exc:
        logger.warning("Rejected refresh token: %s", exc.__class__.__name__)
        raise AuthorizationFailure("Forbidden, invalid token") from exc

    record = store.find(refresh_token)
    if record is None:
        logger.warning("Refresh token for user %s is not in the session store; possible reuse", user_id)
        raise AuthorizationFailure("Forbidden, token not found")
    if record.user_id != user_id:
        logger.warning(
            "Refresh token owner mismatch: stored user %s, claimed user %s",
            record.user_id,
            user_id,
        )
        raise AuthorizationFailure("Forbidden, invalid token")

    if not store.delete(refresh_token):
        # Another request consumed this token between the lookup and now.
        logger.warning("Refresh token for user %s was already rotated", user_id)
        raise AuthorizationFailure("Forbidden, token not found")

    user = db.get(User, user_id)
    if user is None:
        raise AuthenticationFailure("User not found")

    session = issue_session(user, store, settings)
    logger.info("Rotated session for user %s", user.id)
    return session


def revoke_session(refresh_token: str | None, store: SessionStore) -> bool:
    if not refresh_token:
        return False
    return store.delete(refresh_token)
