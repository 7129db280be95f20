from dataclasses import dataclass
from typing import Callable

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from backend.auth import jwt_handler
from backend.auth.session_store import SessionStore, SqlSessionStore
from backend.core.config import Settings
from backend.core.errors import AuthenticationFailure, AuthorizationFailure
from backend.database import get_db
from backend.models.user import Role, User

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """Identity decoded from a verified access token."""

    user_id: int
    role: str


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_store(request: Request, db: Session = Depends(get_db)) -> SessionStore:
    memory_store = getattr(request.app.state, "memory_session_store", None)
    if memory_store is not None:
        return memory_store
    return SqlSessionStore(db)


def get_current_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    settings: Settings = Depends(get_settings),
) -> AuthContext:
    token = None
    if credentials is not None and credentials.credentials:
        token = credentials.credentials
    if not token:
        token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not token:
        raise AuthenticationFailure("Not authorized, no token")

    try:
        payload = jwt_handler.decode_access_token(token, settings)
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationFailure("Not authorized, token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthorizationFailure("Not authorized, token invalid") from exc

    try:
        user_id = int(payload["sub"])
    except (KeyError, ValueError) as exc:
        raise AuthorizationFailure("Not authorized, token invalid") from exc

    role = payload.get("role")
    if role not in {r.value for r in Role}:
        raise AuthorizationFailure("Not authorized, token invalid")

    return AuthContext(user_id=user_id, role=role)


def require_roles(*roles: Role | str) -> Callable[..., AuthContext]:
    allowed = {role.value if isinstance(role, Role) else role for role in roles}

    def check_role(identity: AuthContext = Depends(get_current_identity)) -> AuthContext:
        if identity.role not in allowed:
            raise AuthorizationFailure(f"User role {identity.role} is not authorized to access this route")
        return identity

    return check_role


def get_current_user(
    identity: AuthContext = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> User:
    user = db.get(User, identity.user_id)
    if user is None:
        raise AuthenticationFailure("User not found")
    return user
