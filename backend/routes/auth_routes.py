import logging

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.auth.credentials import get_user_by_email, normalize_email, verify_credentials
from backend.auth.dependencies import (
    ACCESS_TOKEN_COOKIE,
    REFRESH_TOKEN_COOKIE,
    get_current_user,
    get_session_store,
    get_settings,
)
from backend.auth.passwords import hash_password
from backend.auth.rotation import IssuedSession, issue_session, revoke_session, rotate_session
from backend.auth.session_store import SessionStore
from backend.core.config import Settings
from backend.core.errors import ValidationFailure
from backend.database import get_db
from backend.models.user import Role, User

logger = logging.getLogger(__name__)

router = APIRouter(tags=['auth'])

SELF_REGISTER_ROLES = {Role.student, Role.instructor}


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str
    role: Role = Role.student

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required.')
        return normalized

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = normalize_email(value)
        local, _, domain = normalized.partition('@')
        if not local or not domain:
            raise ValueError('A valid email address is required.')
        return normalized

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if not value:
            raise ValueError('Password is required.')
        return value

    @field_validator('role')
    @classmethod
    def validate_role(cls, value: Role) -> Role:
        if value not in SELF_REGISTER_ROLES:
            raise ValueError('Only student and instructor accounts can be registered.')
        return value


class LoginRequest(BaseModel):
    email: str
    password: str


class UserSummary(BaseModel):
    id: int
    name: str
    email: str
    role: Role

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    accessToken: str
    user: UserSummary


class RefreshResponse(BaseModel):
    accessToken: str
    message: str = 'Tokens refreshed'


def set_session_cookies(response: Response, session: IssuedSession, settings: Settings) -> None:
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        session.access_token,
        max_age=settings.access_token_ttl_seconds,
        httponly=True,
        samesite='strict',
        secure=settings.cookie_secure,
        path='/',
    )
    response.set_cookie(
        REFRESH_TOKEN_COOKIE,
        session.refresh_token,
        max_age=settings.refresh_token_ttl_seconds,
        httponly=True,
        samesite='strict',
        secure=settings.cookie_secure,
        path='/',
    )


def clear_session_cookies(response: Response, settings: Settings) -> None:
    for cookie_name in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE):
        response.delete_cookie(
            cookie_name,
            path='/',
            httponly=True,
            samesite='strict',
            secure=settings.cookie_secure,
        )


@router.post('/register', response_model=UserSummary, status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    response: Response,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_settings),
):
    if get_user_by_email(db, data.email) is not None:
        raise ValidationFailure('User already exists')

    user = User(
        name=data.name,
        email=data.email,
        hashed_password=hash_password(data.password),
        role=data.role.value,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationFailure('User already exists') from exc
    db.refresh(user)

    session = issue_session(user, store, settings)
    set_session_cookies(response, session, settings)
    logger.info('Registered user %s with role %s', user.id, user.role)
    return user


@router.post('/login', response_model=LoginResponse)
def login(
    data: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_settings),
):
    user = verify_credentials(db, data.email, data.password)

    session = issue_session(user, store, settings)
    set_session_cookies(response, session, settings)
    logger.info('User %s logged in', user.id)
    return {'accessToken': session.access_token, 'user': user}


@router.get('/refresh', response_model=RefreshResponse)
def refresh(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_settings),
):
    session = rotate_session(request.cookies.get(REFRESH_TOKEN_COOKIE), db, store, settings)
    set_session_cookies(response, session, settings)
    return {'accessToken': session.access_token}


@router.post('/logout')
def logout(
    request: Request,
    store: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_settings),
):
    refresh_token = request.cookies.get(REFRESH_TOKEN_COOKIE)
    if not refresh_token:
        response = Response(status_code=status.HTTP_204_NO_CONTENT)
        clear_session_cookies(response, settings)
        return response

    if revoke_session(refresh_token, store):
        logger.info('Revoked refresh token on logout')

    response = JSONResponse({'message': 'Logged out successfully'})
    clear_session_cookies(response, settings)
    return response


@router.get('/me', response_model=UserSummary)
def me(current_user: User = Depends(get_current_user)):
    return current_user
