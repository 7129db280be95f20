from sqlalchemy.orm import Session

from backend.auth.passwords import verify_password
from backend.core.errors import AuthenticationFailure
from backend.models.user import User

INVALID_CREDENTIALS = "Invalid email or password"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def get_user_by_email(db: Session, email: str) -> User | None:
    normalized = normalize_email(email)
    if not normalized:
        return None
    return db.query(User).filter(User.email == normalized).first()


def verify_credentials(db: Session, email: str, password: str) -> User:
    """Return the user owning these credentials.

    An unknown email and a wrong password raise the same
    ``AuthenticationFailure`` so callers cannot tell them apart.
    """
    user = get_user_by_email(db, email)
    stored_hash = user.hashed_password if user is not None else None
    if not verify_password(password, stored_hash) or user is None:
        raise AuthenticationFailure(INVALID_CREDENTIALS)
    return user
