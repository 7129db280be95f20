"""Create an admin account; public registration cannot grant the admin role.

Usage:
    ADMIN_PASSWORD=... python -m backend.create_admin "Admin User" admin@example.com
"""
import getpass
import os
import sys

from sqlalchemy.orm import Session

from backend.auth.credentials import get_user_by_email, normalize_email
from backend.auth.passwords import hash_password
from backend.core.config import load_settings
from backend.database import build_engine, build_session_factory, init_schema
from backend.models.user import Role, User


def create_admin(db: Session, name: str, email: str, password: str) -> User:
    normalized_email = normalize_email(email)
    user = get_user_by_email(db, normalized_email)
    if user is None:
        user = User(name=name.strip(), email=normalized_email)
        db.add(user)
    user.hashed_password = hash_password(password)
    user.role = Role.admin.value
    db.commit()
    db.refresh(user)
    return user


def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 2:
        print(__doc__.strip(), file=sys.stderr)
        sys.exit(2)
    name, email = args

    password = os.getenv("ADMIN_PASSWORD") or getpass.getpass("Admin password: ")
    if not password:
        print("A password is required.", file=sys.stderr)
        sys.exit(1)

    settings = load_settings()
    engine = build_engine(settings.database_url)
    init_schema(engine)
    db = build_session_factory(engine)()
    try:
        user = create_admin(db, name, email, password)
    finally:
        db.close()
    print(f"Admin account ready: {user.email} (id {user.id})")


if __name__ == "__main__":
    main()
