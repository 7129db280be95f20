"""User model definitions."""

import enum
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from backend.database import Base


class Role(str, enum.Enum):
    student = "student"
    instructor = "instructor"
    admin = "admin"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False, default=Role.student.value)  # student/instructor/admin
    created_at = Column(DateTime(timezone=True), default=utcnow)

    enrollments = relationship("Enrollment", back_populates="user", cascade="all, delete-orphan")
