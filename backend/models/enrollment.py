"""Enrollment model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from backend.database import Base
from backend.models.user import utcnow


class Enrollment(Base):
    """Links a student to a course."""
    __tablename__ = "enrollments"
    __table_args__ = (UniqueConstraint("user_id", "course_id", name="uq_enrollment_user_course"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), index=True, nullable=False)
    enrolled_at = Column(DateTime(timezone=True), default=utcnow)

    user = relationship("User", back_populates="enrollments")
    course = relationship("Course")
