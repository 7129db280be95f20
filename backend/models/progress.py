"""Lesson progress model definitions."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, UniqueConstraint

from backend.database import Base
from backend.models.user import utcnow


class Progress(Base):
    """Tracks how far a student got through a lesson."""
    __tablename__ = "progress"
    __table_args__ = (UniqueConstraint("user_id", "lesson_id", name="uq_progress_user_lesson"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), index=True, nullable=False)
    lesson_id = Column(Integer, ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False)
    completed = Column(Boolean, default=False)
    watched_seconds = Column(Integer, default=0)
    last_watched = Column(DateTime(timezone=True), default=utcnow)
