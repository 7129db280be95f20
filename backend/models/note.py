"""Note model definitions."""

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, Text

from backend.database import Base
from backend.models.user import utcnow


class Note(Base):
    """A student's note pinned to a point in a lesson video."""
    __tablename__ = "notes"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    lesson_id = Column(Integer, ForeignKey("lessons.id", ondelete="CASCADE"), index=True, nullable=False)
    content = Column(Text, nullable=False)
    timestamp = Column(Float, nullable=False)  # video time in seconds
    created_at = Column(DateTime(timezone=True), default=utcnow)
