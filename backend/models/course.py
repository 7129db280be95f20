"""Course and lesson model definitions."""

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from backend.database import Base
from backend.models.user import utcnow


class Course(Base):
    """A course owned by an instructor."""
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    instructor_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    thumbnail = Column(String, default="")
    price = Column(Float, default=0)
    published = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    lessons = relationship(
        "Lesson",
        back_populates="course",
        cascade="all, delete-orphan",
        order_by="Lesson.order",
    )


class Lesson(Base):
    """A single lesson within a course."""
    __tablename__ = "lessons"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), index=True, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text)
    video_url = Column(String, nullable=False)
    duration = Column(Integer, default=0)  # seconds
    order = Column(Integer, nullable=False)

    course = relationship("Course", back_populates="lessons")
