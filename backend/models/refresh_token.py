"""Stored refresh token records."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from backend.database import Base
from backend.models.user import utcnow


class RefreshToken(Base):
    """A live refresh token; deleting the row revokes the token."""
    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    token_digest = Column(String(64), unique=True, index=True, nullable=False)
    expires_at = Column(DateTime(timezone=True), index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
