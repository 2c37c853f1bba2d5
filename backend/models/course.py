"""Course model definitions."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import relationship
from backend.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Course(Base):
    """Represents a catalog entry that owns lessons."""
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    lessons = relationship(
        "Lesson",
        back_populates="course",
        order_by="[Lesson.created_at, Lesson.id]",
    )
