"""User model definitions."""

from sqlalchemy import Boolean, Column, Integer, String
from backend.database import Base

ROLES = ('student', 'instructor', 'admin')


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column("password", String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default='student')  # student/instructor/admin
    verified = Column(Boolean, nullable=False, default=False)
    verification_token = Column(String(64), unique=True, index=True, nullable=True)
