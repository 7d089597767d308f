"""Local account row mirrored from the identity service."""

from sqlalchemy import Column, DateTime, String, func

from docvault.db.base import Base


class ProfileRow(Base):
    """Account profile. ``role`` is the sole authorization axis (admin | user)."""
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True)  # identity service user id
    email = Column(String(255), unique=True, nullable=False, index=True)
    display_name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="user")
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
