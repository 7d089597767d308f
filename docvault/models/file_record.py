"""Metadata rows for blobs stored in the documents bucket."""

import uuid

from sqlalchemy import JSON, BigInteger, Column, DateTime, String, Text, func

from docvault.db.base import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class FileRow(Base):
    """One row per uploaded document. The blob lives at ``storage_path``."""
    __tablename__ = "files"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    storage_path = Column(String(512), nullable=False, unique=True)
    category = Column(String(20), nullable=False, index=True)  # see services.classifier.Category
    size_bytes = Column(BigInteger, nullable=False, default=0)
    owner_id = Column(String(36), nullable=True, index=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)
