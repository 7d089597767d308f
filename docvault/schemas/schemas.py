"""Pydantic schemas for records, service inputs/outputs and API serialization."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from docvault.services.classifier import Category


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"


# ---- Files ----
class NewFileRecord(BaseModel):
    """A metadata row about to be inserted. ``id`` and timestamps come from the store."""
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    storage_path: str = Field(..., min_length=1)
    category: Category
    size_bytes: int = Field(..., ge=0)
    owner_id: Optional[str] = None


class FileRecord(BaseModel):
    """A stored file record. ``signed_url`` is only ever set on in-memory copies."""
    id: str
    name: str
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    storage_path: str
    category: Category
    size_bytes: int = Field(..., ge=0)
    owner_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    signed_url: Optional[str] = None

    class Config:
        from_attributes = True


class FileUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class UploadItem(BaseModel):
    """One file of an upload batch."""
    data: bytes
    declared_type: Optional[str] = None
    file_name: str
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, v: List[str]) -> List[str]:
        return [t.strip() for t in v if t and t.strip()]


class UploadStatus(str, Enum):
    STORED = "stored"
    INVALID = "invalid"
    BLOB_FAILED = "blob_failed"
    METADATA_FAILED = "metadata_failed"


class UploadOutcome(BaseModel):
    """What happened to one file of a batch."""
    file_name: str
    status: UploadStatus
    record: Optional[FileRecord] = None
    storage_path: Optional[str] = None
    error: Optional[str] = None

    @property
    def orphaned_blob(self) -> bool:
        """The blob was written but no row references it."""
        return self.status == UploadStatus.METADATA_FAILED


class UploadBatchResult(BaseModel):
    outcomes: List[UploadOutcome]
    refreshed: Optional[List[FileRecord]] = None
    refresh_error: Optional[str] = None

    @property
    def stored(self) -> List[FileRecord]:
        return [o.record for o in self.outcomes if o.status == UploadStatus.STORED and o.record]

    @property
    def failed(self) -> List[UploadOutcome]:
        return [o for o in self.outcomes if o.status != UploadStatus.STORED]


class AccessLink(BaseModel):
    url: str
    file_name: str
    expires_at: datetime


# ---- Profiles ----
class Profile(BaseModel):
    id: str
    email: str
    display_name: str
    role: Role = Role.USER
    created_at: datetime

    class Config:
        from_attributes = True


class NewProfile(BaseModel):
    id: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    display_name: str = Field(..., min_length=1)
    role: Role = Role.USER


class ProfileUpdate(BaseModel):
    display_name: Optional[str] = None
    role: Optional[Role] = None


class AccountCreate(BaseModel):
    email: str
    password: str
    display_name: str
    role: Role = Role.USER


class PendingAccount(BaseModel):
    """Returned by provisioning; the identity service still awaits email confirmation."""
    id: Optional[str] = None
    email: str
    confirmation_sent: bool = True


class SessionTokens(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    user: Optional[Dict[str, Any]] = None


class MessageResponse(BaseModel):
    message: str
