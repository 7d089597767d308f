"""
Shared fixtures for the DocVault test suite.

Provides in-memory stores implementing the metadata/blob contracts, with
failure injection so the orchestrators' partial-failure paths can be driven
deterministically, plus principals and a record factory.
"""

import os

# Settings are read at import time; point them at throwaway backends first.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("IDENTITY_WEBHOOK_SECRET", "hook-secret")

import uuid
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence

import pytest

from docvault.core.exceptions import ConflictError, DocVaultError, NotFoundError, TransportError
from docvault.core.security import Principal
from docvault.schemas.schemas import FileRecord, NewFileRecord, NewProfile, Profile, Role
from docvault.services.classifier import Category
from docvault.stores.base import BlobStoreBase, MetadataStoreBase

EPOCH = datetime(2024, 1, 1, 12, 0, 0)


class FailureInjector:
    """Raise a chosen error from a named operation, optionally only for matching arguments."""

    def __init__(self):
        self._rules: Dict[str, tuple] = {}

    def fail(
        self,
        op: str,
        exc: Optional[DocVaultError] = None,
        when: Optional[Callable[[Any], bool]] = None,
    ) -> None:
        self._rules[op] = (exc or TransportError(f"{op} failed"), when)

    def clear(self, op: Optional[str] = None) -> None:
        if op is None:
            self._rules.clear()
        else:
            self._rules.pop(op, None)

    def check(self, op: str, arg: Any = None) -> None:
        rule = self._rules.get(op)
        if rule is None:
            return
        exc, when = rule
        if when is None or when(arg):
            raise exc


class InMemoryMetadataStore(MetadataStoreBase):
    def __init__(self):
        self.rows: Dict[str, FileRecord] = {}
        self.profiles: Dict[str, Profile] = {}
        self.failures = FailureInjector()
        self.calls: List[str] = []
        self._tick = 0

    def _now(self) -> datetime:
        self._tick += 1
        return EPOCH + timedelta(seconds=self._tick)

    async def insert(self, record: NewFileRecord) -> FileRecord:
        self.calls.append("insert")
        self.failures.check("insert", record)
        if any(r.storage_path == record.storage_path for r in self.rows.values()):
            raise ConflictError(f"Storage path already registered: {record.storage_path}")
        now = self._now()
        stored = FileRecord(id=str(uuid.uuid4()), created_at=now, updated_at=now, **record.model_dump())
        self.rows[stored.id] = stored
        return stored

    async def list_all(self) -> List[FileRecord]:
        self.calls.append("list_all")
        self.failures.check("list_all")
        return sorted(self.rows.values(), key=lambda r: (r.created_at, r.id), reverse=True)

    async def get_by_id(self, record_id: str) -> FileRecord:
        self.failures.check("get_by_id", record_id)
        if record_id not in self.rows:
            raise NotFoundError(f"File {record_id} not found")
        return self.rows[record_id]

    async def update_fields(self, record_id: str, changes: Dict[str, Any]) -> FileRecord:
        self.calls.append("update_fields")
        self.failures.check("update_fields", record_id)
        if record_id not in self.rows:
            raise NotFoundError(f"File {record_id} not found")
        current = self.rows[record_id]
        bumped = max(self._now(), current.updated_at + timedelta(seconds=1))
        updated = current.model_copy(update={**changes, "updated_at": bumped})
        self.rows[record_id] = updated
        return updated

    async def delete_by_id(self, record_id: str) -> None:
        self.calls.append("delete_by_id")
        self.failures.check("delete_by_id", record_id)
        self.rows.pop(record_id, None)

    async def list_profiles(self) -> List[Profile]:
        return sorted(self.profiles.values(), key=lambda p: (p.created_at, p.id), reverse=True)

    async def get_profile(self, profile_id: str) -> Profile:
        if profile_id not in self.profiles:
            raise NotFoundError(f"Profile {profile_id} not found")
        return self.profiles[profile_id]

    async def insert_profile(self, profile: NewProfile) -> Profile:
        if profile.id in self.profiles or any(p.email == profile.email for p in self.profiles.values()):
            raise ConflictError(f"Profile already exists: {profile.email}")
        stored = Profile(created_at=self._now(), **profile.model_dump())
        self.profiles[stored.id] = stored
        return stored

    async def update_profile(self, profile_id: str, changes: Dict[str, Any]) -> Profile:
        if profile_id not in self.profiles:
            raise NotFoundError(f"Profile {profile_id} not found")
        updated = self.profiles[profile_id].model_copy(update=changes)
        self.profiles[profile_id] = updated
        return updated

    async def delete_profile(self, profile_id: str) -> None:
        self.profiles.pop(profile_id, None)


class InMemoryBlobStore(BlobStoreBase):
    def __init__(self):
        self.objects: Dict[str, tuple] = {}
        self.failures = FailureInjector()
        self.calls: List[str] = []

    async def put(self, path: str, data: bytes, content_type: str) -> None:
        self.calls.append("put")
        self.failures.check("put", path)
        if path in self.objects:
            raise ConflictError(f"Object already exists: {path}")
        self.objects[path] = (data, content_type)

    async def remove(self, paths: Sequence[str]) -> None:
        self.calls.append("remove")
        self.failures.check("remove", list(paths))
        for p in paths:
            self.objects.pop(p, None)

    async def sign(self, path: str, ttl_seconds: int) -> str:
        self.calls.append("sign")
        self.failures.check("sign", path)
        if path not in self.objects:
            raise NotFoundError(f"No object at {path}")
        return f"memory://documents/{path}?ttl={ttl_seconds}&token={uuid.uuid4().hex}"


@pytest.fixture
def metadata() -> InMemoryMetadataStore:
    return InMemoryMetadataStore()


@pytest.fixture
def blobs() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def admin() -> Principal:
    return Principal(id="admin-1", email="admin@example.com", role=Role.ADMIN)


@pytest.fixture
def user() -> Principal:
    return Principal(id="user-1", email="user@example.com", role=Role.USER)


@pytest.fixture
def make_record() -> Callable[..., FileRecord]:
    """Factory for FileRecord values used by the pure browse/record helpers."""
    counter = {"n": 0}

    def _make(
        name: str = "file.txt",
        size_bytes: int = 100,
        category: Category = Category.TEXT,
        description: Optional[str] = None,
        tags: Optional[List[str]] = None,
        created_at: Optional[datetime] = None,
        record_id: Optional[str] = None,
    ) -> FileRecord:
        counter["n"] += 1
        n = counter["n"]
        created = created_at or EPOCH + timedelta(minutes=n)
        return FileRecord(
            id=record_id or f"rec-{n:03d}",
            name=name,
            description=description,
            tags=tags or [],
            storage_path=f"owner-1/{n}_{name}",
            category=category,
            size_bytes=size_bytes,
            owner_id="owner-1",
            created_at=created,
            updated_at=created,
        )

    return _make
