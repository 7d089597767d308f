"""Metadata store backed by SQLAlchemy (MySQL in production, SQLite in tests)."""

from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docvault.core.exceptions import ConflictError, NotFoundError, TransportError
from docvault.core.logging import get_logger
from docvault.models.file_record import FileRow
from docvault.models.profile import ProfileRow
from docvault.schemas.schemas import FileRecord, NewFileRecord, NewProfile, Profile
from docvault.stores.base import MetadataStoreBase

logger = get_logger("stores.sql")

FILE_FIELDS = {"name", "description", "tags"}
PROFILE_FIELDS = {"display_name", "role"}


class SqlMetadataStore(MetadataStoreBase):
    """Opens one session per call; holds nothing but the session factory."""

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        if session_factory is None:
            from docvault.db.session import async_session
            session_factory = async_session
        self._sessions = session_factory

    # ---- files ----

    async def insert(self, record: NewFileRecord) -> FileRecord:
        row = FileRow(**record.model_dump(mode="json"))
        try:
            async with self._sessions() as db:
                db.add(row)
                await db.commit()
                await db.refresh(row)
                return FileRecord.model_validate(row)
        except IntegrityError as e:
            raise ConflictError(f"Storage path already registered: {record.storage_path}") from e
        except SQLAlchemyError as e:
            raise TransportError(f"Metadata insert failed: {e}") from e

    async def list_all(self) -> List[FileRecord]:
        try:
            async with self._sessions() as db:
                result = await db.execute(
                    select(FileRow).order_by(FileRow.created_at.desc(), FileRow.id.desc())
                )
                return [FileRecord.model_validate(r) for r in result.scalars().all()]
        except SQLAlchemyError as e:
            raise TransportError(f"Metadata listing failed: {e}") from e

    async def get_by_id(self, record_id: str) -> FileRecord:
        try:
            async with self._sessions() as db:
                row = await db.get(FileRow, record_id)
                if row is None:
                    raise NotFoundError(f"File {record_id} not found")
                return FileRecord.model_validate(row)
        except SQLAlchemyError as e:
            raise TransportError(f"Metadata lookup failed: {e}") from e

    async def update_fields(self, record_id: str, changes: Dict[str, Any]) -> FileRecord:
        unknown = set(changes) - FILE_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable: {sorted(unknown)}")
        try:
            async with self._sessions() as db:
                row = await db.get(FileRow, record_id)
                if row is None:
                    raise NotFoundError(f"File {record_id} not found")
                for field, value in changes.items():
                    setattr(row, field, value)
                await db.commit()
                await db.refresh(row)
                return FileRecord.model_validate(row)
        except SQLAlchemyError as e:
            raise TransportError(f"Metadata update failed: {e}") from e

    async def delete_by_id(self, record_id: str) -> None:
        try:
            async with self._sessions() as db:
                result = await db.execute(delete(FileRow).where(FileRow.id == record_id))
                await db.commit()
        except SQLAlchemyError as e:
            raise TransportError(f"Metadata delete failed: {e}") from e
        if not result.rowcount:
            logger.debug("delete_by_id(%s): no row, already gone", record_id)

    # ---- profiles ----

    async def list_profiles(self) -> List[Profile]:
        try:
            async with self._sessions() as db:
                result = await db.execute(
                    select(ProfileRow).order_by(ProfileRow.created_at.desc(), ProfileRow.id.desc())
                )
                return [Profile.model_validate(r) for r in result.scalars().all()]
        except SQLAlchemyError as e:
            raise TransportError(f"Profile listing failed: {e}") from e

    async def get_profile(self, profile_id: str) -> Profile:
        try:
            async with self._sessions() as db:
                row = await db.get(ProfileRow, profile_id)
                if row is None:
                    raise NotFoundError(f"Profile {profile_id} not found")
                return Profile.model_validate(row)
        except SQLAlchemyError as e:
            raise TransportError(f"Profile lookup failed: {e}") from e

    async def insert_profile(self, profile: NewProfile) -> Profile:
        row = ProfileRow(**profile.model_dump(mode="json"))
        try:
            async with self._sessions() as db:
                db.add(row)
                await db.commit()
                await db.refresh(row)
                return Profile.model_validate(row)
        except IntegrityError as e:
            raise ConflictError(f"Profile already exists: {profile.email}") from e
        except SQLAlchemyError as e:
            raise TransportError(f"Profile insert failed: {e}") from e

    async def update_profile(self, profile_id: str, changes: Dict[str, Any]) -> Profile:
        unknown = set(changes) - PROFILE_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable: {sorted(unknown)}")
        try:
            async with self._sessions() as db:
                row = await db.get(ProfileRow, profile_id)
                if row is None:
                    raise NotFoundError(f"Profile {profile_id} not found")
                for field, value in changes.items():
                    setattr(row, field, getattr(value, "value", value))
                await db.commit()
                await db.refresh(row)
                return Profile.model_validate(row)
        except SQLAlchemyError as e:
            raise TransportError(f"Profile update failed: {e}") from e

    async def delete_profile(self, profile_id: str) -> None:
        try:
            async with self._sessions() as db:
                await db.execute(delete(ProfileRow).where(ProfileRow.id == profile_id))
                await db.commit()
        except SQLAlchemyError as e:
            raise TransportError(f"Profile delete failed: {e}") from e
