"""Abstract base classes for the metadata and blob stores.

Implementations own no state beyond their client configuration: every call
is a round trip to the external service, and caching is the caller's concern.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Sequence

from docvault.schemas.schemas import FileRecord, NewFileRecord, NewProfile, Profile


class MetadataStoreBase(ABC):
    """CRUD over the ``files`` and ``profiles`` relations."""

    @abstractmethod
    async def insert(self, record: NewFileRecord) -> FileRecord:
        """Insert a row and return it with its store-assigned id and timestamps.

        Raises:
            ConflictError: the storage path is already referenced.
            TransportError: the metadata service failed.
        """
        ...

    @abstractmethod
    async def list_all(self) -> List[FileRecord]:
        """All records, newest first."""
        ...

    @abstractmethod
    async def get_by_id(self, record_id: str) -> FileRecord:
        """Raises NotFoundError if the row is gone."""
        ...

    @abstractmethod
    async def update_fields(self, record_id: str, changes: Dict[str, Any]) -> FileRecord:
        """Apply a partial update; ``updated_at`` is bumped by the store.

        Raises:
            NotFoundError: the row is gone.
            TransportError: the metadata service failed.
        """
        ...

    @abstractmethod
    async def delete_by_id(self, record_id: str) -> None:
        """Delete a row. Deleting a missing id is not an error."""
        ...

    @abstractmethod
    async def list_profiles(self) -> List[Profile]:
        ...

    @abstractmethod
    async def get_profile(self, profile_id: str) -> Profile:
        ...

    @abstractmethod
    async def insert_profile(self, profile: NewProfile) -> Profile:
        ...

    @abstractmethod
    async def update_profile(self, profile_id: str, changes: Dict[str, Any]) -> Profile:
        ...

    @abstractmethod
    async def delete_profile(self, profile_id: str) -> None:
        ...


class BlobStoreBase(ABC):
    """Write-once object storage addressed by path."""

    @abstractmethod
    async def put(self, path: str, data: bytes, content_type: str) -> None:
        """Store a blob.

        Raises:
            ConflictError: an object already exists at ``path``.
            TransportError: the storage service failed.
        """
        ...

    @abstractmethod
    async def remove(self, paths: Sequence[str]) -> None:
        """Remove blobs. Missing paths are ignored."""
        ...

    @abstractmethod
    async def sign(self, path: str, ttl_seconds: int) -> str:
        """Return a bearer URL valid for ``ttl_seconds``.

        Raises:
            NotFoundError: no object at ``path``.
            TransportError: the storage service failed.
        """
        ...
