"""Access-link issuer — short-lived signed URLs, fetched fresh on every request."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from docvault.core.config import settings
from docvault.schemas.schemas import AccessLink, FileRecord
from docvault.stores.base import BlobStoreBase


class AccessLinkService:
    """Never caches: two calls for the same path make two ``sign`` requests."""

    def __init__(self, blobs: BlobStoreBase, ttl_seconds: Optional[int] = None):
        self.blobs = blobs
        self.ttl_seconds = ttl_seconds or settings.ACCESS_URL_TTL_SECONDS

    async def get_access_url(self, path: str) -> str:
        """Signed URL for ``path``. Raises NotFoundError / TransportError."""
        return await self.blobs.sign(path, self.ttl_seconds)

    async def issue(self, record: FileRecord) -> AccessLink:
        issued_at = datetime.now(timezone.utc)
        url = await self.get_access_url(record.storage_path)
        return AccessLink(
            url=url,
            file_name=record.name,
            expires_at=issued_at + timedelta(seconds=self.ttl_seconds),
        )

    async def attach(self, record: FileRecord) -> FileRecord:
        """In-memory copy of ``record`` carrying a fresh ``signed_url``."""
        url = await self.get_access_url(record.storage_path)
        return record.model_copy(update={"signed_url": url})
