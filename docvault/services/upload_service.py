"""Upload orchestrator — writes the blob, then the metadata row, one file at a time."""

import time
import uuid
from typing import List, Optional, Sequence

from docvault.core.exceptions import DocVaultError, TransportError
from docvault.core.logging import get_logger
from docvault.core.security import Principal, require_admin
from docvault.schemas.schemas import (
    NewFileRecord,
    UploadBatchResult,
    UploadItem,
    UploadOutcome,
    UploadStatus,
)
from docvault.services.classifier import classify, extension_of
from docvault.stores.base import BlobStoreBase, MetadataStoreBase

logger = get_logger("upload")


def parse_tags(raw: Optional[str]) -> List[str]:
    """Split a comma-separated tag string, dropping blanks: ``"a, b,,c"`` -> ``["a", "b", "c"]``."""
    if not raw:
        return []
    return [t.strip() for t in raw.split(",") if t.strip()]


def build_storage_path(owner_id: str, file_name: str) -> str:
    """``{owner}/{epoch_ms}_{uuid}{.ext}``. Never reused, so puts never collide."""
    ext = extension_of(file_name)
    suffix = f".{ext}" if ext else ""
    return f"{owner_id}/{int(time.time() * 1000)}_{uuid.uuid4().hex}{suffix}"


class UploadService:
    """Registers new files in both stores.

    Files in a batch are processed strictly in order. A failure on one file is
    recorded on its outcome and the batch moves on to the next file.
    """

    def __init__(self, metadata: MetadataStoreBase, blobs: BlobStoreBase):
        self.metadata = metadata
        self.blobs = blobs

    async def upload(self, actor: Principal, files: Sequence[UploadItem]) -> UploadBatchResult:
        """Upload a batch and re-fetch the authoritative record list afterwards.

        Raises:
            ForbiddenError: the caller is not an admin (nothing is written).
        """
        require_admin(actor, "uploads")
        outcomes = [await self._upload_one(actor.id, item) for item in files]

        result = UploadBatchResult(outcomes=outcomes)
        try:
            result.refreshed = await self.metadata.list_all()
        except TransportError as e:
            logger.error("Upload batch finished but the record list could not be refreshed: %s", e.message)
            result.refresh_error = e.message

        logger.info(
            "Upload batch by %s: %d stored, %d failed",
            actor.id, len(result.stored), len(result.failed),
        )
        return result

    async def _upload_one(self, owner_id: str, item: UploadItem) -> UploadOutcome:
        name = (item.file_name or "").strip()
        if not name:
            return UploadOutcome(
                file_name=item.file_name,
                status=UploadStatus.INVALID,
                error="File name is required",
            )

        category = classify(item.declared_type, name)
        path = build_storage_path(owner_id, name)

        try:
            await self.blobs.put(path, item.data, item.declared_type or "application/octet-stream")
        except DocVaultError as e:
            logger.warning("Blob write failed for %s at %s: %s", name, path, e.message)
            return UploadOutcome(
                file_name=name,
                status=UploadStatus.BLOB_FAILED,
                storage_path=path,
                error=e.message,
            )

        new_record = NewFileRecord(
            name=name,
            description=(item.description or "").strip() or None,
            tags=item.tags,
            storage_path=path,
            category=category,
            size_bytes=len(item.data),
            owner_id=owner_id,
        )
        try:
            record = await self.metadata.insert(new_record)
        except DocVaultError as e:
            # The blob stays behind with no row pointing at it; left for manual reconciliation.
            logger.warning(
                "ORPHANED BLOB: metadata insert failed for %s, blob left at %s: %s",
                name, path, e.message,
            )
            return UploadOutcome(
                file_name=name,
                status=UploadStatus.METADATA_FAILED,
                storage_path=path,
                error=e.message,
            )

        logger.debug("Stored %s as %s (%s, %d bytes)", name, record.id, category.value, record.size_bytes)
        return UploadOutcome(
            file_name=name,
            status=UploadStatus.STORED,
            record=record,
            storage_path=path,
        )
