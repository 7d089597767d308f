"""Delete orchestrator — removes the blob first, then the metadata row."""

from typing import List

from docvault.core.exceptions import NotFoundError, TransportError
from docvault.core.logging import get_logger
from docvault.core.security import Principal, require_admin
from docvault.schemas.schemas import FileRecord
from docvault.stores.base import BlobStoreBase, MetadataStoreBase

logger = get_logger("delete")


def drop_from(records: List[FileRecord], record_id: str) -> List[FileRecord]:
    """Return ``records`` without ``record_id``, for callers holding a local list."""
    return [r for r in records if r.id != record_id]


class DeleteService:
    """Removes a file from both stores.

    If the blob removal fails the row still describes an existing blob and the
    call can simply be retried. If the row delete fails after the blob is gone,
    the row dangles; that is logged for reconciliation and re-raised.
    """

    def __init__(self, metadata: MetadataStoreBase, blobs: BlobStoreBase):
        self.metadata = metadata
        self.blobs = blobs

    async def delete(self, actor: Principal, record: FileRecord) -> None:
        require_admin(actor, "deletes")

        try:
            await self.blobs.remove([record.storage_path])
        except NotFoundError:
            logger.debug("Blob %s already gone", record.storage_path)
        try:
            await self.metadata.delete_by_id(record.id)
        except NotFoundError:
            logger.debug("Row %s already gone", record.id)
        except TransportError:
            logger.error(
                "DANGLING ROW: blob %s removed but row %s (%s) could not be deleted",
                record.storage_path, record.id, record.name,
            )
            raise
        logger.info("Deleted %s (%s) by %s", record.id, record.name, actor.id)
