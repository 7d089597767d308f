"""Record mutation service — rename and re-describe existing records."""

from typing import List, Optional

from docvault.core.exceptions import ValidationError
from docvault.core.security import Principal, require_admin
from docvault.schemas.schemas import FileRecord
from docvault.stores.base import MetadataStoreBase


def replace_in(records: List[FileRecord], updated: FileRecord) -> List[FileRecord]:
    """Swap ``updated`` into a local list, keeping any signed URL the old copy carried."""
    merged = []
    for r in records:
        if r.id == updated.id:
            r = updated if updated.signed_url else updated.model_copy(update={"signed_url": r.signed_url})
        merged.append(r)
    return merged


def _clean_name(new_name: Optional[str]) -> str:
    name = (new_name or "").strip()
    if not name:
        raise ValidationError("File name cannot be empty")
    return name


class RecordService:
    """Writes only the metadata store; ``updated_at`` is bumped by the store."""

    def __init__(self, metadata: MetadataStoreBase):
        self.metadata = metadata

    async def rename(self, actor: Principal, record_id: str, new_name: str) -> FileRecord:
        require_admin(actor, "renames")
        return await self.metadata.update_fields(record_id, {"name": _clean_name(new_name)})

    async def redescribe(
        self, actor: Principal, record_id: str, new_description: Optional[str]
    ) -> FileRecord:
        require_admin(actor, "description changes")
        description = (new_description or "").strip() or None
        return await self.metadata.update_fields(record_id, {"description": description})

    async def update(
        self,
        actor: Principal,
        record_id: str,
        new_name: Optional[str] = None,
        new_description: Optional[str] = None,
    ) -> FileRecord:
        """Apply a rename and/or re-describe as one metadata write.

        ``None`` leaves a field untouched; a blank description clears it.
        Either both changes land or neither does.
        """
        require_admin(actor, "record changes")
        changes = {}
        if new_name is not None:
            changes["name"] = _clean_name(new_name)
        if new_description is not None:
            changes["description"] = new_description.strip() or None
        if not changes:
            return await self.metadata.get_by_id(record_id)
        return await self.metadata.update_fields(record_id, changes)
