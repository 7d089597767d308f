"""Files API router — browse, upload, access links, rename/describe, delete."""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import ValidationError as PydanticValidationError

from docvault.api.deps import (
    get_access_link_service,
    get_delete_service,
    get_metadata_store,
    get_principal,
    get_record_service,
    get_upload_service,
)
from docvault.core.exceptions import NotFoundError, ValidationError
from docvault.core.security import Principal, require_admin
from docvault.schemas.schemas import (
    AccessLink,
    FileRecord,
    FileUpdate,
    MessageResponse,
    UploadBatchResult,
    UploadItem,
)
from docvault.services.access_links import AccessLinkService
from docvault.services.browse import ALL, BrowseQuery, SortDir, SortField, view
from docvault.services.delete_service import DeleteService
from docvault.services.record_service import RecordService
from docvault.services.upload_service import UploadService, parse_tags
from docvault.stores.base import MetadataStoreBase

router = APIRouter(prefix="/files", tags=["files"])


@router.get("/", response_model=List[FileRecord])
async def browse_files(
    text: str = Query(""),
    category: str = Query(ALL),
    sort: SortField = Query(SortField.CREATED_AT),
    direction: SortDir = Query(SortDir.DESC, alias="dir"),
    store: MetadataStoreBase = Depends(get_metadata_store),
    actor: Principal = Depends(get_principal),
):
    """List the collection, filtered and sorted. Unpaged."""
    try:
        query = BrowseQuery(text=text, category=category, sort_field=sort, sort_dir=direction)
    except PydanticValidationError:
        raise ValidationError(f"Unknown category: {category}")
    return view(await store.list_all(), query)


@router.post("/upload", response_model=UploadBatchResult)
async def upload_files(
    files: List[UploadFile] = File(...),
    descriptions: Optional[List[str]] = Form(None),
    tags: Optional[List[str]] = Form(None),
    service: UploadService = Depends(get_upload_service),
    actor: Principal = Depends(get_principal),
):
    """Upload a batch. ``descriptions[i]`` and ``tags[i]`` (comma-separated) go with ``files[i]``."""
    descriptions = descriptions or []
    tags = tags or []
    items = []
    for i, upload in enumerate(files):
        items.append(UploadItem(
            data=await upload.read(),
            declared_type=upload.content_type,
            file_name=upload.filename or "",
            description=descriptions[i] if i < len(descriptions) else None,
            tags=parse_tags(tags[i]) if i < len(tags) else [],
        ))
    return await service.upload(actor, items)


@router.get("/{file_id}", response_model=FileRecord)
async def get_file(
    file_id: str,
    store: MetadataStoreBase = Depends(get_metadata_store),
    actor: Principal = Depends(get_principal),
):
    """Get file metadata."""
    return await store.get_by_id(file_id)


@router.get("/{file_id}/link", response_model=AccessLink)
async def get_access_link(
    file_id: str,
    store: MetadataStoreBase = Depends(get_metadata_store),
    links: AccessLinkService = Depends(get_access_link_service),
    actor: Principal = Depends(get_principal),
):
    """Issue a fresh time-limited URL for viewing or downloading."""
    record = await store.get_by_id(file_id)
    return await links.issue(record)


@router.patch("/{file_id}", response_model=FileRecord)
async def update_file(
    file_id: str,
    body: FileUpdate,
    service: RecordService = Depends(get_record_service),
    actor: Principal = Depends(get_principal),
):
    """Rename and/or re-describe a file in one write (admin only)."""
    return await service.update(actor, file_id, body.name, body.description)


@router.delete("/{file_id}", response_model=MessageResponse)
async def delete_file(
    file_id: str,
    service: DeleteService = Depends(get_delete_service),
    store: MetadataStoreBase = Depends(get_metadata_store),
    actor: Principal = Depends(get_principal),
):
    """Remove a file from storage and the metadata table (admin only)."""
    require_admin(actor, "deletes")
    try:
        record = await store.get_by_id(file_id)
    except NotFoundError:
        return MessageResponse(message="File already deleted")
    await service.delete(actor, record)
    return MessageResponse(message="File deleted")
