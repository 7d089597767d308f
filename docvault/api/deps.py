"""FastAPI dependencies wiring stores and services together.

Tests replace ``get_metadata_store`` / ``get_blob_store`` /
``get_identity_client`` through ``app.dependency_overrides``.
"""

from functools import lru_cache

from fastapi import Depends

from docvault.core.security import Principal, get_token_subject, resolve_principal
from docvault.services.access_links import AccessLinkService
from docvault.services.delete_service import DeleteService
from docvault.services.identity import IdentityClient
from docvault.services.profile_service import ProfileService
from docvault.services.record_service import RecordService
from docvault.services.upload_service import UploadService
from docvault.stores.base import BlobStoreBase, MetadataStoreBase


@lru_cache
def get_metadata_store() -> MetadataStoreBase:
    from docvault.stores.sql import SqlMetadataStore
    return SqlMetadataStore()


@lru_cache
def get_blob_store() -> BlobStoreBase:
    from docvault.stores.minio_blob import MinioBlobStore
    return MinioBlobStore()


@lru_cache
def get_identity_client() -> IdentityClient:
    return IdentityClient()


async def get_principal(
    payload: dict = Depends(get_token_subject),
    store: MetadataStoreBase = Depends(get_metadata_store),
) -> Principal:
    return await resolve_principal(payload, store)


def get_upload_service(
    metadata: MetadataStoreBase = Depends(get_metadata_store),
    blobs: BlobStoreBase = Depends(get_blob_store),
) -> UploadService:
    return UploadService(metadata, blobs)


def get_delete_service(
    metadata: MetadataStoreBase = Depends(get_metadata_store),
    blobs: BlobStoreBase = Depends(get_blob_store),
) -> DeleteService:
    return DeleteService(metadata, blobs)


def get_access_link_service(blobs: BlobStoreBase = Depends(get_blob_store)) -> AccessLinkService:
    return AccessLinkService(blobs)


def get_record_service(metadata: MetadataStoreBase = Depends(get_metadata_store)) -> RecordService:
    return RecordService(metadata)


def get_profile_service(
    metadata: MetadataStoreBase = Depends(get_metadata_store),
    identity: IdentityClient = Depends(get_identity_client),
) -> ProfileService:
    return ProfileService(metadata, identity)
