"""Adapters over the external metadata table and object storage bucket."""

from docvault.stores.base import BlobStoreBase, MetadataStoreBase

__all__ = ["BlobStoreBase", "MetadataStoreBase"]
