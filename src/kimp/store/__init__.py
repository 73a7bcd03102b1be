"""Blob persistence layer: raw blob stores and the typed series store."""

from kimp.store.blob import BlobStore, MemoryBlobStore, SupabaseBlobStore, create_blob_store
from kimp.store.series_store import SeriesStore

__all__ = [
    "BlobStore",
    "MemoryBlobStore",
    "SeriesStore",
    "SupabaseBlobStore",
    "create_blob_store",
]
