"""
Durable storage for memories.

- BlobStore: key/value blob store interface with memory, sqlite and r2 backends
- MemoryRecordStore: maps Memory objects onto blob keys
"""

from .base import BlobListing, BlobStore, StoredBlob
from .factory import create_blob_store
from .memory import MemoryBlobStore
from .records import MemoryRecordStore
from .r2 import R2BlobStore
from .sqlite import SQLiteBlobStore

__all__ = [
    'BlobListing',
    'BlobStore',
    'StoredBlob',
    'create_blob_store',
    'MemoryBlobStore',
    'MemoryRecordStore',
    'R2BlobStore',
    'SQLiteBlobStore',
]
