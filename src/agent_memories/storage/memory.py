# Copyright 2024 Heinrich Krupp
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
In-memory blob store.

Everything is lost when the process exits. Suitable for development and
tests; use the sqlite or r2 backend for anything that must persist.
"""

import asyncio
from typing import Any, Dict, Optional

from .base import BlobListing, BlobStore, StoredBlob, decode_cursor, encode_cursor
from ..errors import StoreError


class MemoryBlobStore(BlobStore):
    """Dictionary-backed blob store. Keys are listed in lexicographic order."""

    def __init__(self):
        # key -> StoredBlob
        self._blobs: Dict[str, StoredBlob] = {}
        self._lock = asyncio.Lock()

    async def put(
        self,
        key: str,
        data: bytes,
        metadata: Optional[Dict[str, str]] = None,
        content_type: Optional[str] = None
    ) -> None:
        async with self._lock:
            self._blobs[key] = StoredBlob(
                key=key,
                data=bytes(data),
                metadata=dict(metadata or {}),
                content_type=content_type,
            )

    async def get(self, key: str) -> Optional[StoredBlob]:
        async with self._lock:
            return self._blobs.get(key)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._blobs.pop(key, None)

    async def list(self, prefix: str, cursor: Optional[str] = None, limit: int = 1000) -> BlobListing:
        try:
            after = decode_cursor(cursor) if cursor else None
        except ValueError as e:
            raise StoreError(str(e)) from e
        limit = max(1, limit)

        async with self._lock:
            keys = sorted(
                key for key in self._blobs
                if key.startswith(prefix) and (after is None or key > after)
            )

        page = keys[:limit]
        next_cursor = encode_cursor(page[-1]) if len(keys) > limit else None
        return BlobListing(keys=page, cursor=next_cursor)

    async def get_stats(self) -> Dict[str, Any]:
        async with self._lock:
            return {
                "backend": "memory",
                "total_blobs": len(self._blobs),
                "total_bytes": sum(len(blob.data) for blob in self._blobs.values()),
            }
