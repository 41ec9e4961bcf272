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
Record store adapter: maps memories onto blob store keys and back.

Each memory is one JSON blob at memories/{id}.json, so get and delete can
derive the key from the id alone. Tags, source and createdAt are copied into
the blob metadata for collaborators that filter without reading the blob.
"""

import logging
from typing import Dict, Optional

from .base import BlobStore
from ..config import MEMORY_KEY_PREFIX
from ..errors import StoreError
from ..models import Memory, MemoryPage

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/json"
KEY_SUFFIX = ".json"


class MemoryRecordStore:
    """Reads and writes serialized memories in a blob store."""

    def __init__(self, blobs: BlobStore, prefix: str = MEMORY_KEY_PREFIX):
        self.blobs = blobs
        self.prefix = prefix

    def key_for(self, memory_id: str) -> str:
        return f"{self.prefix}{memory_id}{KEY_SUFFIX}"

    @staticmethod
    def metadata_for(memory: Memory) -> Dict[str, str]:
        return {
            "tags": ",".join(memory.tags),
            "source": memory.source.value,
            "createdAt": memory.created_at,
        }

    async def put(self, memory: Memory) -> None:
        await self.blobs.put(
            self.key_for(memory.id),
            memory.to_json().encode("utf-8"),
            metadata=self.metadata_for(memory),
            content_type=CONTENT_TYPE,
        )
        logger.debug(f"Stored memory {memory.id}")

    async def get(self, memory_id: str) -> Optional[Memory]:
        """
        Fetch a memory by id.

        Returns:
            The memory, or None if no record exists for the id

        Raises:
            StoreError: If the read fails or the stored record is not a valid memory
        """
        return await self._read(self.key_for(memory_id))

    async def _read(self, key: str) -> Optional[Memory]:
        blob = await self.blobs.get(key)
        if blob is None:
            return None
        try:
            return Memory.from_json(blob.data.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise StoreError(f"Stored record {key} is not a valid memory: {e}") from e

    async def delete(self, memory_id: str) -> None:
        await self.blobs.delete(self.key_for(memory_id))
        logger.debug(f"Deleted memory {memory_id}")

    async def list(self, cursor: Optional[str] = None, limit: int = 20) -> MemoryPage:
        """
        List one page of memories in store order.

        Keys removed between the listing and the read (a concurrent delete)
        are skipped, so a page may hold fewer than limit memories while a
        cursor is still returned.
        """
        listing = await self.blobs.list(self.prefix, cursor=cursor, limit=limit)

        memories = []
        for key in listing.keys:
            memory = await self._read(key)
            if memory is not None:
                memories.append(memory)

        return MemoryPage(memories=memories, cursor=listing.cursor)
