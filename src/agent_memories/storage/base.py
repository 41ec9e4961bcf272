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
Abstract base class for durable blob store backends.

A blob store is a flat key/value store of byte blobs with a small string
metadata map per key. It knows nothing about memories; the records adapter
(storage.records) maps memories onto it.
"""

import base64
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class StoredBlob:
    """A blob read back from the store."""
    key: str
    data: bytes
    metadata: Dict[str, str] = field(default_factory=dict)
    content_type: Optional[str] = None


@dataclass(frozen=True)
class BlobListing:
    """One page of keys. cursor is None when there are no further keys."""
    keys: List[str]
    cursor: Optional[str] = None


def encode_cursor(key: str) -> str:
    """Turn the last key of a page into an opaque continuation cursor."""
    return base64.urlsafe_b64encode(key.encode("utf-8")).decode("ascii")


def decode_cursor(cursor: str) -> str:
    """
    Recover the last key of the previous page from a cursor.

    Raises:
        ValueError: If the cursor was not produced by encode_cursor
    """
    try:
        return base64.urlsafe_b64decode(cursor.encode("ascii")).decode("utf-8")
    except (UnicodeError, ValueError) as e:
        raise ValueError(f"Invalid cursor: {cursor!r}") from e


class BlobStore(ABC):
    """
    Abstract base class for blob store backends.

    All operations go straight to the backend: implementations keep no
    cache and perform no retries. Backend failures are raised as StoreError.
    """

    async def initialize(self) -> None:
        """Open connections or create schema. Optional for backends that need neither."""

    @abstractmethod
    async def put(
        self,
        key: str,
        data: bytes,
        metadata: Optional[Dict[str, str]] = None,
        content_type: Optional[str] = None
    ) -> None:
        """
        Write a blob, replacing any existing blob under the same key.

        Args:
            key: Blob key
            data: Blob contents
            metadata: Secondary string fields stored alongside the blob
            content_type: MIME type of the blob

        Raises:
            StoreError: If the write fails
        """

    @abstractmethod
    async def get(self, key: str) -> Optional[StoredBlob]:
        """
        Read a blob.

        Returns:
            StoredBlob if the key exists, None otherwise

        Raises:
            StoreError: If the read fails
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """
        Remove a blob. Deleting a missing key is not an error.

        Raises:
            StoreError: If the delete fails
        """

    @abstractmethod
    async def list(self, prefix: str, cursor: Optional[str] = None, limit: int = 1000) -> BlobListing:
        """
        List keys starting with prefix, in backend-defined order.

        Args:
            prefix: Key prefix to restrict the listing to
            cursor: Continuation cursor from a previous page, None for the first page
            limit: Maximum number of keys to return

        Returns:
            BlobListing with up to limit keys and the cursor of the next page

        Raises:
            StoreError: If the listing fails or the cursor is invalid
        """

    async def close(self) -> None:
        """Release connections and file handles."""

    async def get_stats(self) -> Dict[str, Any]:
        """Backend-specific statistics (optional)."""
        return {"backend": self.__class__.__name__}
