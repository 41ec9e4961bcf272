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
SQLite blob store.

Persistent single-file storage for memory blobs using aiosqlite. Each blob is
one row; the metadata map is stored as JSON next to it. Suitable for local
and single-host deployments.
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import aiosqlite

from .base import BlobListing, BlobStore, StoredBlob, decode_cursor, encode_cursor
from ..errors import StoreError

logger = logging.getLogger(__name__)


class SQLiteBlobStore(BlobStore):
    """
    SQLite-based blob store.

    Uses WAL mode so several worker processes can share one database file.
    Keys are listed in lexicographic order.
    """

    def __init__(self, db_path: str):
        """
        Args:
            db_path: Path to SQLite database file (created if it doesn't exist)
        """
        self.db_path = db_path
        self._connection: Optional[aiosqlite.Connection] = None
        self._lock = asyncio.Lock()

        db_dir = os.path.dirname(db_path)
        if db_dir and not os.path.exists(db_dir):
            Path(db_dir).mkdir(parents=True, exist_ok=True)

    async def initialize(self) -> None:
        await self._get_connection()
        logger.info(f"Initialized SQLite blob store at {self.db_path}")

    async def _get_connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            try:
                self._connection = await aiosqlite.connect(self.db_path)
                self._connection.row_factory = aiosqlite.Row
                await self._init_db(self._connection)
            except aiosqlite.Error as e:
                raise StoreError(f"Failed to open SQLite blob store at {self.db_path}: {e}") from e
        return self._connection

    async def _init_db(self, conn: aiosqlite.Connection) -> None:
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA synchronous=NORMAL")
        await conn.execute("PRAGMA busy_timeout=5000")
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS blobs (
                key TEXT PRIMARY KEY,
                data BLOB NOT NULL,
                metadata TEXT NOT NULL DEFAULT '{}',
                content_type TEXT,
                updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
            )
        """)
        await conn.commit()

    async def put(
        self,
        key: str,
        data: bytes,
        metadata: Optional[Dict[str, str]] = None,
        content_type: Optional[str] = None
    ) -> None:
        async with self._lock:
            conn = await self._get_connection()
            try:
                await conn.execute(
                    """
                    INSERT OR REPLACE INTO blobs (key, data, metadata, content_type)
                    VALUES (?, ?, ?, ?)
                    """,
                    (key, bytes(data), json.dumps(metadata or {}), content_type)
                )
                await conn.commit()
            except aiosqlite.Error as e:
                raise StoreError(f"Failed to write blob {key}: {e}") from e

    async def get(self, key: str) -> Optional[StoredBlob]:
        async with self._lock:
            conn = await self._get_connection()
            try:
                cursor = await conn.execute(
                    "SELECT key, data, metadata, content_type FROM blobs WHERE key = ?",
                    (key,)
                )
                row = await cursor.fetchone()
            except aiosqlite.Error as e:
                raise StoreError(f"Failed to read blob {key}: {e}") from e

        if row is None:
            return None
        return StoredBlob(
            key=row["key"],
            data=bytes(row["data"]),
            metadata=json.loads(row["metadata"] or "{}"),
            content_type=row["content_type"],
        )

    async def delete(self, key: str) -> None:
        async with self._lock:
            conn = await self._get_connection()
            try:
                await conn.execute("DELETE FROM blobs WHERE key = ?", (key,))
                await conn.commit()
            except aiosqlite.Error as e:
                raise StoreError(f"Failed to delete blob {key}: {e}") from e

    async def list(self, prefix: str, cursor: Optional[str] = None, limit: int = 1000) -> BlobListing:
        try:
            after = decode_cursor(cursor) if cursor else ""
        except ValueError as e:
            raise StoreError(str(e)) from e
        limit = max(1, limit)

        async with self._lock:
            conn = await self._get_connection()
            try:
                # One extra row tells us whether another page exists
                rows = await conn.execute_fetchall(
                    """
                    SELECT key FROM blobs
                    WHERE substr(key, 1, ?) = ? AND key > ?
                    ORDER BY key
                    LIMIT ?
                    """,
                    (len(prefix), prefix, after, limit + 1)
                )
            except aiosqlite.Error as e:
                raise StoreError(f"Failed to list blobs under {prefix}: {e}") from e

        keys = [row["key"] for row in rows]
        page = keys[:limit]
        next_cursor = encode_cursor(page[-1]) if len(keys) > limit else None
        return BlobListing(keys=page, cursor=next_cursor)

    async def close(self) -> None:
        if self._connection:
            await self._connection.close()
            self._connection = None
            logger.info("Closed SQLite blob store connection")

    async def get_stats(self) -> Dict[str, Any]:
        async with self._lock:
            conn = await self._get_connection()
            try:
                rows = await conn.execute_fetchall(
                    "SELECT COUNT(*) AS total, COALESCE(SUM(LENGTH(data)), 0) AS bytes FROM blobs"
                )
            except aiosqlite.Error as e:
                raise StoreError(f"Failed to read blob store statistics: {e}") from e

        row = rows[0]
        return {
            "backend": "sqlite",
            "database_path": self.db_path,
            "total_blobs": row["total"],
            "total_bytes": row["bytes"],
        }
