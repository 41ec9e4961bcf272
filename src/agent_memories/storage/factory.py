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
Factory for creating blob store instances from configuration.
"""

import logging
import os
from typing import Optional

from .base import BlobStore
from .memory import MemoryBlobStore
from .sqlite import SQLiteBlobStore
from .r2 import R2BlobStore
from .. import config

logger = logging.getLogger(__name__)


def create_blob_store(backend_type: Optional[str] = None, **kwargs) -> BlobStore:
    """
    Create a blob store backend instance.

    Args:
        backend_type: "memory", "sqlite" or "r2"; defaults to STORAGE_BACKEND
        **kwargs: Backend-specific overrides
                 - db_path: SQLite database path (for "sqlite")
                 - account_id, bucket, api_token, client: R2 settings (for "r2")

    Returns:
        Uninitialized BlobStore; call initialize() before use

    Raises:
        ValueError: If backend_type is unsupported or required settings are missing

    Examples:
        store = create_blob_store("memory")
        store = create_blob_store("sqlite", db_path="./data/memories.db")
    """
    backend = (backend_type or config.STORAGE_BACKEND).lower()

    if backend == "memory":
        logger.info("Creating in-memory blob store (not persistent)")
        return MemoryBlobStore()

    elif backend == "sqlite":
        db_path = kwargs.get("db_path") or config.SQLITE_PATH
        logger.info(f"Creating SQLite blob store at {os.path.abspath(db_path)}")
        return SQLiteBlobStore(db_path=db_path)

    elif backend == "r2":
        account_id = kwargs.get("account_id") or config.CF_ACCOUNT_ID
        bucket = kwargs.get("bucket") or config.R2_BUCKET
        api_token = kwargs.get("api_token") or config.CF_API_TOKEN
        if not (account_id and bucket and api_token):
            raise ValueError("R2 storage requires CF_ACCOUNT_ID, R2_BUCKET and CF_API_TOKEN")
        logger.info(f"Creating R2 blob store for bucket {bucket}")
        return R2BlobStore(
            account_id=account_id,
            bucket=bucket,
            api_token=api_token,
            api_base=config.CLOUDFLARE_API_BASE,
            timeout=config.HTTP_TIMEOUT_SECONDS,
            client=kwargs.get("client"),
        )

    else:
        raise ValueError(
            f"Unsupported storage backend: {backend_type}. "
            f"Supported backends: {', '.join(config.SUPPORTED_STORAGE_BACKENDS)}"
        )
