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
Process-wide collaborators for the memory service.

A MemoryContext is built once at startup, handed to every MemoryService
explicitly, and closed at shutdown.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .. import config
from ..search.base import SearchProvider
from ..search.cloudflare import CloudflareAISearchProvider
from ..search.normalizer import QueryResultNormalizer
from ..storage.base import BlobStore
from ..storage.factory import create_blob_store
from ..storage.records import MemoryRecordStore
from .index_sync import IndexSyncController

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MemoryContext:
    """Everything a MemoryService talks to."""
    records: MemoryRecordStore
    sync: IndexSyncController
    normalizer: QueryResultNormalizer
    search_provider: SearchProvider

    @classmethod
    def build(cls, blobs: BlobStore, provider: SearchProvider) -> "MemoryContext":
        return cls(
            records=MemoryRecordStore(blobs),
            sync=IndexSyncController(provider),
            normalizer=QueryResultNormalizer(),
            search_provider=provider,
        )

    async def close(self) -> None:
        await self.records.blobs.close()
        await self.search_provider.close()


def create_search_provider() -> SearchProvider:
    """
    Create the AI Search provider from configuration.

    Raises:
        ValueError: If CF_ACCOUNT_ID, CF_API_TOKEN or AI_SEARCH_INSTANCE is missing
    """
    if not (config.CF_ACCOUNT_ID and config.CF_API_TOKEN and config.AI_SEARCH_INSTANCE):
        raise ValueError("AI Search requires CF_ACCOUNT_ID, CF_API_TOKEN and AI_SEARCH_INSTANCE")
    return CloudflareAISearchProvider(
        account_id=config.CF_ACCOUNT_ID,
        instance=config.AI_SEARCH_INSTANCE,
        api_token=config.CF_API_TOKEN,
        api_base=config.CLOUDFLARE_API_BASE,
        timeout=config.HTTP_TIMEOUT_SECONDS,
    )


async def create_memory_context(
    blobs: Optional[BlobStore] = None,
    provider: Optional[SearchProvider] = None
) -> MemoryContext:
    """
    Build and initialize a MemoryContext.

    Collaborators not passed in are created from configuration.
    """
    blobs = blobs or create_blob_store()
    provider = provider or create_search_provider()

    await blobs.initialize()
    await provider.initialize()

    logger.info(
        f"Memory context ready: store={blobs.__class__.__name__}, "
        f"search={provider.__class__.__name__}"
    )
    return MemoryContext.build(blobs, provider)
