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
Cloudflare R2 blob store.

Talks to an R2 bucket through the Cloudflare REST API. This is the bucket
the AI Search instance indexes, so in production memories written here
become searchable after the next reindex job.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from .base import BlobListing, BlobStore, StoredBlob
from ..errors import StoreError

logger = logging.getLogger(__name__)

# Custom metadata travels as prefixed headers
METADATA_HEADER_PREFIX = "x-amz-meta-"


def _error_detail(response: httpx.Response) -> str:
    """Best available error text from a Cloudflare API error response."""
    try:
        payload = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    errors = payload.get("errors") if isinstance(payload, dict) else None
    if errors and isinstance(errors[0], dict) and errors[0].get("message"):
        return f"HTTP {response.status_code}: {errors[0]['message']}"
    return f"HTTP {response.status_code}"


class R2BlobStore(BlobStore):
    """
    R2 bucket accessed over the Cloudflare REST API.

    Listing order and cursors are R2's own; cursors are passed through
    unchanged.
    """

    def __init__(
        self,
        account_id: str,
        bucket: str,
        api_token: str,
        api_base: str = "https://api.cloudflare.com/client/v4",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        """
        Args:
            account_id: Cloudflare account id
            bucket: R2 bucket name
            api_token: API token with R2 read/write permission
            api_base: Cloudflare API base URL
            timeout: Request timeout in seconds
            client: Preconfigured client (tests inject one with a mock transport)
        """
        self.bucket = bucket
        self.bucket_url = f"{api_base.rstrip('/')}/accounts/{account_id}/r2/buckets/{bucket}"
        self._headers = {"Authorization": f"Bearer {api_token}"}
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _object_url(self, key: str) -> str:
        return f"{self.bucket_url}/objects/{quote(key, safe='')}"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def initialize(self) -> None:
        self._get_client()
        logger.info(f"Initialized R2 blob store for bucket {self.bucket}")

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        headers = dict(self._headers)
        headers.update(kwargs.pop("headers", {}))
        try:
            return await self._get_client().request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise StoreError(f"R2 {method} {url} failed: {type(e).__name__}: {e}") from e

    async def put(
        self,
        key: str,
        data: bytes,
        metadata: Optional[Dict[str, str]] = None,
        content_type: Optional[str] = None
    ) -> None:
        headers = {f"{METADATA_HEADER_PREFIX}{name}": value for name, value in (metadata or {}).items()}
        if content_type:
            headers["Content-Type"] = content_type

        response = await self._request("PUT", self._object_url(key), content=bytes(data), headers=headers)
        if not response.is_success:
            raise StoreError(f"Failed to write R2 object {key}: {_error_detail(response)}")

    async def get(self, key: str) -> Optional[StoredBlob]:
        response = await self._request("GET", self._object_url(key))
        if response.status_code == 404:
            return None
        if not response.is_success:
            raise StoreError(f"Failed to read R2 object {key}: {_error_detail(response)}")

        metadata = {
            name[len(METADATA_HEADER_PREFIX):]: value
            for name, value in response.headers.items()
            if name.lower().startswith(METADATA_HEADER_PREFIX)
        }
        return StoredBlob(
            key=key,
            data=response.content,
            metadata=metadata,
            content_type=response.headers.get("content-type"),
        )

    async def delete(self, key: str) -> None:
        response = await self._request("DELETE", self._object_url(key))
        if response.status_code == 404:
            return
        if not response.is_success:
            raise StoreError(f"Failed to delete R2 object {key}: {_error_detail(response)}")

    async def list(self, prefix: str, cursor: Optional[str] = None, limit: int = 1000) -> BlobListing:
        params: Dict[str, Any] = {"prefix": prefix, "per_page": max(1, limit)}
        if cursor:
            params["cursor"] = cursor

        response = await self._request("GET", f"{self.bucket_url}/objects", params=params)
        if not response.is_success:
            raise StoreError(f"Failed to list R2 objects under {prefix}: {_error_detail(response)}")

        try:
            payload = response.json()
        except ValueError as e:
            raise StoreError(f"R2 listing returned invalid JSON: {e}") from e
        if not isinstance(payload, dict) or not payload.get("success", False):
            raise StoreError(f"R2 listing failed: {_error_detail(response)}")

        objects = payload.get("result") or []
        info = payload.get("result_info") or {}
        keys = [obj["key"] for obj in objects if isinstance(obj, dict) and "key" in obj]
        next_cursor = info.get("cursor") if info.get("is_truncated") else None
        return BlobListing(keys=keys, cursor=next_cursor or None)

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def get_stats(self) -> Dict[str, Any]:
        return {"backend": "r2", "bucket": self.bucket}
