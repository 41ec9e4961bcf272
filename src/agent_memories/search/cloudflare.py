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
Cloudflare AI Search provider.

AI Search indexes the R2 bucket the memories are written to. Searching and
reindex jobs both go through the Cloudflare REST API, which wraps every
answer in an envelope: {"success": bool, "result": ..., "errors": [{"message": ...}]}.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from .base import ContentChunk, ReindexResponse, SearchHit, SearchProvider, SearchRequest
from ..errors import SearchProviderError, TransportError

logger = logging.getLogger(__name__)


def _error_messages(envelope: Dict[str, Any]) -> List[str]:
    errors = envelope.get("errors") or []
    return [
        str(error["message"])
        for error in errors
        if isinstance(error, dict) and error.get("message")
    ]


def parse_hit(item: Any) -> Optional[SearchHit]:
    """Convert one raw result item, or return None when it is not an object."""
    if not isinstance(item, dict):
        return None

    chunks = []
    for chunk in item.get("content") or []:
        if isinstance(chunk, dict) and isinstance(chunk.get("text"), str):
            chunks.append(ContentChunk(type=str(chunk.get("type", "")), text=chunk["text"]))

    try:
        score = float(item.get("score", 0.0))
    except (TypeError, ValueError):
        score = 0.0

    return SearchHit(
        file_id=str(item.get("file_id") or item.get("filename") or ""),
        score=score,
        content=chunks,
        filename=item.get("filename"),
        attributes=item.get("attributes") or {},
    )


class CloudflareAISearchProvider(SearchProvider):
    """AI Search instance accessed over the Cloudflare REST API."""

    def __init__(
        self,
        account_id: str,
        instance: str,
        api_token: str,
        api_base: str = "https://api.cloudflare.com/client/v4",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.instance = instance
        self.instance_url = f"{api_base.rstrip('/')}/accounts/{account_id}/ai-search/instances/{instance}"
        self._headers = {
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
        }
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def initialize(self) -> None:
        self._get_client()
        logger.info(f"Initialized AI Search provider for instance {self.instance}")

    async def _post(self, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        POST to the instance API and return the decoded envelope.

        HTTP error statuses are not raised here: Cloudflare reports failures
        inside the envelope, and callers interpret it.

        Raises:
            TransportError: If the request fails or the body is not a JSON object
        """
        url = f"{self.instance_url}/{path}"
        try:
            response = await self._get_client().post(url, headers=self._headers, json=payload)
        except httpx.HTTPError as e:
            raise TransportError(f"AI Search request to {path} failed: {type(e).__name__}: {e}") from e

        try:
            envelope = response.json()
        except ValueError as e:
            raise TransportError(
                f"AI Search {path} returned a non-JSON response (HTTP {response.status_code})"
            ) from e
        if not isinstance(envelope, dict):
            raise TransportError(f"AI Search {path} returned an unexpected payload (HTTP {response.status_code})")
        return envelope

    async def search(self, request: SearchRequest) -> List[SearchHit]:
        envelope = await self._post("search", {
            "query": request.query,
            "max_num_results": request.max_num_results,
            "rewrite_query": request.rewrite_query,
            "ranking_options": {"score_threshold": request.score_threshold},
        })

        if not envelope.get("success"):
            messages = _error_messages(envelope)
            raise SearchProviderError(messages[0] if messages else "Unknown error")

        result = envelope.get("result")
        if not isinstance(result, dict):
            result = {}
        hits = []
        for item in result.get("data") or []:
            hit = parse_hit(item)
            if hit is not None:
                hits.append(hit)
        logger.debug(f"AI Search returned {len(hits)} hits for query {request.query!r}")
        return hits

    async def request_reindex(self) -> ReindexResponse:
        envelope = await self._post("jobs")

        if not envelope.get("success"):
            return ReindexResponse(accepted=False, errors=_error_messages(envelope))

        result = envelope.get("result") or {}
        job_id = result.get("id") if isinstance(result, dict) else None
        return ReindexResponse(accepted=True, job_id=str(job_id) if job_id is not None else None)

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
