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
Abstract interface for the external semantic search provider.

The provider owns embedding, indexing and ranking. This service only asks it
to search and to rebuild its index over the blob store.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class SearchRequest:
    query: str
    max_num_results: int
    rewrite_query: bool = True
    score_threshold: float = 0.0


@dataclass(frozen=True)
class ContentChunk:
    type: str
    text: str


@dataclass(frozen=True)
class SearchHit:
    """One ranked document as returned by the provider."""
    file_id: str
    score: float
    content: List[ContentChunk] = field(default_factory=list)
    filename: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ReindexResponse:
    """
    The provider's answer to a reindex request.

    accepted says the job was queued, not that indexing finished.
    """
    accepted: bool
    job_id: Optional[str] = None
    errors: List[str] = field(default_factory=list)


class SearchProvider(ABC):
    """Abstract base class for search providers."""

    async def initialize(self) -> None:
        """Open connections. Optional."""

    @abstractmethod
    async def search(self, request: SearchRequest) -> List[SearchHit]:
        """
        Run a ranked search over the indexed corpus.

        Raises:
            TransportError: If the request could not be sent or the response was unreadable
            SearchProviderError: If the provider reported that the search failed
        """

    @abstractmethod
    async def request_reindex(self) -> ReindexResponse:
        """
        Ask the provider to (re)build its index over the current store contents.

        Provider-reported failures are returned as ReindexResponse(accepted=False).

        Raises:
            TransportError: If the request could not be sent or the response was unreadable
        """

    async def close(self) -> None:
        """Release connections."""
