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
Query/result normalizer.

Builds provider search requests and turns the provider's generic documents
back into memories. The stored blob is the serialized memory, so most hits
decode cleanly (Recovered). Hits that don't (truncated chunks, foreign files
in the bucket) become best-effort Synthetic memories instead of failing the
whole search.
"""

import json
from dataclasses import dataclass
from typing import List, Optional, Union

from .base import SearchHit, SearchRequest
from .. import config
from ..models import Memory, MemorySource, ScoredMemory


@dataclass(frozen=True)
class Recovered:
    """A hit whose text decoded as a serialized memory."""
    result: ScoredMemory


@dataclass(frozen=True)
class Synthetic:
    """A hit rebuilt from raw text because it did not decode as a memory."""
    result: ScoredMemory


NormalizedHit = Union[Recovered, Synthetic]


def hit_text(hit: SearchHit) -> str:
    """Concatenate the text chunks of a hit, in order."""
    return "\n".join(chunk.text for chunk in hit.content if chunk.type == "text")


def decode_memory(text: str) -> Optional[Memory]:
    """Strictly decode a serialized memory, or return None."""
    try:
        return Memory.from_dict(json.loads(text))
    except (ValueError, RecursionError):
        return None


class QueryResultNormalizer:
    """Shapes search requests and normalizes provider hits into scored memories."""

    def __init__(
        self,
        default_limit: int = config.DEFAULT_SEARCH_LIMIT,
        max_results: int = config.MAX_SEARCH_RESULTS,
        score_threshold: float = config.SEARCH_SCORE_THRESHOLD
    ):
        self.default_limit = default_limit
        self.max_results = max_results
        self.score_threshold = score_threshold

    def clamp_limit(self, limit: Optional[int]) -> int:
        if not limit or limit < 1:
            return self.default_limit
        return min(limit, self.max_results)

    def build_request(self, query: str, limit: Optional[int] = None) -> SearchRequest:
        return SearchRequest(
            query=query,
            max_num_results=self.clamp_limit(limit),
            rewrite_query=True,
            score_threshold=self.score_threshold,
        )

    def normalize_hit(self, hit: SearchHit) -> NormalizedHit:
        text = hit_text(hit)
        memory = decode_memory(text)
        if memory is not None:
            return Recovered(ScoredMemory(memory=memory, score=hit.score))

        # createdAt is unrecoverable from the hit, so it is stamped now
        synthetic = Memory(
            id=hit.file_id,
            content=text,
            tags=[],
            source=MemorySource.AUTO,
        )
        return Synthetic(ScoredMemory(memory=synthetic, score=hit.score))

    def normalize(self, hits: List[SearchHit]) -> List[NormalizedHit]:
        return [self.normalize_hit(hit) for hit in hits]

    def scored_memories(self, hits: List[SearchHit]) -> List[ScoredMemory]:
        """Normalize hits and drop the Recovered/Synthetic distinction."""
        return [normalized.result for normalized in self.normalize(hits)]
