"""
Semantic search: the provider interface, the Cloudflare AI Search provider,
and normalization of provider hits into memories.
"""

from .base import ContentChunk, ReindexResponse, SearchHit, SearchProvider, SearchRequest
from .cloudflare import CloudflareAISearchProvider
from .normalizer import NormalizedHit, QueryResultNormalizer, Recovered, Synthetic

__all__ = [
    'ContentChunk',
    'ReindexResponse',
    'SearchHit',
    'SearchProvider',
    'SearchRequest',
    'CloudflareAISearchProvider',
    'NormalizedHit',
    'QueryResultNormalizer',
    'Recovered',
    'Synthetic',
]
