"""Zotero Recommender - Semantic Scholar recommendations for a Zotero library.

This package provides tools for:
- Reading bibliography titles and the collection tree from zotero.sqlite
- Resolving titles to Semantic Scholar paper IDs with a durable cache
- Requesting content-based recommendations for the resolved papers

Example usage:
    from zotero_recommender import (
        HttpClient, IdentifierResolver, PaperIdCache, RecommendationRequester, resolve_all
    )

    cache = PaperIdCache.load("paper_ids.json")
    with HttpClient(timeout=20.0, user_agent="me") as http:
        paper_ids = resolve_all(titles, cache, IdentifierResolver(http))
        papers = RecommendationRequester(http).request(paper_ids, limit=10)
"""

from zotero_recommender._version import __version__
from zotero_recommender.cache import PaperIdCache
from zotero_recommender.config import RecommenderConfig
from zotero_recommender.exceptions import (
    CacheCorruptError,
    EmptyResolutionError,
    RecommenderError,
    TransportError,
    ZoteroDatabaseError,
)
from zotero_recommender.recommender import RecommendationRequester, RecommendedPaper
from zotero_recommender.resolver import (
    Found,
    IdentifierResolver,
    NotFound,
    Resolution,
    ResolutionStats,
    resolve_all,
)
from zotero_recommender.utils import HttpClient, RateLimiter
from zotero_recommender.zotero import (
    CollectionNode,
    ZoteroDatabase,
    build_title_query,
    flatten_collections,
)

__all__ = [
    "__version__",
    # Core classes
    "HttpClient",
    "IdentifierResolver",
    "PaperIdCache",
    "RateLimiter",
    "RecommendationRequester",
    "RecommendedPaper",
    "RecommenderConfig",
    "ZoteroDatabase",
    # Resolution results
    "Found",
    "NotFound",
    "Resolution",
    "ResolutionStats",
    "resolve_all",
    # Collections
    "CollectionNode",
    "build_title_query",
    "flatten_collections",
    # Errors
    "CacheCorruptError",
    "EmptyResolutionError",
    "RecommenderError",
    "TransportError",
    "ZoteroDatabaseError",
]
