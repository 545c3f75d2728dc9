"""Error types for the Zotero recommender.

``TransportError`` is recovered locally by the resolver and the
recommendation requester. ``CacheCorruptError`` and ``ZoteroDatabaseError``
are fatal and end the run before any resolution work. ``EmptyResolutionError``
ends the run gracefully without a recommendation request.
"""

from __future__ import annotations


class RecommenderError(Exception):
    """Base class for all recommender errors."""


class TransportError(RecommenderError):
    """A Semantic Scholar request failed at the network or HTTP level."""

    def __init__(self, url: str, message: str, status_code: int | None = None) -> None:
        self.url = url
        self.status_code = status_code
        if status_code is not None:
            message = f"HTTP {status_code}: {message}"
        super().__init__(message)


class CacheCorruptError(RecommenderError):
    """The on-disk paper ID cache is not a valid JSON object."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Cache file {path} is corrupt: {reason}")


class EmptyResolutionError(RecommenderError):
    """None of the bibliography titles resolved to a Semantic Scholar paper."""

    def __init__(self, title_count: int) -> None:
        self.title_count = title_count
        super().__init__(f"No papers found in Semantic Scholar ({title_count} title(s) searched)")


class ZoteroDatabaseError(RecommenderError):
    """The Zotero SQLite database is missing or could not be queried."""
