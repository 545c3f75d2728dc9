"""Semantic Scholar recommendation requests."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from zotero_recommender.exceptions import TransportError
from zotero_recommender.utils import S2_MAX_INPUT_PAPERS, S2_RECOMMENDATIONS_URL, HttpClient

logger = logging.getLogger(__name__)

RECOMMENDATION_FIELDS = "title,authors,url,year,abstract,influentialCitationCount,citationCount"


@dataclass(frozen=True)
class RecommendedPaper:
    """A paper recommended by Semantic Scholar."""

    title: str
    authors: tuple[str, ...]
    url: str
    year: int | None
    abstract: str | None
    citation_count: int
    influential_citation_count: int
    paper_id: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> RecommendedPaper:
        """Build from one entry of the ``recommendedPapers`` response list."""
        authors = tuple(
            a["name"] for a in data.get("authors") or [] if isinstance(a, dict) and isinstance(a.get("name"), str)
        )
        return cls(
            title=data.get("title") or "",
            authors=authors,
            url=data.get("url") or "",
            year=data.get("year"),
            abstract=data.get("abstract"),
            citation_count=data.get("citationCount") or 0,
            influential_citation_count=data.get("influentialCitationCount") or 0,
            paper_id=data.get("paperId") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the Semantic Scholar field names."""
        return {
            "paperId": self.paper_id,
            "title": self.title,
            "authors": [{"name": name} for name in self.authors],
            "url": self.url,
            "year": self.year,
            "abstract": self.abstract,
            "citationCount": self.citation_count,
            "influentialCitationCount": self.influential_citation_count,
        }


class RecommendationRequester:
    """Request recommendations for a set of "positive" paper IDs."""

    def __init__(self, http: HttpClient, logger: logging.Logger | None = None) -> None:
        self.http = http
        self.logger = logger or logging.getLogger(__name__)

    def request(
        self,
        paper_ids: Sequence[str],
        limit: int,
        max_input: int = S2_MAX_INPUT_PAPERS,
    ) -> list[RecommendedPaper]:
        """Return up to ``limit`` recommendations in the provider's ranking.

        Only the first ``max_input`` IDs are sent. Failures are logged and
        yield an empty list, which callers must read as "no recommendations
        available".
        """
        if not paper_ids:
            return []
        self.logger.info("Requesting %d recommendations for %d papers.", limit, len(paper_ids))
        if len(paper_ids) > max_input:
            self.logger.warning(
                "Semantic Scholar accepts up to %d input papers; using the first %d of %d.",
                max_input,
                max_input,
                len(paper_ids),
            )
            paper_ids = paper_ids[:max_input]

        try:
            body = self.http.post_json(
                S2_RECOMMENDATIONS_URL,
                json_body={"positivePaperIds": list(paper_ids)},
                params={"fields": RECOMMENDATION_FIELDS, "limit": limit},
            )
        except TransportError as e:
            self.logger.error("Error requesting recommendations: %s", e)
            return []

        papers = body.get("recommendedPapers") if isinstance(body, dict) else None
        if not isinstance(papers, list):
            self.logger.error("Error requesting recommendations: response has no recommendedPapers list")
            return []
        return [RecommendedPaper.from_api(p) for p in papers if isinstance(p, dict)]
