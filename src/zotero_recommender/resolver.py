"""Title -> Semantic Scholar paper ID resolution.

``IdentifierResolver`` performs one fuzzy-match lookup per title;
``resolve_all`` drives it over a bibliography, consulting and updating the
``PaperIdCache`` so that titles are only looked up once.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol, Union

from zotero_recommender.cache import PaperIdCache
from zotero_recommender.exceptions import TransportError
from zotero_recommender.utils import S2_MATCH_URL, HttpClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Found:
    """The match endpoint returned a paper for the title."""

    paper_id: str


@dataclass(frozen=True)
class NotFound:
    """No paper for the title.

    ``reason`` tells an empty result set apart from a failed request in the
    logs. Both are cached the same way (as ``null``), so a transient failure
    sticks until the next ``--force-update`` run.
    """

    reason: str = "no match"


Resolution = Union[Found, NotFound]


def resolution_to_cache_value(resolution: Resolution) -> str | None:
    return resolution.paper_id if isinstance(resolution, Found) else None


class Progress(Protocol):
    def update(self, n: int = 1) -> object: ...


class IdentifierResolver:
    """Look up a single title with the Semantic Scholar match endpoint."""

    def __init__(self, http: HttpClient, logger: logging.Logger | None = None) -> None:
        self.http = http
        self.logger = logger or logging.getLogger(__name__)

    def resolve(self, title: str) -> Resolution:
        """Return the paper ID of the best match for ``title``.

        Never raises: request failures and empty results become ``NotFound``
        and are logged so the run can continue with the next title.
        """
        try:
            body = self.http.get_json(S2_MATCH_URL, params={"query": title})
        except TransportError as e:
            self.logger.warning('Error searching for "%s": %s', title, e)
            return NotFound(reason=str(e))

        paper_id = _first_paper_id(body)
        if paper_id is None:
            self.logger.warning('No match for "%s"', title)
            return NotFound()
        self.logger.debug('Matched "%s" -> %s', title, paper_id)
        return Found(paper_id)


def _first_paper_id(body: object) -> str | None:
    if not isinstance(body, dict):
        return None
    data = body.get("data") or []
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        return None
    paper_id = data[0].get("paperId")
    return paper_id if isinstance(paper_id, str) and paper_id else None


@dataclass
class ResolutionStats:
    """Counters for a ``resolve_all`` run."""

    titles: int = 0
    lookups: int = 0
    cache_hits: int = 0
    resolved: int = 0
    not_found: int = 0


def resolve_all(
    titles: Iterable[str],
    cache: PaperIdCache,
    resolver: IdentifierResolver,
    force_update: bool = False,
    progress: Progress | None = None,
    stats: ResolutionStats | None = None,
) -> list[str]:
    """Resolve every title to a paper ID, in order, one title at a time.

    A title is looked up when it has no cache entry, or when its entry is
    "no match" and ``force_update`` is set. Everything else is served from
    the cache without a network call. Each lookup result is written to the
    cache before the next title is processed.

    Args:
        titles: Bibliography titles; duplicates share one cache entry
        cache: The paper ID cache
        resolver: Resolver used for cache misses
        force_update: Retry titles previously cached as "no match"
        progress: Optional progress bar, ticked once per title
        stats: Optional counters filled in during the run

    Returns:
        The distinct paper IDs found, in order of first occurrence.
    """
    stats = stats if stats is not None else ResolutionStats()
    found: dict[str, None] = {}

    for title in titles:
        stats.titles += 1
        if cache.contains(title) and (cache.get(title) is not None or not force_update):
            paper_id = cache.get(title)
            stats.cache_hits += 1
        else:
            stats.lookups += 1
            paper_id = resolution_to_cache_value(resolver.resolve(title))
            cache.set(title, paper_id)

        if paper_id is None:
            stats.not_found += 1
        else:
            stats.resolved += 1
            found.setdefault(paper_id, None)

        if progress is not None:
            progress.update(1)

    logger.debug(
        "Resolution: titles=%d, lookups=%d, cache_hits=%d, resolved=%d, not_found=%d",
        stats.titles,
        stats.lookups,
        stats.cache_hits,
        stats.resolved,
        stats.not_found,
    )
    return list(found)
