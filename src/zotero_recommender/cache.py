"""Durable title -> Semantic Scholar paper ID cache.

The whole mapping lives in one JSON document. A ``null`` value records a
lookup that found no match (or failed); a missing key means the title was
never looked up.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from typing import Any

from zotero_recommender.exceptions import CacheCorruptError

logger = logging.getLogger(__name__)

CACHE_FILENAME = "paper_ids.json"


class PaperIdCache:
    """On-disk JSON cache of title lookups.

    Every ``set`` rewrites the full document atomically (temp file +
    ``os.replace``), so the file on disk always holds a complete mapping.
    Entries never expire.
    """

    def __init__(self, path: str | None, data: dict[str, str | None] | None = None) -> None:
        """Initialize the cache.

        Args:
            path: Path to the cache file. If None, the cache only lives in memory.
            data: Initial mapping.
        """
        self.path = path
        self.data: dict[str, str | None] = dict(data or {})

    @classmethod
    def load(cls, path: str) -> PaperIdCache:
        """Load the cache from ``path``, starting empty when the file is missing.

        Raises:
            CacheCorruptError: If the file is not a JSON object of strings/nulls.
        """
        if not os.path.exists(path):
            logger.debug("No cache at %s, starting empty", path)
            return cls(path)
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise CacheCorruptError(path, str(e)) from e
        except (OSError, UnicodeDecodeError) as e:
            raise CacheCorruptError(path, f"unreadable ({e})") from e
        _check_document(path, data)
        logger.debug("Loaded %d cached title(s) from %s", len(data), path)
        return cls(path, data)

    def contains(self, title: str) -> bool:
        return title in self.data

    def __contains__(self, title: object) -> bool:
        return isinstance(title, str) and self.contains(title)

    def __len__(self) -> int:
        return len(self.data)

    def get(self, title: str) -> str | None:
        """Return the cached paper ID (``None`` for no match).

        Raises:
            KeyError: If the title was never looked up.
        """
        return self.data[title]

    def set(self, title: str, paper_id: str | None) -> None:
        """Store a lookup result and flush the whole document to disk."""
        self.data[title] = paper_id
        self._save()

    def _save(self) -> None:
        """Save cache to disk atomically."""
        if not self.path:
            return
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        tmp = tempfile.NamedTemporaryFile(
            "w", delete=False, encoding="utf-8", suffix=".json", prefix=".tmp_paper_ids_", dir=directory
        )
        try:
            with tmp:
                json.dump(self.data, tmp, ensure_ascii=False)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp.name, self.path)
        except BaseException:
            # Leave the previous document in place and no temp file behind.
            with contextlib.suppress(OSError):
                os.unlink(tmp.name)
            raise


def _check_document(path: str, data: Any) -> None:
    if not isinstance(data, dict):
        raise CacheCorruptError(path, f"expected a JSON object, got {type(data).__name__}")
    for title, paper_id in data.items():
        if paper_id is not None and not isinstance(paper_id, str):
            raise CacheCorruptError(path, f"invalid paper ID for {title!r}: {paper_id!r}")
