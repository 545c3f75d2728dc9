"""Shared fixtures for zotero_recommender tests."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from zotero_recommender import (
    HttpClient,
    IdentifierResolver,
    NotFound,
    PaperIdCache,
    RecommendedPaper,
    Resolution,
)
from zotero_recommender.resolver import Found


@pytest.fixture(autouse=True)
def no_s2_api_key(monkeypatch):
    """Keep a developer's S2_API_KEY out of the tests."""
    monkeypatch.delenv("S2_API_KEY", raising=False)


@pytest.fixture
def logger():
    """Create a test logger."""
    return logging.getLogger("test")


@pytest.fixture
def cache_file(tmp_path):
    return tmp_path / "zotero_cache" / "paper_ids.json"


@pytest.fixture
def cache(cache_file):
    """An empty cache backed by a file in tmp_path."""
    return PaperIdCache.load(str(cache_file))


@pytest.fixture
def mock_http():
    """Factory for an HttpClient whose requests are answered by ``handler``.

    Every request is appended to the returned list.
    """
    clients: list[HttpClient] = []

    def _create(handler: Callable[[httpx.Request], httpx.Response]) -> tuple[HttpClient, list[httpx.Request]]:
        requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        client = HttpClient(timeout=5.0, user_agent="test-agent", transport=httpx.MockTransport(_record))
        clients.append(client)
        return client, requests

    yield _create
    for client in clients:
        client.close()


class FakeHttpClient(HttpClient):
    """Fake HTTP client for testing without network calls."""

    def __init__(self):
        # Don't call parent __init__ to avoid setting up real HTTP
        pass

    def _request(self, method, url, params=None, json_body=None):
        raise NotImplementedError("FakeHttpClient does not make real requests")


@pytest.fixture
def fake_http():
    """Create a fake HTTP client."""
    return FakeHttpClient()


class FakeResolver(IdentifierResolver):
    """Resolver answering from a title -> paper ID mapping and counting calls."""

    def __init__(self, answers: dict[str, str | None] | None = None):
        self.logger = logging.getLogger("test")
        self.http = FakeHttpClient()
        self.answers = answers or {}
        self.calls: list[str] = []

    def resolve(self, title: str) -> Resolution:
        self.calls.append(title)
        paper_id = self.answers.get(title)
        return Found(paper_id) if paper_id else NotFound()


@pytest.fixture
def fake_resolver():
    """Factory fixture for creating fake resolvers."""

    def _create(answers: dict[str, str | None] | None = None) -> FakeResolver:
        return FakeResolver(answers)

    return _create


@pytest.fixture
def make_paper():
    """Factory fixture for RecommendedPaper instances."""

    def _make_paper(**kwargs) -> RecommendedPaper:
        values: dict[str, Any] = {
            "title": "Attention Is All You Need",
            "authors": ("Ashish Vaswani", "Noam Shazeer"),
            "url": "https://www.semanticscholar.org/paper/abc123",
            "year": 2017,
            "abstract": "The dominant sequence transduction models are based on recurrent networks.",
            "citation_count": 100,
            "influential_citation_count": 10,
            "paper_id": "abc123",
        }
        values.update(kwargs)
        return RecommendedPaper(**values)

    return _make_paper


# ------------- Zotero Database Fixtures -------------

ZOTERO_SCHEMA = """
create table itemTypes (itemTypeID integer primary key, typeName text);
create table items (itemID integer primary key, itemTypeID integer);
create table itemDataValues (valueID integer primary key, value text);
create table itemData (itemID integer, fieldID integer, valueID integer);
create table collections (
    collectionID integer primary key,
    collectionName text,
    parentCollectionID integer
);
create table collectionItems (collectionID integer, itemID integer);
create table deletedItems (itemID integer primary key);
"""


class ZoteroDbBuilder:
    """Builds a minimal zotero.sqlite with the tables the recommender reads."""

    TYPES = {"journalArticle": 1, "book": 2, "attachment": 3, "preprint": 4, "note": 5}

    def __init__(self, path: str) -> None:
        self.path = path
        self.conn = sqlite3.connect(path)
        self.conn.executescript(ZOTERO_SCHEMA)
        self.conn.executemany("insert into itemTypes values (?, ?)", [(v, k) for k, v in self.TYPES.items()])
        self._next_item = 1

    def add_collection(self, collection_id: int, name: str, parent_id: int | None = None) -> int:
        self.conn.execute("insert into collections values (?, ?, ?)", (collection_id, name, parent_id))
        return collection_id

    def add_item(
        self,
        title: str,
        collections: tuple[int, ...] = (),
        item_type: str = "journalArticle",
        deleted: bool = False,
    ) -> int:
        item_id = self._next_item
        self._next_item += 1
        self.conn.execute("insert into items values (?, ?)", (item_id, self.TYPES[item_type]))
        self.conn.execute("insert into itemDataValues values (?, ?)", (item_id, title))
        self.conn.execute("insert into itemData values (?, 1, ?)", (item_id, item_id))
        for collection_id in collections:
            self.conn.execute("insert into collectionItems values (?, ?)", (collection_id, item_id))
        if deleted:
            self.conn.execute("insert into deletedItems values (?)", (item_id,))
        return item_id

    def close(self) -> str:
        self.conn.commit()
        self.conn.close()
        return self.path


@pytest.fixture
def zotero_db_builder(tmp_path):
    """Factory for a ZoteroDbBuilder writing to tmp_path/zotero.sqlite."""
    return ZoteroDbBuilder(str(tmp_path / "zotero.sqlite"))


@pytest.fixture
def sample_zotero_db(zotero_db_builder):
    """A library with a small collection tree.

    ML (1)
      Transformers (2)
        BERT (4)
    Audio (3)
    """
    b = zotero_db_builder
    b.add_collection(1, "ML")
    b.add_collection(2, "Transformers", 1)
    b.add_collection(3, "Audio")
    b.add_collection(4, "BERT", 2)
    b.add_item("Deep Learning", collections=(1,))
    b.add_item("Attention Is All You Need", collections=(2,))
    b.add_item("BERT: Pre-training of Deep Bidirectional Transformers", collections=(4,))
    b.add_item("Soundscape Ecology", collections=(3,), item_type="book")
    b.add_item("Supplementary PDF", collections=(1,), item_type="attachment")
    b.add_item("Retracted Paper", collections=(1,), deleted=True)
    return b.close()
