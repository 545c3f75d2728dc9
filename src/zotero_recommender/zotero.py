"""Read-only access to the local Zotero database.

Provides the bibliography title query (optionally scoped to a collection)
and the collection tree, flattened into an indented list for selection.
"""

from __future__ import annotations

import locale
import logging
import os
import sqlite3
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from zotero_recommender.exceptions import ZoteroDatabaseError

logger = logging.getLogger(__name__)

# Zotero field ID of an item's title.
TITLE_FIELD_ID = 1

ITEM_TYPES = (
    "report",
    "thesis",
    "book",
    "bookSection",
    "manuscript",
    "conferencePaper",
    "journalArticle",
    "document",
    "preprint",
)

COLLECTIONS_QUERY = "select collectionID, collectionName, parentCollectionID from collections"

INDENT = "  "


@dataclass(frozen=True)
class CollectionNode:
    """A Zotero collection; ``parent_id`` is None for top-level collections."""

    collection_id: int
    name: str
    parent_id: int | None = None

    @classmethod
    def from_row(cls, row: sqlite3.Row | dict[str, Any]) -> CollectionNode:
        return cls(
            collection_id=row["collectionID"],
            name=row["collectionName"],
            parent_id=row["parentCollectionID"],
        )


def flatten_collections(
    nodes: Iterable[CollectionNode],
    root_id: int | None = None,
    depth: int = 0,
) -> list[str]:
    """Flatten a collection forest into indented display lines.

    Depth-first pre-order: each collection is followed by its children
    before its next sibling, siblings sorted by locale collation of their
    names. Every line is the name indented by two spaces per level.

    Args:
        nodes: All collections (a forest, assumed acyclic)
        root_id: Only emit the subtree below this collection (None = all roots)
        depth: Indentation level of the first emitted level
    """
    children: dict[int | None, list[CollectionNode]] = {}
    for node in nodes:
        children.setdefault(node.parent_id, []).append(node)
    for siblings in children.values():
        siblings.sort(key=lambda n: locale.strxfrm(n.name))

    lines: list[str] = []
    # Reversed push keeps the first sibling on top of the stack.
    stack = [(node, depth) for node in reversed(children.get(root_id, []))]
    while stack:
        node, level = stack.pop()
        lines.append(INDENT * level + node.name)
        stack.extend((child, level + 1) for child in reversed(children.get(node.collection_id, [])))
    return lines


def build_title_query(
    collection: str | None = None,
    include_subcollections: bool = True,
) -> tuple[str, tuple[str, ...]]:
    """Build the SQL that selects the distinct titles of bibliography items.

    With a collection name, items must belong to a collection of that name
    or, when ``include_subcollections`` is set, to a direct child of one.
    Deeper descendants are not matched. Collections sharing the name are all
    matched.

    Returns:
        ``(sql, params)`` ready for ``sqlite3.Connection.execute``.
    """
    placeholders = ", ".join("?" for _ in ITEM_TYPES)
    sql = f"""select distinct itemDataValues.value
  from itemDataValues
  join itemData on itemDataValues.valueID = itemData.valueID
  join items on items.itemID = itemData.itemID
  join itemTypes on items.itemTypeID = itemTypes.itemTypeID
  join collectionItems on collectionItems.itemID = items.itemID
  join collections on collections.collectionID = collectionItems.collectionID
  where itemData.fieldID = {TITLE_FIELD_ID}
  and itemTypes.typeName in ({placeholders})
  and items.itemID not in (select itemID from deletedItems)"""
    params: tuple[str, ...] = ITEM_TYPES

    if collection and include_subcollections:
        sql += """
  and (collections.collectionName = ?
    or collections.parentCollectionID in (
      select collectionID from collections where collectionName = ?))"""
        params += (collection, collection)
    elif collection:
        sql += "\n  and collections.collectionName = ?"
        params += (collection,)
    return sql, params


class ZoteroDatabase:
    """Read-only query interface over ``zotero.sqlite``.

    Each query opens its own connection and closes it afterwards.
    """

    def __init__(self, path: str) -> None:
        self.path = path

    def _connect(self) -> sqlite3.Connection:
        if not os.path.isfile(self.path):
            raise ZoteroDatabaseError(f"Zotero database not found: {self.path}")
        uri = Path(self.path).resolve().as_uri() + "?mode=ro"
        try:
            conn = sqlite3.connect(uri, uri=True)
        except sqlite3.Error as e:
            raise ZoteroDatabaseError(f"Cannot open Zotero database {self.path}: {e}") from e
        conn.row_factory = sqlite3.Row
        return conn

    def query(self, sql: str, params: tuple[Any, ...] = ()) -> list[sqlite3.Row]:
        """Run one read-only query and return all rows."""
        conn = self._connect()
        try:
            return conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise ZoteroDatabaseError(f"Zotero query failed on {self.path}: {e}") from e
        finally:
            conn.close()

    def fetch_titles(self, collection: str | None = None, include_subcollections: bool = True) -> list[str]:
        sql, params = build_title_query(collection, include_subcollections)
        titles = [row[0] for row in self.query(sql, params)]
        logger.debug("Read %d title(s) from %s", len(titles), self.path)
        return titles

    def fetch_collections(self) -> list[CollectionNode]:
        return [CollectionNode.from_row(row) for row in self.query(COLLECTIONS_QUERY)]
