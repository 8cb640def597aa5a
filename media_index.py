"""
media_index.py — read-only access to the device media index.

The index is a catalog maintained by the platform, not by mediascan. It is
exposed here as a tabular query interface (column projection, a boolean row
filter and a sort order) over two fixed collections.

SqliteMediaIndex reads a pre-populated SQLite catalog whose tables use the
platform column names:

    video(_id, _display_name, title, duration, _size, _data, date_added, resolution)
    audio(_id, _display_name, title, artist, album, duration, _size, _data,
          date_added, is_music)
"""

from __future__ import annotations

import logging
import re
import sqlite3
from contextlib import closing
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Protocol, Sequence

from errors import AccessDenied

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Column names
# ---------------------------------------------------------------------------

ID = "_id"
DISPLAY_NAME = "_display_name"
TITLE = "title"
ARTIST = "artist"
ALBUM = "album"
DURATION = "duration"
SIZE = "_size"
DATA = "_data"
DATE_ADDED = "date_added"
RESOLUTION = "resolution"
IS_MUSIC = "is_music"

_SORT_TERM = re.compile(r"^\s*(\w+)(?:\s+(ASC|DESC))?\s*$", re.IGNORECASE)
_SELECTION = re.compile(r"^\s*(\w+)\s*(=|!=|<>|<|<=|>|>=)\s*(-?\d+)\s*$")


class MediaCollection(Enum):
    VIDEO = "video"
    AUDIO = "audio"


@dataclass(frozen=True)
class ContentLocator:
    """Opaque handle for one item in the index; not a filesystem path."""

    collection: MediaCollection
    media_id: int

    def __str__(self) -> str:
        return f"content://media/external/{self.collection.value}/media/{self.media_id}"


Row = Mapping[str, Any]


class MediaIndex(Protocol):
    def columns(self, collection: MediaCollection) -> frozenset[str]: ...

    def query(
        self,
        collection: MediaCollection,
        projection: Sequence[str],
        selection: str | None = None,
        sort_order: str | None = None,
    ) -> list[Row]: ...

    def resolve(self, locator: ContentLocator) -> str | None: ...


# ---------------------------------------------------------------------------
# SQLite-backed index
# ---------------------------------------------------------------------------


class SqliteMediaIndex:
    """Read-only view of a SQLite media catalog.

    Every failure to open or read the catalog is reported as AccessDenied:
    callers must be able to tell "zero matches" from "cannot query".
    A connection is opened per call so the index can be shared across
    worker threads.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path).expanduser()

    def _connect(self) -> sqlite3.Connection:
        uri = f"{self.db_path.resolve().as_uri()}?mode=ro"
        try:
            conn = sqlite3.connect(uri, uri=True)
        except sqlite3.Error as exc:
            raise AccessDenied(f"Cannot open media index {self.db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        return conn

    def _execute(self, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        try:
            with closing(self._connect()) as conn:
                return conn.execute(sql, params).fetchall()
        except AccessDenied:
            raise
        except sqlite3.Error as exc:
            raise AccessDenied(f"Cannot query media index {self.db_path}: {exc}") from exc

    def columns(self, collection: MediaCollection) -> frozenset[str]:
        rows = self._execute(f'PRAGMA table_info("{collection.value}")')
        if not rows:
            raise AccessDenied(
                f"Media index {self.db_path} has no {collection.value} collection"
            )
        return frozenset(row["name"] for row in rows)

    def query(
        self,
        collection: MediaCollection,
        projection: Sequence[str],
        selection: str | None = None,
        sort_order: str | None = None,
    ) -> list[Row]:
        known = self.columns(collection)
        for column in projection:
            if column not in known:
                raise ValueError(f"Unknown {collection.value} column: {column!r}")

        sql = f'SELECT {", ".join(projection)} FROM "{collection.value}"'
        if selection:
            sql += f" WHERE {_check_selection(selection, known)}"
        if sort_order:
            sql += f" ORDER BY {_check_sort_order(sort_order, known)}"

        logger.debug("Index query: %s", sql)
        return [dict(row) for row in self._execute(sql)]

    def resolve(self, locator: ContentLocator) -> str | None:
        rows = self._execute(
            f'SELECT {DATA} FROM "{locator.collection.value}" WHERE {ID} = ?',
            (locator.media_id,),
        )
        return rows[0][DATA] if rows else None


def _check_selection(selection: str, known: frozenset[str]) -> str:
    """Accept a single `column <op> integer` predicate on a known column."""
    match = _SELECTION.match(selection)
    if not match or match.group(1) not in known:
        raise ValueError(f"Unsupported selection: {selection!r}")
    return f"{match.group(1)} {match.group(2)} {match.group(3)}"


def _check_sort_order(sort_order: str, known: frozenset[str]) -> str:
    terms = []
    for term in sort_order.split(","):
        match = _SORT_TERM.match(term)
        if not match or match.group(1) not in known:
            raise ValueError(f"Unsupported sort order: {sort_order!r}")
        terms.append(f"{match.group(1)} {(match.group(2) or 'ASC').upper()}")
    return ", ".join(terms)
