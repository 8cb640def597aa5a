"""Tests for the read-only SQLite media index."""

from __future__ import annotations

import sqlite3
from contextlib import closing

import pytest

from conftest import audio_row, video_row, write_index
from errors import AccessDenied
from media_index import ContentLocator, MediaCollection, SqliteMediaIndex


@pytest.fixture
def index(index_path):
    write_index(
        index_path,
        videos=[video_row(1, date_added=10), video_row(2, date_added=30)],
        audio=[audio_row(5, "B"), audio_row(6, "A", is_music=0)],
    )
    return SqliteMediaIndex(index_path)


class TestQuery:
    def test_projection_only(self, index):
        rows = index.query(MediaCollection.VIDEO, ["_id", "_data"])
        assert all(set(row) == {"_id", "_data"} for row in rows)

    def test_sort_order(self, index):
        rows = index.query(MediaCollection.VIDEO, ["_id"], sort_order="date_added DESC")
        assert [r["_id"] for r in rows] == [2, 1]

    def test_selection(self, index):
        rows = index.query(MediaCollection.AUDIO, ["_id"], selection="is_music != 0")
        assert [r["_id"] for r in rows] == [5]

    def test_unknown_projection_column(self, index):
        with pytest.raises(ValueError):
            index.query(MediaCollection.VIDEO, ["_id", "nope"])

    @pytest.mark.parametrize("selection", ["is_music = 1 OR 1=1", "nope != 0", "1"])
    def test_rejects_unsupported_selection(self, index, selection):
        with pytest.raises(ValueError):
            index.query(MediaCollection.AUDIO, ["_id"], selection=selection)

    def test_rejects_unknown_sort_column(self, index):
        with pytest.raises(ValueError):
            index.query(MediaCollection.VIDEO, ["_id"], sort_order="nope DESC")

    def test_columns(self, index):
        assert "resolution" in index.columns(MediaCollection.VIDEO)
        assert "is_music" in index.columns(MediaCollection.AUDIO)


class TestUnreachable:
    def test_missing_database(self, tmp_path):
        index = SqliteMediaIndex(tmp_path / "absent.db")
        with pytest.raises(AccessDenied):
            index.query(MediaCollection.VIDEO, ["_id"])

    def test_missing_collection(self, index_path):
        with closing(sqlite3.connect(index_path)) as conn:
            conn.execute("CREATE TABLE other (x INTEGER)")
            conn.commit()
        with pytest.raises(AccessDenied):
            SqliteMediaIndex(index_path).query(MediaCollection.AUDIO, ["_id"])

    def test_index_is_opened_read_only(self, index, index_path):
        before = index_path.read_bytes()
        index.query(MediaCollection.VIDEO, ["_id"])
        assert index_path.read_bytes() == before


class TestResolve:
    def test_locator_string(self):
        loc = ContentLocator(MediaCollection.VIDEO, 42)
        assert str(loc) == "content://media/external/video/media/42"

    def test_resolve_to_path(self, index):
        path = index.resolve(ContentLocator(MediaCollection.VIDEO, 2))
        assert path == "/sdcard/Movies/clip2.mp4"

    def test_resolve_unknown_id(self, index):
        assert index.resolve(ContentLocator(MediaCollection.VIDEO, 99)) is None
