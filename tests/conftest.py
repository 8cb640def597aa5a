"""Shared fixtures: a SQLite media catalog and fake thumbnail generators."""

from __future__ import annotations

import sqlite3
import sys
from contextlib import closing
from pathlib import Path

import pytest
from PIL import Image

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from errors import ThumbnailUnavailable  # noqa: E402

VIDEO_SCHEMA = """
CREATE TABLE video (
    _id INTEGER,
    _display_name TEXT,
    title TEXT,
    duration INTEGER,
    _size INTEGER,
    _data TEXT,
    date_added INTEGER,
    resolution TEXT
)
"""

VIDEO_SCHEMA_NO_RESOLUTION = """
CREATE TABLE video (
    _id INTEGER,
    _display_name TEXT,
    title TEXT,
    duration INTEGER,
    _size INTEGER,
    _data TEXT,
    date_added INTEGER
)
"""

AUDIO_SCHEMA = """
CREATE TABLE audio (
    _id INTEGER,
    _display_name TEXT,
    title TEXT,
    artist TEXT,
    album TEXT,
    duration INTEGER,
    _size INTEGER,
    _data TEXT,
    date_added INTEGER,
    is_music INTEGER
)
"""


def write_index(
    db_path: Path,
    videos: list[dict] = (),
    audio: list[dict] = (),
    video_schema: str = VIDEO_SCHEMA,
    audio_schema: str = AUDIO_SCHEMA,
) -> Path:
    """Create a media catalog at *db_path* holding the given rows."""
    with closing(sqlite3.connect(db_path)) as conn:
        conn.execute(video_schema)
        conn.execute(audio_schema)
        for table, rows in (("video", videos), ("audio", audio)):
            for row in rows:
                cols = ", ".join(row)
                marks = ", ".join("?" for _ in row)
                conn.execute(
                    f"INSERT INTO {table} ({cols}) VALUES ({marks})",
                    tuple(row.values()),
                )
        conn.commit()
    return db_path


def video_row(media_id, title=None, duration=60_000, size=1000, date_added=0, path=None):
    return {
        "_id": media_id,
        "_display_name": title or f"clip{media_id}.mp4",
        "duration": duration,
        "_size": size,
        "_data": path if path is not None else f"/sdcard/Movies/clip{media_id}.mp4",
        "date_added": date_added,
    }


def audio_row(media_id, title, is_music=1, artist=None, album=None, path=None):
    return {
        "_id": media_id,
        "_display_name": f"{title}.mp3",
        "title": title,
        "artist": artist,
        "album": album,
        "duration": 180_500,
        "_size": 4_000_000,
        "_data": path if path is not None else f"/sdcard/Music/{media_id}.mp3",
        "date_added": 100,
        "is_music": is_music,
    }


class FakeGenerator:
    """Returns a solid image, or fails for the ids in *fail_ids*."""

    def __init__(self, fail_ids=()) -> None:
        self.fail_ids = set(fail_ids)
        self.calls: list[int] = []

    def generate(self, locator, size):
        self.calls.append(locator.media_id)
        if locator.media_id in self.fail_ids:
            raise ThumbnailUnavailable(f"corrupt video {locator.media_id}")
        return Image.new("RGB", size, (200, 40, 40))


@pytest.fixture
def index_path(tmp_path):
    return tmp_path / "media_index.db"


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "thumbs"


@pytest.fixture
def generator():
    return FakeGenerator()
