"""
records.py — normalized media records produced by a scan.

Serialized shapes (keys are always present, missing values are None):

    video: id, title, duration, size, path, dateAdded, thumbnail
    audio: id, title, artist, album, duration, size, path, dateAdded
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Union


class MediaKind(Enum):
    VIDEO = auto()
    AUDIO = auto()


def duration_from_millis(millis: int) -> int:
    """Whole seconds in *millis*, truncated and never negative."""
    if millis <= 0:
        return 0
    return millis // 1000


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VideoRecord:
    id: int
    title: str | None
    path: str
    duration_seconds: int = 0
    size_bytes: int = 0
    date_added: int = 0
    thumbnail_path: str | None = None
    # informational only, not part of the serialized shape
    resolution: str | None = field(default=None, compare=False)

    kind = MediaKind.VIDEO

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "duration": self.duration_seconds,
            "size": self.size_bytes,
            "path": self.path,
            "dateAdded": self.date_added,
            "thumbnail": self.thumbnail_path,
        }


@dataclass(frozen=True)
class AudioRecord:
    id: int
    title: str | None
    path: str
    artist: str | None = None
    album: str | None = None
    duration_seconds: int = 0
    size_bytes: int = 0
    date_added: int = 0

    kind = MediaKind.AUDIO

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "duration": self.duration_seconds,
            "size": self.size_bytes,
            "path": self.path,
            "dateAdded": self.date_added,
        }


MediaRecord = Union[VideoRecord, AudioRecord]


# ---------------------------------------------------------------------------
# Per-row outcome
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RowResult:
    """Outcome of mapping one index row: a record, or a reason to skip it."""

    record: MediaRecord | None = None
    skip_reason: str | None = None

    @classmethod
    def ok(cls, record: MediaRecord) -> RowResult:
        return cls(record=record)

    @classmethod
    def skip(cls, reason: str) -> RowResult:
        return cls(skip_reason=reason)

    @property
    def skipped(self) -> bool:
        return self.record is None
