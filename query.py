"""
query.py — MetadataQuery: read the media index and normalize its rows.

Videos: every row, newest first (date_added DESC), each with a cached
thumbnail. Audio: music rows only (is_music != 0), by title ascending.

A row without a usable id or path is dropped and logged; it never fails the
query. AccessDenied from the index propagates unchanged.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Any

from media_index import (
    ALBUM,
    ARTIST,
    DATA,
    DATE_ADDED,
    DISPLAY_NAME,
    DURATION,
    ID,
    IS_MUSIC,
    RESOLUTION,
    SIZE,
    TITLE,
    ContentLocator,
    MediaCollection,
    MediaIndex,
    Row,
)
from records import AudioRecord, RowResult, VideoRecord, duration_from_millis
from thumbnails import ThumbnailCache

logger = logging.getLogger(__name__)

VIDEO_PROJECTION: tuple[str, ...] = (ID, DISPLAY_NAME, DURATION, SIZE, DATA, DATE_ADDED)
VIDEO_SORT_ORDER = f"{DATE_ADDED} DESC"

AUDIO_PROJECTION: tuple[str, ...] = (
    ID, TITLE, ARTIST, ALBUM, DURATION, SIZE, DATA, DATE_ADDED,
)
AUDIO_SELECTION = f"{IS_MUSIC} != 0"
AUDIO_SORT_ORDER = f"{TITLE} ASC, {ID} ASC"


# ---------------------------------------------------------------------------
# Row helpers
# ---------------------------------------------------------------------------


def _as_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_count(value: Any) -> int:
    """Non-negative integer, 0 when missing or unreadable."""
    number = _as_int(value)
    return number if number is not None and number > 0 else 0


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _required(row: Row) -> tuple[int | None, str | None, str | None]:
    """Return (id, path, skip reason) for the required columns of *row*."""
    media_id = _as_int(row.get(ID))
    if media_id is None:
        return None, None, f"unreadable {ID}: {row.get(ID)!r}"
    path = row.get(DATA)
    if not isinstance(path, str) or not path:
        return media_id, None, f"missing {DATA} for id {media_id}"
    return media_id, path, None


def map_video_row(row: Row) -> RowResult:
    media_id, path, reason = _required(row)
    if reason:
        return RowResult.skip(reason)
    return RowResult.ok(
        VideoRecord(
            id=media_id,
            title=_as_text(row.get(DISPLAY_NAME)),
            path=path,
            duration_seconds=duration_from_millis(_as_count(row.get(DURATION))),
            size_bytes=_as_count(row.get(SIZE)),
            date_added=_as_int(row.get(DATE_ADDED)) or 0,
            resolution=_as_text(row.get(RESOLUTION)),
        )
    )


def map_audio_row(row: Row) -> RowResult:
    media_id, path, reason = _required(row)
    if reason:
        return RowResult.skip(reason)
    return RowResult.ok(
        AudioRecord(
            id=media_id,
            title=_as_text(row.get(TITLE)),
            artist=_as_text(row.get(ARTIST)),
            album=_as_text(row.get(ALBUM)),
            path=path,
            duration_seconds=duration_from_millis(_as_count(row.get(DURATION))),
            size_bytes=_as_count(row.get(SIZE)),
            date_added=_as_int(row.get(DATE_ADDED)) or 0,
        )
    )


def _has_required(available: frozenset[str], label: str) -> bool:
    missing = [c for c in (ID, DATA) if c not in available]
    if missing:
        logger.warning(
            "%s collection lacks %s; every row is dropped", label, ", ".join(missing)
        )
    return not missing


def _project(wanted: tuple[str, ...], available: frozenset[str]) -> tuple[str, ...]:
    """Columns of *wanted* the catalog has; absent ones read as missing values."""
    return tuple(c for c in wanted if c in available)


def _sort_order(sort_order: str, available: frozenset[str]) -> str | None:
    terms = [t for t in sort_order.split(",") if t.split()[0] in available]
    return ",".join(terms) or None


# ---------------------------------------------------------------------------
# MetadataQuery
# ---------------------------------------------------------------------------


class MetadataQuery:
    """Turns index rows into ordered VideoRecord / AudioRecord lists."""

    def __init__(
        self,
        index: MediaIndex,
        thumbnails: ThumbnailCache | None = None,
        workers: int = 1,
    ) -> None:
        self.index = index
        self.thumbnails = thumbnails
        self.workers = max(1, workers)

    def query_videos(self) -> list[VideoRecord]:
        available = self.index.columns(MediaCollection.VIDEO)
        if not _has_required(available, "video"):
            return []

        rows = self.index.query(
            MediaCollection.VIDEO,
            _project(VIDEO_PROJECTION + (RESOLUTION,), available),
            sort_order=_sort_order(VIDEO_SORT_ORDER, available),
        )
        records: list[VideoRecord] = self._collect(rows, map_video_row, "video")
        if self.thumbnails is None:
            return records
        return self._attach_thumbnails(records)

    def query_audio(self) -> list[AudioRecord]:
        available = self.index.columns(MediaCollection.AUDIO)
        if not _has_required(available, "audio"):
            return []
        # without the flag no row can be shown to be music
        if IS_MUSIC not in available:
            logger.warning("Audio collection has no %s column; no music listed", IS_MUSIC)
            return []

        rows = self.index.query(
            MediaCollection.AUDIO,
            _project(AUDIO_PROJECTION, available),
            selection=AUDIO_SELECTION,
            sort_order=_sort_order(AUDIO_SORT_ORDER, available),
        )
        return self._collect(rows, map_audio_row, "audio")

    def _collect(self, rows, mapper, label: str) -> list:
        records = []
        skipped = 0
        for row in rows:
            result = mapper(row)
            if result.skipped:
                logger.debug("Dropping %s row: %s", label, result.skip_reason)
                skipped += 1
                continue
            records.append(result.record)
        logger.info(
            "Index query complete: %d %s records, %d rows dropped",
            len(records),
            label,
            skipped,
        )
        return records

    def _attach_thumbnails(self, records: list[VideoRecord]) -> list[VideoRecord]:
        # Executor.map yields in input order, so the index ordering is kept
        if self.workers > 1 and len(records) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                paths = list(pool.map(self._thumbnail_for, records))
        else:
            paths = [self._thumbnail_for(record) for record in records]

        return [
            _with_thumbnail(record, path) for record, path in zip(records, paths)
        ]

    def _thumbnail_for(self, record: VideoRecord) -> str | None:
        locator = ContentLocator(MediaCollection.VIDEO, record.id)
        return self.thumbnails.get_or_create(record.id, locator)


def _with_thumbnail(record: VideoRecord, path: str | None) -> VideoRecord:
    if path is None:
        return record
    return replace(record, thumbnail_path=path)
