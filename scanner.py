"""
scanner.py — ScanOrchestrator: the two scan operations exposed to the host.

Each scan is synchronous and returns a complete list. Missing permission
fails fast with AccessDenied before the index is touched; an empty list
always means "no matching media".
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from config import MediascanConfig
from errors import AccessDenied
from media_index import SqliteMediaIndex
from permissions import PermissionGate
from query import MetadataQuery
from records import AudioRecord, VideoRecord
from thumbnails import ThumbnailCache, VideoFrameThumbnailer

logger = logging.getLogger(__name__)


class ScanOrchestrator:
    """Runs full video / audio scans against the media index."""

    def __init__(self, query: MetadataQuery, gate: PermissionGate) -> None:
        self.query = query
        self.gate = gate

    def scan_videos(self) -> list[VideoRecord]:
        self._require_access()
        start = time.monotonic()
        videos = self.query.query_videos()
        missing = sum(1 for v in videos if v.thumbnail_path is None)
        logger.info(
            "Video scan complete: %d videos (%d without thumbnail) in %.2fs",
            len(videos),
            missing,
            time.monotonic() - start,
        )
        return videos

    def scan_audio(self) -> list[AudioRecord]:
        self._require_access()
        start = time.monotonic()
        tracks = self.query.query_audio()
        logger.info(
            "Audio scan complete: %d tracks in %.2fs",
            len(tracks),
            time.monotonic() - start,
        )
        return tracks

    def _require_access(self) -> None:
        if not self.gate.is_granted():
            self.gate.request()
            raise AccessDenied()


def build_orchestrator(cfg: MediascanConfig, on_request=None) -> ScanOrchestrator:
    """Wire the SQLite index, OpenCV thumbnailer and grants file from *cfg*."""
    index = SqliteMediaIndex(Path(cfg.paths.index_db))
    th = cfg.thumbnails
    cache = ThumbnailCache(
        Path(cfg.paths.cache_dir),
        VideoFrameThumbnailer(index, dark_threshold=th.dark_threshold),
        size=(th.width, th.height),
        quality=th.quality,
        prefix=th.prefix,
        extension=th.extension,
    )
    gate = PermissionGate.from_file(
        Path(cfg.paths.grants_file).expanduser(),
        granular_media=cfg.permissions.granular_media,
        on_request=on_request,
    )
    return ScanOrchestrator(MetadataQuery(index, cache, workers=th.workers), gate)

