"""Tests for the channel method dispatcher."""

from __future__ import annotations

import json

import pytest

from conftest import FakeGenerator, audio_row, write_index
from dispatch import CHANNEL, MethodResult, ResultStatus, ScanDispatcher
from errors import AccessDenied
from media_index import SqliteMediaIndex
from permissions import Permission, PermissionGate
from query import MetadataQuery
from scanner import ScanOrchestrator
from thumbnails import ThumbnailCache


def _dispatcher(index_path, cache_dir, granted=True):
    grants = [Permission.READ_MEDIA_VIDEO, Permission.READ_MEDIA_AUDIO] if granted else []
    query = MetadataQuery(
        SqliteMediaIndex(index_path), ThumbnailCache(cache_dir, FakeGenerator())
    )
    return ScanDispatcher(ScanOrchestrator(query, PermissionGate(grants)))


@pytest.fixture
def audio_index(index_path):
    return write_index(index_path, audio=[
        audio_row(1, "Ringtone", is_music=0),
        audio_row(2, "Song A", artist="Someone"),
    ])


class TestScanDispatcher:
    def test_channel_name(self):
        assert CHANNEL == "com.mediamanager/scanner"

    def test_methods(self, audio_index, cache_dir):
        assert _dispatcher(audio_index, cache_dir).methods == ["scanVideos", "scanAudio"]

    def test_scan_audio_payload(self, audio_index, cache_dir):
        result = _dispatcher(audio_index, cache_dir).handle("scanAudio")
        assert result.ok
        assert result.payload == [{
            "id": 2,
            "title": "Song A",
            "artist": "Someone",
            "album": None,
            "duration": 180,
            "size": 4_000_000,
            "path": "/sdcard/Music/2.mp3",
            "dateAdded": 100,
        }]

    def test_empty_is_success(self, audio_index, cache_dir):
        result = _dispatcher(audio_index, cache_dir).handle("scanVideos")
        assert result.status is ResultStatus.SUCCESS
        assert result.payload == []

    @pytest.mark.parametrize("method", ["scanVideos", "scanAudio"])
    def test_permission_denied(self, audio_index, cache_dir, method):
        result = _dispatcher(audio_index, cache_dir, granted=False).handle(method)
        assert result.status is ResultStatus.ERROR
        assert result.code == "PERMISSION_DENIED"
        assert result.message == "Storage permission required"
        assert result.payload is None

    def test_unreachable_index(self, tmp_path, cache_dir):
        result = _dispatcher(tmp_path / "gone.db", cache_dir).handle("scanAudio")
        assert result.status is ResultStatus.ERROR
        assert result.code == AccessDenied.code

    def test_unknown_method(self, audio_index, cache_dir):
        result = _dispatcher(audio_index, cache_dir).handle("scanPhotos")
        assert result.status is ResultStatus.NOT_IMPLEMENTED
        assert not result.ok
        assert "scanPhotos" in result.message


class TestMethodResult:
    def test_success_dict_is_json(self):
        d = MethodResult.success([{"id": 1, "thumbnail": None}]).to_dict()
        assert json.loads(json.dumps(d)) == {
            "status": "success",
            "result": [{"id": 1, "thumbnail": None}],
        }

    def test_error_dict(self):
        d = MethodResult.error("PERMISSION_DENIED", "Storage permission required").to_dict()
        assert d == {
            "status": "error",
            "code": "PERMISSION_DENIED",
            "message": "Storage permission required",
            "details": None,
        }

    def test_not_implemented_dict(self):
        d = MethodResult.not_implemented("x").to_dict()
        assert d["status"] == "not_implemented"
        assert d["code"] == "NOT_IMPLEMENTED"


class TestSparseCatalogDispatch:
    def test_missing_size_column_still_succeeds(self, index_path, cache_dir):
        write_index(
            index_path,
            videos=[{"_id": 1, "_display_name": "a.mp4", "_data": "/m/a.mp4",
                     "date_added": 1}],
            video_schema="CREATE TABLE video (_id INTEGER, _display_name TEXT, "
                         "_data TEXT, date_added INTEGER)",
        )
        result = _dispatcher(index_path, cache_dir).handle("scanVideos")
        assert result.ok
        [record] = result.payload
        assert record["size"] == 0
        assert record["duration"] == 0
        assert record["thumbnail"] is not None
