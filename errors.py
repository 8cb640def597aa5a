"""
errors.py — scan failure conditions surfaced to the host.

Only whole-scan preconditions are raised out of a scan. Per-row problems are
reported through records.RowResult and thumbnail failures never leave
thumbnails.ThumbnailCache.
"""

from __future__ import annotations


class ScanError(Exception):
    """Base class carrying a machine-readable reason code."""

    code = "SCAN_ERROR"
    default_message = "Scan failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class AccessDenied(ScanError):
    """The media index cannot be queried (no grant, or access revoked)."""

    code = "PERMISSION_DENIED"
    default_message = "Storage permission required"


class UnknownOperation(ScanError):
    code = "NOT_IMPLEMENTED"
    default_message = "Method not implemented"

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(f"Method not implemented: {method!r}")


class ThumbnailUnavailable(ScanError):
    """Raised by thumbnail generators; always handled by the cache."""

    code = "THUMBNAIL_UNAVAILABLE"
    default_message = "Thumbnail could not be generated"
