"""
thumbnails.py — ThumbnailCache: one preview image per video id, kept on disk.

Cache layout:
    <cache_dir>/thumb_<video id>.jpg

A cached file is returned as-is. Nothing checks that it still matches the
video: if the index reuses an id for different content the old preview keeps
being served until the cache is cleared.

Generation goes through a ThumbnailGenerator. VideoFrameThumbnailer, the
default, decodes a frame with OpenCV and hands back a Pillow image.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

import cv2
import numpy as np
from PIL import Image

from errors import ThumbnailUnavailable
from media_index import ContentLocator, MediaIndex

logger = logging.getLogger(__name__)

DEFAULT_SIZE = (640, 480)
DEFAULT_QUALITY = 80

# Positions tried, as a fraction of the frame count
SAMPLE_POSITIONS = (0.1, 0.25, 0.5, 0.0)


class ThumbnailGenerator(Protocol):
    def generate(self, locator: ContentLocator, size: tuple[int, int]) -> Image.Image:
        """Return a decoded preview image, or raise."""
        ...


# ---------------------------------------------------------------------------
# OpenCV frame grabber
# ---------------------------------------------------------------------------


class VideoFrameThumbnailer:
    """
    Produces a preview from a frame of the video itself.

    Frames that are almost black (fade-ins, title cards) are passed over in
    favour of a later sample; if every sample is dark the first decodable
    one is used.
    """

    def __init__(self, index: MediaIndex, dark_threshold: float = 12.0) -> None:
        self.index = index
        self.dark_threshold = dark_threshold

    def generate(self, locator: ContentLocator, size: tuple[int, int]) -> Image.Image:
        path = self.index.resolve(locator)
        if not path:
            raise ThumbnailUnavailable(f"No file behind {locator}")

        frame = self._grab_frame(Path(path))
        # Convert BGR (OpenCV) → RGB
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        img = Image.fromarray(rgb)
        img.thumbnail(size)
        return img

    def _grab_frame(self, path: Path) -> np.ndarray:
        cap = cv2.VideoCapture(str(path))
        if not cap.isOpened():
            raise ThumbnailUnavailable(f"Cannot open video: {path}")

        fallback: np.ndarray | None = None
        try:
            frame_count = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))
            for position in SAMPLE_POSITIONS:
                if frame_count > 0:
                    cap.set(cv2.CAP_PROP_POS_FRAMES, int(frame_count * position))
                ret, frame = cap.read()
                if not ret or frame is None or frame.size == 0:
                    continue
                if fallback is None:
                    fallback = frame
                if float(np.mean(frame)) >= self.dark_threshold:
                    return frame
                logger.debug(
                    "Dark frame at %.0f%% of %s, trying next position",
                    position * 100,
                    path.name,
                )
        finally:
            cap.release()

        if fallback is None:
            raise ThumbnailUnavailable(f"No decodable frame in {path}")
        return fallback


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


class ThumbnailCache:
    """
    Maps a video id to a JPEG preview in *cache_dir*.

    Concurrent callers may race on the same id. Both produce an equivalent
    image and each write lands through os.replace, so whichever finishes
    last wins and readers never see a half-written file.
    """

    def __init__(
        self,
        cache_dir: Path,
        generator: ThumbnailGenerator,
        size: tuple[int, int] = DEFAULT_SIZE,
        quality: int = DEFAULT_QUALITY,
        prefix: str = "thumb_",
        extension: str = ".jpg",
    ) -> None:
        self.cache_dir = Path(cache_dir).expanduser()
        self.generator = generator
        self.size = size
        self.quality = quality
        self.prefix = prefix
        self.extension = extension

    def path_for(self, video_id: int) -> Path:
        return self.cache_dir / f"{self.prefix}{video_id}{self.extension}"

    def get_or_create(self, video_id: int, locator: ContentLocator) -> str | None:
        """Return the cached thumbnail path for *video_id*, generating it once if needed.

        Returns None when no thumbnail can be produced; this never raises.
        """
        thumb_path = self.path_for(video_id)
        try:
            if thumb_path.exists():
                logger.debug("Thumbnail cache hit: %s", thumb_path.name)
                return str(thumb_path.resolve())
        except OSError as exc:
            logger.warning("Cannot read thumbnail cache %s: %s", self.cache_dir, exc)
            return None

        try:
            img = self.generator.generate(locator, self.size)
        except Exception as exc:
            logger.warning("Thumbnail unavailable for video %s: %s", video_id, exc)
            return None

        try:
            self._write(img, thumb_path)
            written = str(thumb_path.resolve())
        except Exception as exc:
            logger.warning("Could not save thumbnail %s: %s", thumb_path, exc)
            return None

        logger.debug("Thumbnail written: %s", thumb_path.name)
        return written

    def _write(self, img: Image.Image, thumb_path: Path) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        if img.mode not in ("RGB", "L"):
            img = img.convert("RGB")

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{thumb_path.stem}.", suffix=".tmp", dir=self.cache_dir
        )
        try:
            with os.fdopen(fd, "wb") as fh:
                img.save(fh, format="JPEG", quality=self.quality)
            os.replace(tmp_name, thumb_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def clear(self) -> int:
        """Delete every cached thumbnail. Returns the number removed."""
        return clear_cache(self.cache_dir, self.prefix, self.extension)


def clear_cache(cache_dir: Path, prefix: str = "thumb_", extension: str = ".jpg") -> int:
    if not cache_dir.is_dir():
        return 0
    removed = 0
    for thumb in cache_dir.glob(f"{prefix}*{extension}"):
        try:
            thumb.unlink()
            removed += 1
        except OSError as exc:
            logger.warning("Could not remove thumbnail %s: %s", thumb.name, exc)
    logger.info("Cleared %d cached thumbnails from %s", removed, cache_dir)
    return removed
