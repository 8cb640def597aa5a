"""
config.py — load and validate mediascan configuration.

Search order (later entries override earlier):
  1. Built-in defaults
  2. /etc/mediascan/mediascan.conf   (system-wide, if present)
  3. ~/.config/mediascan/mediascan.conf  (user)
  4. --config FILE (optional)
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

# ---------------------------------------------------------------------------
# Default configuration values
# ---------------------------------------------------------------------------

SYSTEM_CONF = Path("/etc/mediascan/mediascan.conf")
USER_CONF = Path.home() / ".config" / "mediascan" / "mediascan.conf"

DEFAULT_INDEX_DB = str(
    Path.home() / ".local" / "share" / "mediascan" / "media_index.db"
)
DEFAULT_CACHE_DIR = str(Path.home() / ".cache" / "mediascan" / "thumbnails")
DEFAULT_GRANTS_FILE = str(Path.home() / ".config" / "mediascan" / "grants.conf")
DEFAULT_LOG_FILE = str(
    Path.home() / ".local" / "share" / "mediascan" / "logs" / "mediascan.log"
)


# ---------------------------------------------------------------------------
# Dataclasses representing the full config
# ---------------------------------------------------------------------------


@dataclass
class PathsConfig:
    index_db: str = DEFAULT_INDEX_DB
    cache_dir: str = DEFAULT_CACHE_DIR
    grants_file: str = DEFAULT_GRANTS_FILE


@dataclass
class ThumbnailConfig:
    width: int = 640                # size hint, not a guaranteed output size
    height: int = 480
    quality: int = 80               # JPEG, 0-100
    prefix: str = "thumb_"
    extension: str = ".jpg"
    workers: int = 1                # >1 generates thumbnails in parallel
    dark_threshold: float = 12.0    # mean pixel value below which a frame is skipped


@dataclass
class PermissionsConfig:
    granular_media: bool = True


@dataclass
class LoggingConfig:
    level: str = "INFO"
    log_file: str = DEFAULT_LOG_FILE


@dataclass
class MediascanConfig:
    paths: PathsConfig = field(default_factory=PathsConfig)
    thumbnails: ThumbnailConfig = field(default_factory=ThumbnailConfig)
    permissions: PermissionsConfig = field(default_factory=PermissionsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


def _merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base*, returning a new dict."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_toml(path: Path) -> dict:
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except FileNotFoundError:
        return {}
    except Exception as exc:
        raise ValueError(f"Failed to parse config file {path}: {exc}") from exc


def load_config(
    extra_path: Path | None = None,
    search_paths: list[Path] | None = None,
) -> MediascanConfig:
    """Load and merge config from all known locations."""
    raw: dict = {}
    for conf_path in search_paths if search_paths is not None else [SYSTEM_CONF, USER_CONF]:
        raw = _merge(raw, _load_toml(conf_path))
    if extra_path:
        raw = _merge(raw, _load_toml(extra_path))

    cfg = MediascanConfig()

    p = raw.get("paths", {})
    cfg.paths.index_db = p.get("index_db", cfg.paths.index_db)
    cfg.paths.cache_dir = p.get("cache_dir", cfg.paths.cache_dir)
    cfg.paths.grants_file = p.get("grants_file", cfg.paths.grants_file)

    t = raw.get("thumbnails", {})
    cfg.thumbnails.width = int(t.get("width", cfg.thumbnails.width))
    cfg.thumbnails.height = int(t.get("height", cfg.thumbnails.height))
    cfg.thumbnails.quality = int(t.get("quality", cfg.thumbnails.quality))
    cfg.thumbnails.prefix = t.get("prefix", cfg.thumbnails.prefix)
    cfg.thumbnails.extension = t.get("extension", cfg.thumbnails.extension)
    cfg.thumbnails.workers = int(t.get("workers", cfg.thumbnails.workers))
    cfg.thumbnails.dark_threshold = float(
        t.get("dark_threshold", cfg.thumbnails.dark_threshold)
    )

    pe = raw.get("permissions", {})
    cfg.permissions.granular_media = bool(
        pe.get("granular_media", cfg.permissions.granular_media)
    )

    lo = raw.get("logging", {})
    cfg.logging.level = lo.get("level", cfg.logging.level).upper()
    cfg.logging.log_file = lo.get("log_file", cfg.logging.log_file)

    _validate(cfg)
    return cfg


def _validate(cfg: MediascanConfig) -> None:
    th = cfg.thumbnails
    if not 0 <= th.quality <= 100:
        raise ValueError(f"thumbnails.quality must be 0-100, got {th.quality}")
    if th.workers < 1:
        raise ValueError(f"thumbnails.workers must be at least 1, got {th.workers}")
    if th.width <= 0 or th.height <= 0:
        raise ValueError(
            f"thumbnails size must be positive, got {th.width}x{th.height}"
        )


def ensure_user_config_exists(path: Path | None = None) -> None:
    """Write a default config file to the user location if none exists."""
    path = path or USER_CONF
    if path.exists():
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        f"""\
[paths]
index_db = "{DEFAULT_INDEX_DB}"
cache_dir = "{DEFAULT_CACHE_DIR}"
grants_file = "{DEFAULT_GRANTS_FILE}"

[thumbnails]
width = 640
height = 480
quality = 80
# prefix = "thumb_"
# extension = ".jpg"
# Mean pixel value below which a sampled frame counts as dark
# dark_threshold = 12.0
# Parallel thumbnail generation; output order is unaffected
workers = 1

[permissions]
# false: a single READ_EXTERNAL_STORAGE grant covers video and audio
granular_media = true

[logging]
level = "INFO"
log_file = "{DEFAULT_LOG_FILE}"
""",
        encoding="utf-8",
    )
