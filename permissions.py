"""
permissions.py — media read grants held by the host.

Grants file location: ~/.config/mediascan/grants.conf
Format: one entry per line:
    GRANT=READ_MEDIA_VIDEO
    GRANT=READ_MEDIA_AUDIO
Blank lines and lines starting with # are ignored.

Platforms with granular media permissions need READ_MEDIA_VIDEO and
READ_MEDIA_AUDIO; older ones need READ_EXTERNAL_STORAGE.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable

logger = logging.getLogger(__name__)

DEFAULT_GRANTS_PATH = Path.home() / ".config" / "mediascan" / "grants.conf"


class Permission(Enum):
    READ_MEDIA_VIDEO = "READ_MEDIA_VIDEO"
    READ_MEDIA_AUDIO = "READ_MEDIA_AUDIO"
    READ_EXTERNAL_STORAGE = "READ_EXTERNAL_STORAGE"


def required_permissions(granular_media: bool = True) -> frozenset[Permission]:
    if granular_media:
        return frozenset({Permission.READ_MEDIA_VIDEO, Permission.READ_MEDIA_AUDIO})
    return frozenset({Permission.READ_EXTERNAL_STORAGE})


# ---------------------------------------------------------------------------
# Grants file
# ---------------------------------------------------------------------------


def _ensure_file(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if not path.exists():
        path.write_text("# mediascan permission grants\n", encoding="utf-8")


def load_grants(path: Path = DEFAULT_GRANTS_PATH) -> set[Permission]:
    """Return the permissions recorded in *path*; unknown names are ignored."""
    if not path.exists():
        return set()
    grants: set[Permission] = set()
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, _, value = line.partition("=")
        if key.strip().upper() != "GRANT":
            continue
        try:
            grants.add(Permission(value.strip().upper()))
        except ValueError:
            logger.debug("Ignoring unknown grant %r in %s", value, path)
    return grants


def add_grant(permission: Permission, path: Path = DEFAULT_GRANTS_PATH) -> None:
    """Append *permission* if not already granted."""
    _ensure_file(path)
    if permission in load_grants(path):
        return
    with open(path, "a", encoding="utf-8") as fh:
        fh.write(f"GRANT={permission.value}\n")


def remove_grant(permission: Permission, path: Path = DEFAULT_GRANTS_PATH) -> bool:
    """Remove *permission*. Returns True if an entry was removed."""
    if not path.exists():
        return False
    original = path.read_text(encoding="utf-8").splitlines(keepends=True)
    filtered = [
        line for line in original
        if line.strip().replace(" ", "").upper() != f"GRANT={permission.value}"
    ]
    if len(filtered) == len(original):
        return False
    path.write_text("".join(filtered), encoding="utf-8")
    return True


def list_grants(path: Path = DEFAULT_GRANTS_PATH) -> list[str]:
    return sorted(f"GRANT={p.value}" for p in load_grants(path))


# ---------------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------------


class PermissionGate:
    """
    Answers "may we read the media index?" for the orchestrator.

    request() never prompts. It reports what is missing and hands it to the
    host's *on_request* callback, which owns any user interaction.
    """

    def __init__(
        self,
        granted: Iterable[Permission],
        granular_media: bool = True,
        on_request: Callable[[frozenset[Permission]], None] | None = None,
    ) -> None:
        self.granted = frozenset(granted)
        self.required = required_permissions(granular_media)
        self.on_request = on_request

    @classmethod
    def from_file(
        cls,
        path: Path = DEFAULT_GRANTS_PATH,
        granular_media: bool = True,
        on_request: Callable[[frozenset[Permission]], None] | None = None,
    ) -> PermissionGate:
        return cls(load_grants(path), granular_media, on_request)

    def missing(self) -> frozenset[Permission]:
        return self.required - self.granted

    def is_granted(self) -> bool:
        return not self.missing()

    def request(self) -> None:
        missing = self.missing()
        logger.warning(
            "Media read permission missing: %s",
            ", ".join(sorted(p.value for p in missing)),
        )
        if self.on_request is not None:
            self.on_request(missing)
