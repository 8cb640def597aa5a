#!/usr/bin/env python3
"""
mediascan.py — main entry point.

Usage:
    python mediascan.py --scan videos
        List every video in the media index, newest first, with thumbnails.

    python mediascan.py --scan audio --json
        List music tracks by title, as the JSON the host channel receives.

    python mediascan.py --method NAME
        Call a channel method by name (unknown names report "not implemented").

    python mediascan.py --grant | --revoke | --list-grants
        Manage the media read grants the scanner checks before querying.

    python mediascan.py --clear-cache
        Delete every cached thumbnail.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console

# ---------------------------------------------------------------------------
# Bootstrap: ensure the script's own directory is on sys.path so sibling
# modules (config, scanner, …) are importable regardless of cwd.
# ---------------------------------------------------------------------------
sys.path.insert(0, str(Path(__file__).resolve().parent))

import permissions as perms
from config import MediascanConfig, ensure_user_config_exists, load_config
from dispatch import CHANNEL, ResultStatus, ScanDispatcher
from render import print_result, to_json
from scanner import build_orchestrator
from thumbnails import clear_cache

SCAN_METHODS = {"videos": "scanVideos", "audio": "scanAudio"}

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_NOT_IMPLEMENTED = 2

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def setup_logging(cfg: MediascanConfig) -> None:
    log_path = Path(cfg.logging.log_file).expanduser()

    level = getattr(logging, cfg.logging.level, logging.INFO)
    fmt = "%(asctime)s %(levelname)-8s %(name)s — %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    except OSError as exc:
        print(f"Warning: cannot open log file {log_path}: {exc}", file=sys.stderr)

    logging.basicConfig(level=level, format=fmt, datefmt=datefmt, handlers=handlers)


logger = logging.getLogger("mediascan")

# ---------------------------------------------------------------------------
# Modes
# ---------------------------------------------------------------------------


def _suggest_grant(missing: frozenset[perms.Permission]) -> None:
    names = ", ".join(sorted(p.value for p in missing))
    print(
        f"Missing permission: {names}. Run `mediascan --grant` to allow media access.",
        file=sys.stderr,
    )


def run_method(method: str, cfg: MediascanConfig, as_json: bool = False) -> int:
    """Dispatch one channel method and print its result. Returns exit code."""
    logger.info("=== %s %s ===", CHANNEL, method)
    dispatcher = ScanDispatcher(build_orchestrator(cfg, on_request=_suggest_grant))

    console = Console()
    if as_json:
        result = dispatcher.handle(method)
        print(to_json(result))
    else:
        with console.status(f"[cyan]{method}[/cyan] …"):
            result = dispatcher.handle(method)
        print_result(console, method, result)

    if result.status is ResultStatus.NOT_IMPLEMENTED:
        return EXIT_NOT_IMPLEMENTED
    return EXIT_OK if result.ok else EXIT_FAILED


def run_grant(cfg: MediascanConfig, revoke: bool = False) -> None:
    path = Path(cfg.paths.grants_file).expanduser()
    needed = sorted(
        perms.required_permissions(cfg.permissions.granular_media),
        key=lambda p: p.value,
    )
    for permission in needed:
        if revoke:
            if perms.remove_grant(permission, path):
                print(f"Revoked {permission.value}")
        else:
            perms.add_grant(permission, path)
            print(f"Granted {permission.value}")


def run_clear_cache(cfg: MediascanConfig) -> None:
    removed = clear_cache(
        Path(cfg.paths.cache_dir).expanduser(),
        prefix=cfg.thumbnails.prefix,
        extension=cfg.thumbnails.extension,
    )
    print(f"Removed {removed} cached thumbnails.")


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mediascan",
        description="List the videos and music in a device media index.",
    )

    parser.add_argument(
        "--scan",
        choices=sorted(SCAN_METHODS),
        help="Scan videos or audio.",
    )
    parser.add_argument(
        "--method",
        metavar="NAME",
        help="Call a channel method by name, e.g. scanVideos.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the serialized channel result instead of a table.",
    )

    # grants
    parser.add_argument(
        "--grant",
        action="store_true",
        help="Grant the media read permissions the platform needs.",
    )
    parser.add_argument(
        "--revoke",
        action="store_true",
        help="Revoke the media read permissions.",
    )
    parser.add_argument(
        "--list-grants",
        action="store_true",
        help="Print the recorded grants.",
    )

    parser.add_argument(
        "--clear-cache",
        action="store_true",
        help="Delete every cached thumbnail.",
    )

    # overrides
    parser.add_argument(
        "--config",
        metavar="FILE",
        help="Path to an additional config file.",
    )
    parser.add_argument(
        "--index",
        metavar="FILE",
        help="Media index database (overrides paths.index_db).",
    )
    parser.add_argument(
        "--cache-dir",
        metavar="DIR",
        help="Thumbnail cache directory (overrides paths.cache_dir).",
    )

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    # ── Config + logging ─────────────────────────────────────────────────
    ensure_user_config_exists()
    try:
        cfg = load_config(Path(args.config) if args.config else None)
    except ValueError as exc:
        parser.error(str(exc))
    if args.index:
        cfg.paths.index_db = args.index
    if args.cache_dir:
        cfg.paths.cache_dir = args.cache_dir
    setup_logging(cfg)

    # ── Grants ───────────────────────────────────────────────────────────
    if args.grant or args.revoke:
        run_grant(cfg, revoke=args.revoke)
        return

    if args.list_grants:
        entries = perms.list_grants(Path(cfg.paths.grants_file).expanduser())
        if entries:
            for e in entries:
                print(e)
        else:
            print("No permissions granted.")
        return

    # ── Cache maintenance ────────────────────────────────────────────────
    if args.clear_cache:
        run_clear_cache(cfg)
        return

    # ── Scan ─────────────────────────────────────────────────────────────
    if args.scan or args.method:
        method = args.method or SCAN_METHODS[args.scan]
        sys.exit(run_method(method, cfg, as_json=args.json))

    parser.print_help()


if __name__ == "__main__":
    main()
