"""
render.py — print scan results for the terminal.

Videos and audio get a rich table each; results can also be dumped as the
JSON the host channel would receive.
"""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.table import Table

from dispatch import MethodResult, ResultStatus


def format_duration(seconds: int) -> str:
    """125 -> '2:05', 3725 -> '1:02:05'."""
    hours, rest = divmod(max(seconds, 0), 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    value = size / 1024
    for unit in ("KB", "MB"):
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def _cell(value: Any) -> str:
    return "—" if value is None else str(value)


def video_table(records: list[dict[str, Any]]) -> Table:
    table = Table(title=f"Videos ({len(records)})")
    table.add_column("ID", justify="right")
    table.add_column("Title")
    table.add_column("Duration", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Added", justify="right")
    table.add_column("Thumbnail")
    for r in records:
        table.add_row(
            str(r["id"]),
            _cell(r["title"]),
            format_duration(r["duration"]),
            format_size(r["size"]),
            str(r["dateAdded"]),
            "✓" if r["thumbnail"] else "✗",
        )
    return table


def audio_table(records: list[dict[str, Any]]) -> Table:
    table = Table(title=f"Music ({len(records)})")
    table.add_column("ID", justify="right")
    table.add_column("Title")
    table.add_column("Artist")
    table.add_column("Album")
    table.add_column("Duration", justify="right")
    table.add_column("Size", justify="right")
    for r in records:
        table.add_row(
            str(r["id"]),
            _cell(r["title"]),
            _cell(r["artist"]),
            _cell(r["album"]),
            format_duration(r["duration"]),
            format_size(r["size"]),
        )
    return table


def to_json(result: MethodResult) -> str:
    return json.dumps(result.to_dict(), ensure_ascii=False, indent=2)


def print_result(console: Console, method: str, result: MethodResult) -> None:
    if result.status is ResultStatus.NOT_IMPLEMENTED:
        console.print(f"[yellow]Not implemented:[/yellow] {method}")
        return
    if result.status is ResultStatus.ERROR:
        console.print(f"[red]{result.code}:[/red] {result.message}")
        return
    if not result.payload:
        console.print("No matching media found.")
        return
    if method == "scanVideos":
        console.print(video_table(result.payload))
    else:
        console.print(audio_table(result.payload))
