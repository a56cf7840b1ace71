"""Utility helpers for date keys, sizes and crash-safe file writes."""

from __future__ import annotations

import datetime as dt
import os
import tempfile
from pathlib import Path
from typing import Union

MONTHS = {
    "january": "01",
    "february": "02",
    "march": "03",
    "april": "04",
    "may": "05",
    "june": "06",
    "july": "07",
    "august": "08",
    "september": "09",
    "october": "10",
    "november": "11",
    "december": "12",
}


def date_key(date_text: str) -> str:
    """Map a date like ``"January 1 2019"`` to its ``MM-DD`` folder key."""
    parts = date_text.split()
    if len(parts) < 2:
        raise ValueError(f"Unrecognised date: {date_text!r}")
    month = MONTHS.get(parts[0].lower())
    day = parts[1].rstrip(",")
    if month is None or not day.isdigit() or not 1 <= int(day) <= 31:
        raise ValueError(f"Unrecognised date: {date_text!r}")
    return f"{month}-{int(day):02d}"


def format_bytes(size: int) -> str:
    """Render a byte count as B, KB or MB."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.2f} MB"


def utc_timestamp() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat(timespec="milliseconds")


def _default_file_mode() -> int:
    """Mode a plain ``open()`` would give a new file under the current umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def atomic_write_bytes(destination: Path, data: bytes) -> None:
    """Write ``data`` to a sibling temp file and rename it over ``destination``.

    The temp file is removed on any failure, so ``destination`` is either
    untouched or holds the complete payload.
    """
    destination = Path(destination)
    fd, tmp_name = tempfile.mkstemp(
        dir=destination.parent, prefix=f".{destination.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "wb") as handle:
            os.fchmod(handle.fileno(), _default_file_mode())
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, destination)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def atomic_write_text(destination: Path, text: Union[str, bytes]) -> None:
    data = text.encode("utf-8") if isinstance(text, str) else text
    atomic_write_bytes(destination, data)
