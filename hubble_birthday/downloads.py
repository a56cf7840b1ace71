"""Asset downloading with bounded retries."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

import requests
from filetype import guess

from .utils import atomic_write_bytes, format_bytes

logger = logging.getLogger("hubble_birthday")

ALLOWED_MIME_PREFIXES = ("image/", "application/pdf")


class AssetDownloadError(Exception):
    """Raised when a response cannot be accepted as the requested asset."""


def build_session(user_agent: str) -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": user_agent})
    return session


def detect_asset_mime(data: bytes) -> Optional[str]:
    """Detect the payload type from its file signature."""
    kind = guess(data)
    return kind.mime if kind else None


def check_payload(data: bytes, content_type: Optional[str]) -> None:
    """Reject empty bodies and bodies that are clearly not an image or PDF."""
    if not data:
        raise AssetDownloadError("empty response body")
    mime = detect_asset_mime(data)
    if mime is not None:
        if not mime.startswith(ALLOWED_MIME_PREFIXES):
            raise AssetDownloadError(f"unexpected file type {mime}")
        return
    declared = (content_type or "").split(";")[0].strip().lower()
    if declared.startswith("text/"):
        raise AssetDownloadError(f"unexpected Content-Type {declared}")


def fetch_and_save(
    session: requests.Session,
    url: str,
    destination: Path,
    max_attempts: int = 3,
    backoff: float = 0.5,
    timeout: float = 60.0,
) -> bool:
    """Download ``url`` into ``destination``, retrying on failure.

    Waits ``attempt * backoff`` seconds between attempts. Returns ``False``
    once ``max_attempts`` have failed; nothing is written in that case.
    """
    destination = Path(destination)
    for attempt in range(1, max_attempts + 1):
        start = time.perf_counter()
        try:
            resp = session.get(url, timeout=timeout)
            resp.raise_for_status()
            data = resp.content
            check_payload(data, resp.headers.get("Content-Type"))
            atomic_write_bytes(destination, data)
        except (requests.RequestException, AssetDownloadError, OSError) as exc:
            logger.warning(
                "%s attempt %d/%d failed: %s", destination.name, attempt, max_attempts, exc
            )
            if attempt < max_attempts:
                time.sleep(backoff * attempt)
            continue
        elapsed = time.perf_counter() - start
        logger.info("Saved %s (%s) in %.1fs", destination.name, format_bytes(len(data)), elapsed)
        return True
    return False
