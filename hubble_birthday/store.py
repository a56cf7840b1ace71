"""Filesystem layout for per-record output folders."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models import AssetDescriptor
from .utils import atomic_write_text

logger = logging.getLogger("hubble_birthday")

METADATA_FILENAME = "metadata.json"
ENRICHED_FILENAME = "video-content.json"
PDF_FILENAME = "image.pdf"
FULL_IMAGE_FILENAME = "full.jpg"
THUMB_1000_FILENAME = "thumb_1000.jpg"
THUMB_400_FILENAME = "thumb_400.jpg"
THUMB_200_FILENAME = "thumb_200.jpg"
ASSET_SUFFIXES = (".jpg", ".pdf")
TEMP_FILE_PATTERN = ".*.tmp"


def asset_filename(asset: AssetDescriptor, index: int) -> str:
    """Pick the canonical filename for an asset from its type and width."""
    if asset.kind == "pdf":
        return PDF_FILENAME
    width = asset.width
    if width is None:
        return f"image_{index}.jpg"
    if width >= 2000:
        return FULL_IMAGE_FILENAME
    if width >= 800:
        return THUMB_1000_FILENAME
    if width >= 300:
        return THUMB_400_FILENAME
    return THUMB_200_FILENAME


class RecordStore:
    """One directory per date key under ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def folder(self, key: str) -> Path:
        return self.root / key

    def ensure_folder(self, key: str) -> Path:
        path = self.folder(key)
        path.mkdir(parents=True, exist_ok=True)
        self.sweep_temp_files(key)
        return path

    def sweep_temp_files(self, key: str) -> int:
        """Remove temp files left behind by a write that was killed mid-way."""
        removed = 0
        for path in self.folder(key).glob(TEMP_FILE_PATTERN):
            if path.is_file():
                path.unlink(missing_ok=True)
                removed += 1
        if removed:
            logger.info("Removed %d stale temp file(s) from %s", removed, key)
        return removed

    def asset_files(self, key: str) -> List[Path]:
        folder = self.folder(key)
        if not folder.is_dir():
            return []
        return sorted(
            path
            for path in folder.iterdir()
            if path.is_file() and path.suffix.lower() in ASSET_SUFFIXES
        )

    def exists_with_output(self, key: str) -> bool:
        """A record is done only when it has metadata and at least one asset."""
        if not (self.folder(key) / METADATA_FILENAME).is_file():
            return False
        return bool(self.asset_files(key))

    def has_metadata(self, key: str) -> bool:
        return (self.folder(key) / METADATA_FILENAME).is_file()

    def enriched_exists(self, key: str) -> bool:
        return (self.folder(key) / ENRICHED_FILENAME).is_file()

    def read_metadata(self, key: str) -> Optional[Dict[str, Any]]:
        path = self.folder(key) / METADATA_FILENAME
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.warning("Unreadable %s: %s", path, exc)
            return None
        return data if isinstance(data, dict) else None

    def _write_json(self, key: str, filename: str, data: Dict[str, Any]) -> Path:
        path = self.ensure_folder(key) / filename
        atomic_write_text(path, json.dumps(data, indent=2, ensure_ascii=False))
        return path

    def write_metadata(self, key: str, data: Dict[str, Any]) -> Path:
        return self._write_json(key, METADATA_FILENAME, data)

    def write_enriched(self, key: str, data: Dict[str, Any]) -> Path:
        return self._write_json(key, ENRICHED_FILENAME, data)

    def list_keys(self) -> List[str]:
        """Existing record folders, sorted by name."""
        if not self.root.is_dir():
            return []
        return sorted(path.name for path in self.root.iterdir() if path.is_dir())
