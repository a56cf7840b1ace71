"""Data models used throughout the scraping pipeline."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class InputRecord:
    """One row of the input table; order defines processing order."""

    date: str
    url: str
    name: str = ""
    caption: str = ""
    year: str = ""
    image: str = ""


@dataclass
class AssetDescriptor:
    """Downloadable file listed under a page's "Downloads" heading."""

    url: str
    kind: str
    size: Optional[str] = None
    resolution: Optional[str] = None

    @property
    def width(self) -> Optional[int]:
        if not self.resolution:
            return None
        head = self.resolution.split("x", 1)[0]
        return int(head) if head.isdigit() else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "type": self.kind,
            "size": self.size,
            "resolution": self.resolution,
        }


@dataclass
class PageFields:
    """Structured fields pulled from an image detail page."""

    page_title: Optional[str] = None
    page_description: Optional[str] = None
    object_name: Optional[str] = None
    object_description: Optional[str] = None
    release_date: Optional[str] = None
    ra_position: Optional[str] = None
    dec_position: Optional[str] = None
    constellation: Optional[str] = None
    distance: Optional[str] = None
    instrument: Optional[str] = None
    exposure_dates: Optional[str] = None
    filters: Optional[str] = None
    credit: Optional[str] = None
    downloads: List[AssetDescriptor] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pageTitle": self.page_title,
            "pageDescription": self.page_description,
            "objectName": self.object_name,
            "objectDescription": self.object_description,
            "releaseDate": self.release_date,
            "raPosition": self.ra_position,
            "decPosition": self.dec_position,
            "constellation": self.constellation,
            "distance": self.distance,
            "instrument": self.instrument,
            "exposureDates": self.exposure_dates,
            "filters": self.filters,
            "credit": self.credit,
            "downloads": [asset.to_dict() for asset in self.downloads],
        }


@dataclass
class NarrativeFields:
    """Story-oriented content scraped for the enrichment stage."""

    title: Optional[str] = None
    paragraphs: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    science_release: Optional[str] = None
    color_info: Optional[str] = None
    main_image_url: Optional[str] = None

    @property
    def full_description(self) -> str:
        return "\n\n".join(self.paragraphs)


@dataclass
class RecordMetadata:
    """Snapshot persisted as ``metadata.json`` after a download pass."""

    record: InputRecord
    folder: str
    final_url: str
    fields: PageFields
    downloaded_at: str

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "date": self.record.date,
            "folder": self.folder,
            "originalUrl": self.record.url,
            "finalUrl": self.final_url,
            "csvName": self.record.name,
            "csvCaption": self.record.caption,
            "csvYear": self.record.year,
            "csvImage": self.record.image,
        }
        data.update(self.fields.to_dict())
        data["downloadedAt"] = self.downloaded_at
        return data


class RecordStatus(enum.Enum):
    PROCESSED = "processed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class RecordResult:
    """Outcome of processing a single record."""

    key: str
    status: RecordStatus
    error: Optional[str] = None

    @property
    def skipped(self) -> bool:
        return self.status is RecordStatus.SKIPPED


@dataclass(frozen=True)
class RunStats:
    """Run-level counters, folded from per-record results."""

    processed: int = 0
    skipped: int = 0
    failed: int = 0
    failures: Tuple[Tuple[str, str], ...] = ()

    def add(self, result: RecordResult) -> "RunStats":
        if result.status is RecordStatus.PROCESSED:
            return replace(self, processed=self.processed + 1)
        if result.status is RecordStatus.SKIPPED:
            return replace(self, skipped=self.skipped + 1)
        return replace(
            self,
            failed=self.failed + 1,
            failures=self.failures + ((result.key, result.error or "unknown error"),),
        )
