"""Configuration objects and constants for the scraper."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class CrawlConfig:
    """Top-level settings that control downloading and enrichment.

    Durations are in seconds. ``record_delay`` and ``enrich_delay`` are the
    pauses applied between records in the download and enrichment stages;
    neither applies after a skipped record.
    """

    output_root: Path = Path("dumps")
    input_csv: Path = Path("data.csv")
    navigation_timeout: float = 60.0
    wait_after_load: float = 0.5
    enrich_wait_after_load: float = 0.3
    record_delay: float = 0.8
    enrich_delay: float = 0.5
    max_attempts: int = 3
    retry_backoff: float = 0.5
    download_timeout: float = 60.0
    headless: bool = True
    user_agent: str = DEFAULT_USER_AGENT
