"""Enrichment stage: add narrative content to previously downloaded records."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, Optional, Sequence

from .browser import PageFetcher, open_page_fetcher
from .config import CrawlConfig
from .content import extract_narrative
from .crawler import log_progress, log_summary
from .models import NarrativeFields, RecordResult, RecordStatus, RunStats
from .store import FULL_IMAGE_FILENAME, THUMB_1000_FILENAME, RecordStore
from .utils import utc_timestamp

logger = logging.getLogger("hubble_birthday")

NO_METADATA = "No metadata"
NO_FINAL_URL = "No finalUrl"


def build_enriched_content(
    folder: str,
    metadata: Dict[str, Any],
    narrative: NarrativeFields,
    enriched_at: str,
) -> Dict[str, Any]:
    """Combine stored metadata with freshly scraped narrative fields."""
    return {
        "date": metadata.get("date"),
        "folder": folder,
        "title": narrative.title or metadata.get("pageTitle") or metadata.get("csvName"),
        "shortCaption": metadata.get("csvCaption"),
        "fullDescription": narrative.full_description,
        "paragraphs": list(narrative.paragraphs),
        "quickFacts": {
            "objectName": metadata.get("objectName"),
            "objectType": metadata.get("objectDescription"),
            "constellation": metadata.get("constellation"),
            "distance": metadata.get("distance"),
            "instrument": metadata.get("instrument"),
            "releaseDate": metadata.get("releaseDate"),
            "yearCaptured": metadata.get("csvYear"),
        },
        "tags": list(narrative.tags),
        "scienceRelease": narrative.science_release,
        "technical": {
            "filters": metadata.get("filters"),
            "exposureDates": metadata.get("exposureDates"),
            "colorInfo": narrative.color_info,
        },
        "credit": metadata.get("credit"),
        "images": {
            "fullResolution": FULL_IMAGE_FILENAME,
            "thumbnail": THUMB_1000_FILENAME,
            "webUrl": narrative.main_image_url,
        },
        "urls": {
            "original": metadata.get("originalUrl"),
            "final": metadata.get("finalUrl"),
        },
        "enrichedAt": enriched_at,
    }


async def enrich_record(
    fetcher: PageFetcher,
    store: RecordStore,
    key: str,
    config: CrawlConfig,
) -> RecordResult:
    if store.enriched_exists(key):
        logger.info("Skipping %s - already enriched", key)
        return RecordResult(key, RecordStatus.SKIPPED)

    metadata = store.read_metadata(key)
    if metadata is None:
        logger.error("No metadata.json found for %s", key)
        return RecordResult(key, RecordStatus.FAILED, NO_METADATA)
    final_url = metadata.get("finalUrl")
    if not final_url:
        logger.error("No finalUrl in metadata for %s", key)
        return RecordResult(key, RecordStatus.FAILED, NO_FINAL_URL)

    try:
        logger.info("Fetching %s", final_url)
        start = time.perf_counter()
        page = await fetcher.fetch(final_url, settle=config.enrich_wait_after_load)
        narrative = extract_narrative(page.html, page.url)
        elapsed = time.perf_counter() - start
        content = build_enriched_content(key, metadata, narrative, utc_timestamp())
        store.write_enriched(key, content)
    except Exception as exc:  # pylint: disable=broad-except
        logger.error("Error enriching %s: %s", key, exc)
        return RecordResult(key, RecordStatus.FAILED, str(exc) or type(exc).__name__)

    logger.info(
        'Done in %.1fs | "%s" | %d paragraphs',
        elapsed,
        (content["title"] or "")[:40],
        len(narrative.paragraphs),
    )
    return RecordResult(key, RecordStatus.PROCESSED)


async def enrich_all(
    config: CrawlConfig,
    fetcher: PageFetcher,
    only: Optional[Sequence[str]] = None,
) -> RunStats:
    store = RecordStore(config.output_root)
    keys = [key for key in store.list_keys() if not only or key in only]
    logger.info("Found %d folders to process", len(keys))
    stats = RunStats()
    for index, key in enumerate(keys):
        log_progress(index, len(keys), key)
        result = await enrich_record(fetcher, store, key, config)
        stats = stats.add(result)
        if not result.skipped and index < len(keys) - 1:
            await asyncio.sleep(config.enrich_delay)
    return stats


async def run_enrichment(
    config: CrawlConfig,
    fetcher: Optional[PageFetcher] = None,
    only: Optional[Sequence[str]] = None,
) -> RunStats:
    """Run the enrichment stage over every existing record folder."""
    start = time.perf_counter()
    if fetcher is not None:
        stats = await enrich_all(config, fetcher, only)
    else:
        async with open_page_fetcher(config) as browser_fetcher:
            stats = await enrich_all(config, browser_fetcher, only)
    log_summary("Enrichment", stats, time.perf_counter() - start)
    return stats
