"""Download stage: render each record's page, fetch its assets, save metadata."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Dict, List, Optional, Sequence

import requests

from .browser import PageFetcher, open_page_fetcher
from .config import CrawlConfig
from .content import extract_page_fields, find_asset_link
from .downloads import build_session, fetch_and_save
from .models import (
    AssetDescriptor,
    InputRecord,
    PageFields,
    RecordMetadata,
    RecordResult,
    RecordStatus,
    RunStats,
)
from .store import RecordStore, asset_filename
from .utils import date_key, utc_timestamp

logger = logging.getLogger("hubble_birthday")


def log_progress(index: int, total: int, label: str) -> None:
    percent = (index + 1) / total * 100 if total else 100.0
    logger.info("[%d/%d] (%.1f%%) %s", index + 1, total, percent, label)


def log_summary(title: str, stats: RunStats, elapsed: float) -> None:
    logger.info(
        "%s finished in %.1fs: %d processed, %d skipped, %d failed",
        title,
        elapsed,
        stats.processed,
        stats.skipped,
        stats.failed,
    )
    for key, reason in stats.failures:
        logger.info("  failed %s: %s", key, reason)


async def extract_with_fallback(
    fetcher: PageFetcher,
    html: str,
    final_url: str,
    config: CrawlConfig,
) -> PageFields:
    """Run the metadata pass, following one ``/asset/`` link if no downloads."""
    fields = extract_page_fields(html, final_url)
    if fields.downloads:
        return fields
    asset_url = find_asset_link(html, final_url)
    if not asset_url:
        return fields
    logger.info("Following asset link %s", asset_url)
    asset_page = await fetcher.fetch(asset_url, settle=config.wait_after_load)
    return extract_page_fields(asset_page.html, asset_page.url)


def download_assets(
    session: requests.Session,
    store: RecordStore,
    key: str,
    assets: Sequence[AssetDescriptor],
    config: CrawlConfig,
) -> int:
    """Download every asset into the record folder; returns the success count."""
    folder = store.ensure_folder(key)
    logger.info("Downloading %d file(s)", len(assets))
    downloaded = 0
    for index, asset in enumerate(assets):
        destination = folder / asset_filename(asset, index)
        if fetch_and_save(
            session,
            asset.url,
            destination,
            max_attempts=config.max_attempts,
            backoff=config.retry_backoff,
            timeout=config.download_timeout,
        ):
            downloaded += 1
    logger.info("Complete: %d/%d files", downloaded, len(assets))
    return downloaded


async def process_record(
    fetcher: PageFetcher,
    session: requests.Session,
    store: RecordStore,
    record: InputRecord,
    key: str,
    config: CrawlConfig,
) -> RecordResult:
    """Bring one record's folder up to date, or skip it if already complete."""
    if store.exists_with_output(key):
        logger.info("Skipping %s - already processed", key)
        return RecordResult(key, RecordStatus.SKIPPED)
    if store.has_metadata(key):
        logger.info("Reprocessing %s - metadata exists but no assets", key)

    try:
        logger.info("Navigating to %s", record.url)
        page = await fetcher.fetch(record.url, settle=config.wait_after_load)
        logger.info("Final URL: %s", page.url)
        fields = await extract_with_fallback(fetcher, page.html, page.url, config)
        download_assets(session, store, key, fields.downloads, config)
        metadata = RecordMetadata(
            record=record,
            folder=key,
            final_url=page.url,
            fields=fields,
            downloaded_at=utc_timestamp(),
        )
        store.write_metadata(key, metadata.to_dict())
        logger.info("Saved metadata for %s", key)
    except Exception as exc:  # pylint: disable=broad-except
        logger.error("Error processing %s: %s", key, exc)
        return RecordResult(key, RecordStatus.FAILED, str(exc) or type(exc).__name__)
    return RecordResult(key, RecordStatus.PROCESSED)


async def download_all(
    records: Sequence[InputRecord],
    config: CrawlConfig,
    fetcher: PageFetcher,
    session: requests.Session,
    only: Optional[Sequence[str]] = None,
) -> RunStats:
    """Process records strictly in order, folding results into run counters."""
    store = RecordStore(config.output_root)
    claimed: Dict[str, str] = {}
    stats = RunStats()
    total = len(records)
    for index, record in enumerate(records):
        try:
            key = date_key(record.date)
        except ValueError as exc:
            if only:
                continue
            log_progress(index, total, record.date)
            stats = stats.add(RecordResult(record.date, RecordStatus.FAILED, str(exc)))
            continue
        if only and key not in only:
            continue
        log_progress(index, total, f"{record.date} -> {key}")
        if key in claimed:
            reason = f"DateKey collision with {claimed[key]}"
            logger.error("Refusing to overwrite %s: %s", key, reason)
            stats = stats.add(RecordResult(key, RecordStatus.FAILED, reason))
            continue
        claimed[key] = record.date

        result = await process_record(fetcher, session, store, record, key, config)
        stats = stats.add(result)
        if not result.skipped and index < total - 1:
            await asyncio.sleep(config.record_delay)
    return stats


async def run_download(
    records: List[InputRecord],
    config: CrawlConfig,
    fetcher: Optional[PageFetcher] = None,
    session: Optional[requests.Session] = None,
    only: Optional[Sequence[str]] = None,
) -> RunStats:
    """Run the download stage, opening a browser unless a fetcher is given."""
    start = time.perf_counter()
    config.output_root.mkdir(parents=True, exist_ok=True)
    owns_session = session is None
    session = session or build_session(config.user_agent)
    try:
        if fetcher is not None:
            stats = await download_all(records, config, fetcher, session, only)
        else:
            async with open_page_fetcher(config) as browser_fetcher:
                stats = await download_all(records, config, browser_fetcher, session, only)
    finally:
        if owns_session:
            session.close()
    log_summary("Download", stats, time.perf_counter() - start)
    return stats
