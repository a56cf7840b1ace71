"""Playwright page session shared across all records of a run."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, async_playwright

from .config import CrawlConfig

logger = logging.getLogger("hubble_birthday")


@dataclass
class RenderedPage:
    """HTML of a fully rendered page and the URL it settled on."""

    url: str
    html: str


class PageFetcher:
    """Navigate a single browser tab and return the rendered DOM."""

    def __init__(self, page: Page, config: CrawlConfig) -> None:
        self._page = page
        self._config = config

    async def fetch(self, url: str, settle: float = 0.0) -> RenderedPage:
        """Load ``url``, wait for network idle and ``settle`` seconds more.

        Redirects are followed by the browser; the returned ``url`` is the
        final location.
        """
        logger.debug("Loading %s", url)
        await self._page.goto(
            url,
            wait_until="networkidle",
            timeout=self._config.navigation_timeout * 1000,
        )
        if settle:
            await self._page.wait_for_timeout(int(settle * 1000))
        html = await self._page.content()
        return RenderedPage(url=self._page.url, html=html)


@asynccontextmanager
async def open_page_fetcher(config: CrawlConfig) -> AsyncIterator[PageFetcher]:
    """Launch Chromium once and yield a fetcher; the browser is always closed."""
    async with async_playwright() as playwright:
        logger.info("Launching browser")
        browser = await playwright.chromium.launch(headless=config.headless)
        try:
            context = await browser.new_context(user_agent=config.user_agent)
            page = await context.new_page()
            page.set_default_navigation_timeout(config.navigation_timeout * 1000)
            yield PageFetcher(page, config)
        finally:
            try:
                await browser.close()
            except PlaywrightError as exc:
                logger.error("Failed to close browser: %s", exc)
