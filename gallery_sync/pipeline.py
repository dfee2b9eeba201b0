# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
"""
Scrape and fetch runs.

scrape: open the Google Photos sharing page with the stored session, load
every album by scrolling, extract and enrich them, then write the document.

fetch: visit a curated list of album URLs without logging in and write the
document from what their pages show.

The document is only written at the end of a run that found albums.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urlparse

from selenium.common.exceptions import WebDriverException

from .config import GallerySyncConfig
from .driver import NavigationDriver, PageHandle
from .enricher import AlbumEnricher
from .errors import AuthenticationError
from .extractor import MetadataExtractor
from .models import UNTITLED_ALBUM, AlbumDocument, RawAlbumEntry
from .scroller import ConvergenceScroller, ScrollResult
from .session_store import BrowsingContext, MemorySessionStore, acquire_context, create_chrome_driver
from .sources import WorkItem, build_worklist
from .storage import save_document

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Outcome of a scrape or fetch run."""
    albums: List[RawAlbumEntry] = field(default_factory=list)
    output_path: Optional[str] = None       # Set when the document was written
    screenshot_path: Optional[str] = None   # Set when nothing was found
    scroll: Optional[ScrollResult] = None


def _navigator(context: BrowsingContext, config: GallerySyncConfig) -> NavigationDriver:
    return NavigationDriver(
        context.driver,
        timeout=config.browser.navigation_timeout,
        settle_seconds=config.browser.settle_seconds,
    )


def _enricher(navigator: NavigationDriver, extractor: MetadataExtractor,
              config: GallerySyncConfig, canonicalize: bool, delay: float) -> AlbumEnricher:
    return AlbumEnricher(
        navigator,
        extractor,
        expected_host=config.service.expected_host,
        login_hosts=config.service.login_hosts,
        cover_size=config.extraction.cover_size,
        request_delay=delay,
        timeout=config.browser.navigation_timeout,
        canonicalize=canonicalize,
    )


def _load_listing(navigator: NavigationDriver, config: GallerySyncConfig) -> PageHandle:
    return navigator.load(
        config.service.listing_url,
        timeout=config.browser.listing_timeout,
        settle_seconds=config.browser.listing_settle_seconds,
    )


def _wait_for_login(navigator: NavigationDriver, config: GallerySyncConfig) -> PageHandle:
    """Block until the user has logged in and reached the sharing page."""
    service = config.service
    logger.info("=" * 40)
    logger.info("Please log in to your Google account.")
    logger.info("The scraper will continue once you reach the Google Photos sharing page.")
    logger.info("=" * 40)

    pattern = re.escape(service.expected_host + service.expected_path)
    page = navigator.wait_for_url(pattern, timeout=config.browser.login_timeout)
    logger.info("Login detected! Continuing with scraping...")
    return page


def scrape_shared_albums(config: GallerySyncConfig, login_mode: bool = False,
                         headless: Optional[bool] = None, remote_debug: bool = False,
                         context: Optional[BrowsingContext] = None) -> RunResult:
    """
    Scrape every shared album from the Google Photos sharing page.

    Args:
        config: Loaded configuration.
        login_mode: Wait for an interactive login instead of failing.
        headless: Browser mode; defaults to headless unless logging in.
        remote_debug: Expose the DevTools port.
        context: Pre-built browsing context (tests).

    Raises:
        AuthenticationError: Not logged in and not in login mode.
        LoginTimeoutError: The interactive login wait expired.
    """
    if headless is None:
        headless = config.browser.headless and not login_mode

    logger.info("Starting Google Photos album scraper")
    logger.info(f"Mode: {'Login' if login_mode else 'Scrape'}")

    if context is None:
        context = acquire_context(
            config.paths.session_dir,
            config.browser,
            headless=headless,
            remote_debug=remote_debug,
        )

    service = config.service
    result = RunResult()

    with context:
        navigator = _navigator(context, config)
        page = _load_listing(navigator, config)

        try:
            navigator.ensure_authenticated(page, service.expected_host, login_hosts=service.login_hosts)
        except AuthenticationError:
            if not login_mode:
                raise
            page = _wait_for_login(navigator, config)
            context.save_state()

        if login_mode:
            logger.info("Login successful! Session saved.")
            logger.info("You can now run the scraper without --login.")
            logger.info("Performing a test scrape...")

        # Make sure we're on the sharing page
        if not urlparse(page.url).path.startswith(service.expected_path):
            page = navigator.load(service.listing_url, timeout=config.browser.listing_timeout)

        scroller = ConvergenceScroller(
            navigator,
            settle_seconds=config.scroll.settle_seconds,
            max_iterations=config.scroll.max_iterations,
            log_every=config.scroll.log_every,
        )
        result.scroll = scroller.scroll_to_end(page)

        extractor = MetadataExtractor(navigator, config.extraction, service.title_suffix)
        extractor.wait_for_links(page, timeout=config.browser.navigation_timeout)
        albums = extractor.extract_listing(page)

        if not albums:
            logger.warning("No albums found. The page structure may have changed.")
            logger.warning(f"Current URL: {page.url}")
            try:
                result.screenshot_path = navigator.screenshot(config.paths.screenshot_file)
                logger.info(f"Debug screenshot saved to: {result.screenshot_path}")
            except (WebDriverException, OSError) as e:
                logger.warning(f"Could not save debug screenshot: {e}")
            return result

        enricher = _enricher(navigator, extractor, config, canonicalize=True,
                             delay=config.enrichment.request_delay_seconds)
        result.albums = enricher.enrich(albums)

    result.output_path = save_document(AlbumDocument.create(result.albums), config.paths.output_file)
    return result


def fetch_album_metadata(config: GallerySyncConfig, worklist: Optional[List[WorkItem]] = None,
                         context: Optional[BrowsingContext] = None) -> RunResult:
    """
    Fetch title, date range and cover for each curated album URL.

    Albums are public share links, so no stored session is used. A title
    override from the list always wins over the page title.
    """
    if worklist is None:
        worklist = build_worklist(config.paths.links_file, config.paths.fallback_file)

    result = RunResult()
    if not worklist:
        logger.info(f"No album URLs in {config.paths.links_file} or "
                    f"{config.paths.fallback_file}. Add URLs and run again.")
        return result

    logger.info(f"Fetching metadata for {len(worklist)} album(s)...")

    if context is None:
        driver = create_chrome_driver(config.browser, headless=True)
        context = BrowsingContext(driver, MemorySessionStore())

    entries = [
        RawAlbumEntry(share_url=item.url, title=item.title_override or UNTITLED_ALBUM)
        for item in worklist
    ]

    with context:
        navigator = _navigator(context, config)
        extractor = MetadataExtractor(navigator, config.extraction, config.service.title_suffix)
        enricher = _enricher(navigator, extractor, config, canonicalize=False,
                             delay=config.enrichment.fetch_delay_seconds)
        result.albums = enricher.enrich(entries)

    result.output_path = save_document(AlbumDocument.create(result.albums), config.paths.output_file)
    return result
