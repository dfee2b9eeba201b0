# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
"""
Per-album enrichment.

Visits each discovered album to resolve its canonical share link and fill
whatever the listing page left missing. Albums are processed one at a time
with a fixed pause between requests; a broken album page never aborts the
batch.
"""

import logging
import time
from dataclasses import replace
from typing import Callable, Iterable, List, Optional
from urllib.parse import urlparse

from selenium.common.exceptions import TimeoutException

from .driver import NavigationDriver
from .errors import AuthenticationError
from .extractor import MetadataExtractor, dedupe_albums, resize_cover_url
from .models import RawAlbumEntry

logger = logging.getLogger(__name__)


class AlbumEnricher:
    """Fills gaps in discovered albums by visiting their pages."""

    def __init__(self, navigator: NavigationDriver, extractor: MetadataExtractor,
                 expected_host: str = "photos.google.com", login_hosts: Iterable[str] = (),
                 cover_size: int = 400,
                 request_delay: float = 0.5, timeout: int = 30, canonicalize: bool = True,
                 progress_callback: Optional[Callable[[int, int, RawAlbumEntry], None]] = None):
        """
        Args:
            navigator: Driver used to open album pages.
            extractor: Heuristics applied to each album page.
            expected_host: Album pages must land on this host; a landing URL here
                becomes the canonical share link.
            login_hosts: Hosts that mean the album page bounced to sign-in.
            cover_size: Render size requested for resolved cover images.
            request_delay: Pause after every album, in seconds.
            timeout: Navigation timeout per album, in seconds.
            canonicalize: Replace the share URL with the URL the page landed on.
            progress_callback: Optional callback(current, total, entry).
        """
        self.navigator = navigator
        self.extractor = extractor
        self.expected_host = expected_host
        self.login_hosts = list(login_hosts)
        self.cover_size = cover_size
        self.request_delay = request_delay
        self.timeout = timeout
        self.canonicalize = canonicalize
        self._progress_callback = progress_callback

    def _report_progress(self, current: int, total: int, entry: RawAlbumEntry) -> None:
        """Report progress via callback if set."""
        if self._progress_callback:
            try:
                self._progress_callback(current, total, entry)
            except Exception as e:
                logger.debug(f"Progress callback failed: {e}")

    def enrich_one(self, entry: RawAlbumEntry) -> RawAlbumEntry:
        """
        Visit one album and return an improved copy of the entry.

        Raises AuthenticationError if the page landed outside the app, and
        whatever navigation or extraction raised; enrich() contains both.
        """
        page = self.navigator.load(entry.share_url, timeout=self.timeout)
        self.navigator.ensure_authenticated(page, self.expected_host, login_hosts=self.login_hosts)
        meta = self.extractor.extract_album_page(page)

        share_url = entry.share_url
        landed = urlparse(page.url or "")
        if (self.canonicalize and landed.hostname == self.expected_host
                and self.extractor.config.share_path in landed.path):
            share_url = landed.geturl()

        title = entry.title
        if entry.has_default_title and meta.title:
            title = meta.title

        cover = entry.cover_image_url or meta.cover_image_url
        if cover:
            cover = resize_cover_url(cover, self.cover_size)

        return replace(
            entry,
            share_url=share_url,
            title=title,
            cover_image_url=cover,
            date_range=entry.date_range or meta.date_range,
            photo_count=entry.photo_count if entry.photo_count is not None else meta.photo_count,
        )

    def enrich(self, entries: List[RawAlbumEntry]) -> List[RawAlbumEntry]:
        """
        Enrich albums sequentially.

        An album whose page fails to load or parse is kept exactly as
        discovered. The result is deduplicated again because two listing
        links can resolve to the same canonical URL.
        """
        logger.info("Extracting shareable links for each album...")
        total = len(entries)
        enriched = []

        for i, entry in enumerate(entries, 1):
            logger.info(f"  Processing {i}/{total}: {entry.title}")
            self._report_progress(i, total, entry)

            try:
                album = self.enrich_one(entry)
                enriched.append(album)
                logger.info(f"    -> {album.title}" + (f" ({album.date_range})" if album.date_range else ""))
            except TimeoutException:
                logger.warning(f"    Timed out loading {entry.share_url}, keeping listing data")
                enriched.append(entry)
            except AuthenticationError as e:
                logger.warning(f"    {entry.share_url} landed on {e.url}, keeping listing data")
                enriched.append(entry)
            except Exception as e:
                logger.warning(f"    Error processing album {entry.share_url}: {e}")
                enriched.append(entry)

            # Informal rate limiting
            time.sleep(self.request_delay)

        return dedupe_albums(enriched)
