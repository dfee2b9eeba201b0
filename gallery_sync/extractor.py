# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
"""
Album metadata extraction from Google Photos pages.

The DOM is undocumented and changes without notice, so every field comes from
a layered heuristic that may fail on its own without affecting the others.
One script per page collects the raw DOM facts in a single round trip; the
heuristics below turn those facts into RawAlbumEntry values.
"""

import logging
import re
from dataclasses import dataclass
from itertools import chain
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar
from urllib.parse import urlparse

from selenium.common.exceptions import TimeoutException
from selenium.webdriver.common.by import By
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from .config import ExtractionConfig
from .driver import NavigationDriver, PageHandle
from .models import UNTITLED_ALBUM, RawAlbumEntry

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MONTH = (
    r"(?:Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|Jun(?:e)?|Jul(?:y)?"
    r"|Aug(?:ust)?|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)"
)
_DASH = r"\s*[–—-]\s*"

# Tried in order, first match wins
DATE_RANGE_PATTERNS = [
    # Dec 28, 2022 – Jan 3, 2023
    re.compile(rf"\b{_MONTH}\s+\d{{1,2}},?\s*\d{{4}}{_DASH}{_MONTH}\s+\d{{1,2}},?\s*\d{{4}}\b"),
    # Jun 3 – Jun 10, 2023 / Jun 3 – 10, 2023
    re.compile(rf"\b{_MONTH}\s+\d{{1,2}}{_DASH}(?:{_MONTH}\s+)?\d{{1,2}},?\s*\d{{4}}\b"),
]

PHOTO_COUNT_RE = re.compile(r"\b(\d[\d,]*)\s*(?:photos?|items?)\b", re.IGNORECASE)
SIZE_S_RE = re.compile(r"=s(\d+)")
SIZE_W_RE = re.compile(r"=w(\d+)")
STYLE_URL_RE = re.compile(r"""url\(\s*['"]?([^'")]+?)['"]?\s*\)""")

# Collects the raw facts of every share link on the listing page
LISTING_SCRIPT = """
var sharePath = arguments[0];
var anchors = document.querySelectorAll('a[href*="' + sharePath + '"]');
var results = [];
for (var i = 0; i < anchors.length; i++) {
    var a = anchors[i];
    var tooltipEl = a.querySelector('[data-tooltip]');
    var images = [];
    var imgs = a.querySelectorAll('img');
    for (var j = 0; j < imgs.length; j++) {
        var src = imgs[j].currentSrc || imgs[j].src || '';
        if (src) images.push(src);
        var dataSrc = imgs[j].getAttribute('data-src');
        if (dataSrc && dataSrc !== src) images.push(dataSrc);
    }
    var styles = [];
    var styled = [a].concat(Array.prototype.slice.call(a.querySelectorAll('[style]')));
    for (var k = 0; k < styled.length; k++) {
        var style = styled[k].getAttribute('style') || '';
        if (style.indexOf('url(') !== -1) styles.push(style);
    }
    results.push({
        href: a.href,
        ariaLabel: a.getAttribute('aria-label') || '',
        tooltip: tooltipEl ? (tooltipEl.getAttribute('data-tooltip') || tooltipEl.textContent || '') : '',
        text: a.innerText || a.textContent || '',
        images: images,
        styles: styles
    });
}
return results;
"""

# Collects the raw facts of a single album page
ALBUM_PAGE_SCRIPT = """
var images = [];
var imgs = document.querySelectorAll('img');
for (var i = 0; i < imgs.length; i++) {
    var src = imgs[i].currentSrc || imgs[i].src || imgs[i].getAttribute('data-src') || '';
    if (src) images.push(src);
}
var styles = [];
var styled = document.querySelectorAll('[style*="background"]');
for (var j = 0; j < styled.length; j++) {
    styles.push(styled[j].getAttribute('style') || '');
}
return {
    title: document.title || '',
    text: document.body ? document.body.innerText : '',
    images: images,
    styles: styles
};
"""


@dataclass
class AlbumPageMetadata:
    """What could be read from a single album page."""
    title: Optional[str] = None
    cover_image_url: Optional[str] = None
    date_range: Optional[str] = None
    photo_count: Optional[int] = None


def collapse_whitespace(text: Optional[str]) -> str:
    return " ".join((text or "").split())


def resolve_title(aria_label: Optional[str], tooltip: Optional[str], text: Optional[str],
                  default: str = UNTITLED_ALBUM) -> str:
    """
    Pick an album title: accessible name, then tooltip, then the first line
    of the rendered text, then the default.
    """
    for candidate in (aria_label, tooltip):
        candidate = collapse_whitespace(candidate)
        if candidate:
            return candidate

    for line in (text or "").splitlines():
        line = collapse_whitespace(line)
        if line:
            return line

    return default


def image_size(url: str) -> int:
    """Size token of a Google image URL (=sNNN, else =wNNN); 0 if absent."""
    match = SIZE_S_RE.search(url) or SIZE_W_RE.search(url)
    return int(match.group(1)) if match else 0


def is_service_image(url: str, hosts: Iterable[str]) -> bool:
    """True if the URL is served from one of the image-hosting domains."""
    host = (urlparse(url).hostname or "").lower()
    return bool(host) and any(h.lower() in host for h in hosts)


def background_image_urls(style: str) -> List[str]:
    """All url(...) values in an inline style declaration."""
    return [url.strip() for url in STYLE_URL_RE.findall(style or "")]


def select_cover_image(image_urls: Iterable[str], style_urls: Iterable[str],
                       hosts: Iterable[str], min_size: int = 80) -> Optional[str]:
    """
    Choose the largest qualifying image across <img> and background candidates.

    Candidates off the image hosts, or whose size token is below min_size
    (avatars, icons, URLs with no size token), are never selected.
    """
    hosts = list(hosts)
    best_url = None
    best_size = 0

    for url in chain(image_urls, style_urls):
        if not url or not is_service_image(url, hosts):
            continue
        size = image_size(url)
        if size < min_size:
            continue
        if size > best_size:
            best_size = size
            best_url = url

    return best_url


def resize_cover_url(url: str, size: int = 400) -> str:
    """Ask the image CDN for a fixed render size instead of the scraped one."""
    height = size * 3 // 4
    url = re.sub(r"=s\d+(-p-no)?", lambda m: f"=s{size}{m.group(1) or ''}", url, count=1)
    url = re.sub(r"=w\d+-h\d+", f"=w{size}-h{height}", url, count=1)
    return url


def extract_date_range(text: Optional[str]) -> Optional[str]:
    """First month-name date span found in the text, or None."""
    if not text:
        return None
    for pattern in DATE_RANGE_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(0).strip()
    return None


def extract_photo_count(text: Optional[str]) -> Optional[int]:
    """Number from an "N photos" / "N items" token, or None."""
    match = PHOTO_COUNT_RE.search(text or "")
    if not match:
        return None
    return int(match.group(1).replace(",", ""))


def clean_page_title(title: Optional[str], suffix: str = "Google Photos") -> Optional[str]:
    """Strip the " - Google Photos" suffix; None if nothing album-specific is left."""
    title = collapse_whitespace(title)
    title = re.sub(rf"\s*-\s*{re.escape(suffix)}\s*$", "", title, flags=re.IGNORECASE).strip()
    if not title or title.lower() == suffix.lower():
        return None
    return title


def dedupe_albums(entries: Iterable[RawAlbumEntry]) -> List[RawAlbumEntry]:
    """Keep the first entry per share URL, in first-seen order."""
    seen = set()
    unique = []
    for entry in entries:
        if entry.share_url in seen:
            continue
        seen.add(entry.share_url)
        unique.append(entry)
    return unique


def _attempt(label: str, func: Callable[[], T], default: T) -> T:
    """Run one heuristic; a failure yields the default instead of aborting."""
    try:
        return func()
    except Exception as e:
        logger.debug(f"{label} heuristic failed: {e}")
        return default


class MetadataExtractor:
    """Turns loaded Google Photos pages into album records."""

    def __init__(self, navigator: NavigationDriver, config: Optional[ExtractionConfig] = None,
                 title_suffix: str = "Google Photos"):
        self.navigator = navigator
        self.config = config or ExtractionConfig()
        self.title_suffix = title_suffix

    def wait_for_links(self, page: PageHandle, timeout: int = 30) -> bool:
        """Wait until at least one share link is in the DOM."""
        selector = f'a[href*="{self.config.share_path}"]'
        try:
            WebDriverWait(page.driver, timeout).until(
                EC.presence_of_element_located((By.CSS_SELECTOR, selector))
            )
            return True
        except TimeoutException:
            logger.info("No shared albums found with standard selector after waiting")
            return False

    def entry_from_anchor(self, anchor: Dict[str, Any]) -> Optional[RawAlbumEntry]:
        """
        Build an entry from one anchor's raw facts.

        Returns None if the link is not a fully-qualified share URL.
        """
        href = (anchor.get("href") or "").strip()
        parsed = urlparse(href)
        if parsed.scheme not in ("http", "https") or self.config.share_path not in parsed.path:
            return None

        text = anchor.get("text") or ""
        images = anchor.get("images") or []
        styles = anchor.get("styles") or []

        title = _attempt(
            "title",
            lambda: resolve_title(anchor.get("ariaLabel"), anchor.get("tooltip"), text),
            UNTITLED_ALBUM,
        )
        cover = _attempt(
            "cover image",
            lambda: select_cover_image(
                images,
                [url for style in styles for url in background_image_urls(style)],
                self.config.image_hosts,
                self.config.min_cover_size,
            ),
            None,
        )
        date_range = _attempt("date range", lambda: extract_date_range(text), None)
        photo_count = _attempt("photo count", lambda: extract_photo_count(text), None)

        return RawAlbumEntry(
            share_url=href,
            title=title,
            cover_image_url=cover,
            photo_count=photo_count,
            date_range=date_range,
        )

    def extract_listing(self, page: PageHandle) -> List[RawAlbumEntry]:
        """Extract deduplicated album entries from the fully-scrolled listing page."""
        logger.info("Extracting album data...")

        anchors = self.navigator.evaluate(page, LISTING_SCRIPT, self.config.share_path) or []
        entries = []
        for anchor in anchors:
            entry = self.entry_from_anchor(anchor)
            if entry is not None:
                entries.append(entry)

        unique = dedupe_albums(entries)
        logger.info(f"Found {len(unique)} unique albums ({len(anchors)} links).")
        return unique

    def extract_album_page(self, page: PageHandle) -> AlbumPageMetadata:
        """Read title, cover image, date range and photo count from an album page."""
        facts = self.navigator.evaluate(page, ALBUM_PAGE_SCRIPT) or {}
        text = facts.get("text") or ""
        styles = facts.get("styles") or []

        return AlbumPageMetadata(
            title=_attempt("page title", lambda: clean_page_title(facts.get("title"), self.title_suffix), None),
            cover_image_url=_attempt(
                "cover image",
                lambda: select_cover_image(
                    facts.get("images") or [],
                    [url for style in styles for url in background_image_urls(style)],
                    self.config.image_hosts,
                    self.config.min_cover_size,
                ),
                None,
            ),
            date_range=_attempt("date range", lambda: extract_date_range(text), None),
            photo_count=_attempt("photo count", lambda: extract_photo_count(text), None),
        )
