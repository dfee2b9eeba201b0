# Copyright (c) 2025-2026 Luc Vincent. All Rights Reserved.
"""
Pytest configuration and shared fixtures for Gallery Sync tests.
"""

import json
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest
from selenium.common.exceptions import TimeoutException

from gallery_sync.extractor import ALBUM_PAGE_SCRIPT, LISTING_SCRIPT


class FakeWebDriver:
    """
    Scripted stand-in for a Selenium Chrome WebDriver.

    - heights: successive document heights returned by scrollHeight queries
      (the last value repeats once exhausted).
    - anchors: raw anchor facts returned by the listing script.
    - pages: album page facts keyed by URL.
    - redirects: URL -> landing URL.
    - timeouts: URLs whose navigation raises TimeoutException.
    """

    def __init__(self, heights=None, anchors=None, pages=None, redirects=None,
                 timeouts=None, cookies=None, local_storage=None):
        self.heights = list(heights or [1000])
        self.anchors = anchors or []
        self.pages = pages or {}
        self.redirects = redirects or {}
        self.timeouts = set(timeouts or [])
        self.cookies = cookies or []
        self.local_storage = local_storage or []
        self.current_url = "about:blank"
        self.title = ""
        self.visited = []
        self.scripts = []
        self.cdp_calls = []
        self.scroll_count = 0
        self.height_reads = 0
        self.page_load_timeout = None
        self.screenshots = []
        self.quit_called = False

    def set_page_load_timeout(self, timeout):
        self.page_load_timeout = timeout

    def get(self, url):
        self.visited.append(url)
        if url in self.timeouts:
            raise TimeoutException(f"Timed out loading {url}")
        self.current_url = self.redirects.get(url, url)
        self.title = self.pages.get(url, {}).get("title", "")

    def _height(self):
        index = min(self.height_reads, len(self.heights) - 1)
        self.height_reads += 1
        return self.heights[index]

    def execute_script(self, script, *args):
        self.scripts.append((script, args))
        if script == LISTING_SCRIPT:
            return self.anchors
        if script == ALBUM_PAGE_SCRIPT:
            return self.pages.get(self.visited[-1] if self.visited else "", {})
        if "window.scrollTo" in script:
            self.scroll_count += 1
            return None
        if "return document.body.scrollHeight" in script:
            return self._height()
        if "window.location.origin" in script:
            return {"origin": "https://photos.google.com", "localStorage": self.local_storage}
        if "scrollWidth" in script:
            return [1280, 2000]
        return None

    def execute_cdp_cmd(self, cmd, params):
        self.cdp_calls.append((cmd, params))
        if cmd == "Network.getAllCookies":
            return {"cookies": self.cookies}
        return {}

    def find_element(self, by, value):
        return {"by": by, "value": value}

    def set_window_size(self, width, height):
        pass

    def save_screenshot(self, path):
        Path(path).write_bytes(b"\x89PNG")
        self.screenshots.append(path)
        return True

    def quit(self):
        self.quit_called = True


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def no_sleep():
    """Make time.sleep a no-op everywhere in the package."""
    with patch("time.sleep") as mock_sleep:
        yield mock_sleep


@pytest.fixture
def fake_driver_factory():
    """Build FakeWebDriver instances."""
    return FakeWebDriver


@pytest.fixture
def sample_config_dict(temp_dir):
    """Return a minimal valid config dictionary pointing into temp_dir."""
    return {
        "browser": {
            "headless": True,
            "window_size": [1280, 800],
            "navigation_timeout": 30,
            "listing_timeout": 60,
            "settle_seconds": 0,
            "listing_settle_seconds": 0,
            "login_timeout": 5,
        },
        "scroll": {
            "settle_seconds": 0,
            "max_iterations": 50,
        },
        "extraction": {
            "min_cover_size": 80,
            "cover_size": 400,
        },
        "enrichment": {
            "request_delay_seconds": 0,
            "fetch_delay_seconds": 0,
        },
        "paths": {
            "session_dir": str(temp_dir / "session"),
            "output_file": str(temp_dir / "data" / "albums.json"),
            "fallback_file": str(temp_dir / "data" / "fallback_albums.yaml"),
            "links_file": str(temp_dir / "data" / "album_links.txt"),
            "screenshot_file": str(temp_dir / "debug-screenshot.png"),
        },
    }


@pytest.fixture
def sample_config_yaml(temp_dir, sample_config_dict):
    """Create a temporary gallery_sync.yaml file."""
    import yaml
    config_path = temp_dir / "gallery_sync.yaml"
    with open(config_path, 'w') as f:
        yaml.dump(sample_config_dict, f)
    return config_path


@pytest.fixture
def sample_config(sample_config_yaml):
    """Loaded config from sample_config_yaml."""
    from gallery_sync.config import load_config
    return load_config(str(sample_config_yaml))


@pytest.fixture
def sample_document():
    """Return a persisted album document as written by a scrape run."""
    return {
        "lastUpdated": "2024-12-24T10:00:00.000Z",
        "albums": [
            {
                "title": "Iceland",
                "shareUrl": "https://photos.google.com/share/AF1QipAAA?key=k1",
                "coverImageUrl": "https://lh3.googleusercontent.com/pw/AAA=s400-p-no",
                "photoCount": 42,
                "dateRange": "Jun 3 – Jun 10, 2023",
            },
            {
                "title": "Untitled Album",
                "shareUrl": "https://photos.google.com/share/AF1QipBBB?key=k2",
                "coverImageUrl": None,
                "photoCount": None,
                "dateRange": None,
            },
        ],
    }


@pytest.fixture
def sample_document_path(temp_dir, sample_document):
    """Write sample_document to temp_dir/albums.json."""
    path = temp_dir / "albums.json"
    path.write_text(json.dumps(sample_document, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def sample_fallback_yaml(temp_dir):
    """Create a manual fallback list with both entry forms."""
    path = temp_dir / "fallback_albums.yaml"
    path.write_text(
        "- https://photos.google.com/share/AF1QipFALL1?key=a\n"
        "- url: https://photos.google.com/share/AF1QipFALL2?key=b\n"
        "  title: Greyhound Meetup\n"
        "- url: https://photos.app.goo.gl/FALL3\n"
        "  year: '2019'\n"
        "  country: Japan\n"
        "  location: Kyoto\n",
        encoding="utf-8",
    )
    return path
