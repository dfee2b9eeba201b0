# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
"""Tests for browser session persistence."""

import json
from unittest.mock import MagicMock, patch

import pytest
from selenium.common.exceptions import WebDriverException

from gallery_sync.config import BrowserConfig
from gallery_sync.session_store import (
    BrowsingContext,
    FileSessionStore,
    MemorySessionStore,
    acquire_context,
    build_chrome_options,
    create_chrome_driver,
)

COOKIES = [
    {"name": "SID", "value": "abc", "domain": ".google.com", "path": "/", "expires": 1900000000,
     "size": 40, "httpOnly": True, "secure": True, "session": False},
    {"name": "NID", "value": "xyz", "domain": ".google.com", "path": "/", "expires": -1,
     "session": True},
]


class TestFileSessionStore:
    """Tests for the on-disk session store."""

    def test_missing_directory(self, temp_dir):
        assert FileSessionStore(str(temp_dir / "session")).load() is None

    def test_save_and_load(self, temp_dir):
        store = FileSessionStore(str(temp_dir / "session"))
        store.save({"cookies": COOKIES, "origins": []})

        assert (temp_dir / "session" / "storage_state.json").exists()
        assert FileSessionStore(str(temp_dir / "session")).load()["cookies"][0]["name"] == "SID"

    def test_corrupt_file_ignored(self, temp_dir):
        """Test that a bad session file starts an unauthenticated session."""
        directory = temp_dir / "session"
        directory.mkdir()
        (directory / "storage_state.json").write_text("not json")
        assert FileSessionStore(str(directory)).load() is None

        (directory / "storage_state.json").write_text(json.dumps([1, 2]))
        assert FileSessionStore(str(directory)).load() is None


class TestBrowsingContext:
    """Tests for restoring and saving browser state."""

    def test_restore_applies_cookies_and_storage(self, fake_driver_factory):
        driver = fake_driver_factory()
        store = MemorySessionStore({
            "cookies": COOKIES,
            "origins": [{"origin": "https://photos.google.com",
                         "localStorage": [{"name": "k", "value": "v"}]}],
        })

        assert BrowsingContext(driver, store).restore_state() is True

        commands = [cmd for cmd, _ in driver.cdp_calls]
        assert commands == ["Network.enable", "Network.setCookies"]
        cookies = driver.cdp_calls[1][1]["cookies"]
        assert "size" not in cookies[0]
        assert cookies[0]["expires"] == 1900000000
        assert "expires" not in cookies[1]
        assert driver.visited == ["https://photos.google.com"]

    def test_restore_without_state(self, fake_driver_factory):
        driver = fake_driver_factory()
        assert BrowsingContext(driver, MemorySessionStore()).restore_state() is False
        assert driver.cdp_calls == []

    def test_clean_exit_saves_and_quits(self, fake_driver_factory):
        """Test that a completed block persists the session."""
        driver = fake_driver_factory(cookies=COOKIES, local_storage=[{"name": "a", "value": "1"}])
        store = MemorySessionStore()

        with BrowsingContext(driver, store):
            pass

        assert store.save_count == 1
        assert store.state["cookies"] == COOKIES
        assert store.state["origins"] == [{"origin": "https://photos.google.com",
                                           "localStorage": [{"name": "a", "value": "1"}]}]
        assert driver.quit_called

    def test_failed_block_does_not_save(self, fake_driver_factory):
        """Test that an error inside the block leaves the stored session alone."""
        driver = fake_driver_factory(cookies=COOKIES)
        store = MemorySessionStore({"cookies": [], "origins": []})

        with pytest.raises(RuntimeError):
            with BrowsingContext(driver, store):
                raise RuntimeError("bounced to login")

        assert store.save_count == 0
        assert driver.quit_called

    def test_capture_replaces_same_origin(self, fake_driver_factory):
        driver = fake_driver_factory(local_storage=[{"name": "new", "value": "2"}])
        store = MemorySessionStore({"cookies": [], "origins": [
            {"origin": "https://photos.google.com", "localStorage": [{"name": "old", "value": "1"}]},
            {"origin": "https://accounts.google.com", "localStorage": [{"name": "x", "value": "y"}]},
        ]})

        state = BrowsingContext(driver, store).capture_state()

        origins = {o["origin"]: o["localStorage"] for o in state["origins"]}
        assert origins["https://photos.google.com"] == [{"name": "new", "value": "2"}]
        assert "https://accounts.google.com" in origins

    def test_save_failure_still_quits(self):
        driver = MagicMock()
        driver.execute_cdp_cmd.side_effect = WebDriverException("gone")

        BrowsingContext(driver, MemorySessionStore()).close()

        driver.quit.assert_called_once()

    def test_close_is_idempotent(self, fake_driver_factory):
        driver = fake_driver_factory()
        store = MemorySessionStore()
        context = BrowsingContext(driver, store)
        context.close()
        context.close()
        assert store.save_count == 1


class TestChromeDriver:
    """Tests for Chrome driver creation."""

    def test_options(self):
        options = build_chrome_options(BrowserConfig(), headless=True, remote_debug=True)

        assert "--headless=new" in options.arguments
        assert "--no-sandbox" in options.arguments
        assert "--window-size=1280,800" in options.arguments
        assert "--remote-debugging-port=9222" in options.arguments
        assert any(a.startswith("--user-agent=") for a in options.arguments)
        assert options.page_load_strategy == "eager"

    def test_headed_options(self):
        options = build_chrome_options(BrowserConfig(), headless=False)
        assert "--headless=new" not in options.arguments
        assert not any(a.startswith("--remote-debugging-port") for a in options.arguments)

    def test_create_sets_page_load_timeout(self):
        with patch("gallery_sync.session_store.webdriver.Chrome") as mock_chrome:
            driver = create_chrome_driver(BrowserConfig(navigation_timeout=45), headless=True)

        assert driver is mock_chrome.return_value
        driver.set_page_load_timeout.assert_called_once_with(45)

    def test_create_fails_with_guidance(self):
        with patch("gallery_sync.session_store.webdriver.Chrome",
                   side_effect=WebDriverException("no driver")), \
                patch("gallery_sync.session_store.os.path.exists", return_value=False):
            with pytest.raises(RuntimeError, match="chromedriver"):
                create_chrome_driver(BrowserConfig(), headless=True)

    def test_acquire_context(self, temp_dir, fake_driver_factory):
        driver = fake_driver_factory()
        factory = MagicMock(return_value=driver)

        context = acquire_context(str(temp_dir / "session"), headless=False, driver_factory=factory)

        assert isinstance(context.store, FileSessionStore)
        assert context.driver is driver
        args = factory.call_args[0]
        assert args[1] is False
