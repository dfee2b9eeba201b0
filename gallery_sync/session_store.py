# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
"""
Browser session persistence.

Keeps the authenticated Google session (cookies and local storage) in a
directory so later runs start logged in. The store itself never checks
whether the session is still valid; a redirect to the login page is detected
by the navigation driver.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from selenium import webdriver
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.chrome.service import Service
from selenium.common.exceptions import WebDriverException

from .config import BrowserConfig

logger = logging.getLogger(__name__)

# Fields accepted by the DevTools Network.setCookies command
_COOKIE_PARAM_KEYS = ("name", "value", "domain", "path", "secure", "httpOnly", "sameSite", "expires")

# Common chromedriver paths on different systems
CHROMEDRIVER_PATHS = [
    "/usr/bin/chromedriver",
    "/usr/local/bin/chromedriver",
    "/usr/lib/chromium/chromedriver",
    "/usr/lib/chromium-browser/chromedriver",
    "/snap/bin/chromium.chromedriver",
]


class SessionStore:
    """Interface for loading and saving browser storage state."""

    def load(self) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def save(self, state: Dict[str, Any]) -> None:
        raise NotImplementedError


class FileSessionStore(SessionStore):
    """Stores the session as JSON inside a directory."""

    STATE_FILE = "storage_state.json"

    def __init__(self, directory: str):
        self.directory = Path(directory)
        self.state_path = self.directory / self.STATE_FILE

    def load(self) -> Optional[Dict[str, Any]]:
        if not self.state_path.exists():
            logger.info(f"No stored session in {self.directory}")
            return None
        try:
            with open(self.state_path, 'r') as f:
                state = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {self.state_path}: {e}")
            return None
        if not isinstance(state, dict):
            logger.warning(f"Ignoring malformed session file {self.state_path}")
            return None
        return state

    def save(self, state: Dict[str, Any]) -> None:
        """Write the state atomically (temp file, then rename)."""
        self.directory.mkdir(parents=True, exist_ok=True)
        temp_path = str(self.state_path) + '.tmp'
        with open(temp_path, 'w') as f:
            json.dump(state, f, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, self.state_path)
        logger.debug(f"Saved session to {self.state_path}")


class MemorySessionStore(SessionStore):
    """Keeps the session in memory. Used by tests."""

    def __init__(self, state: Optional[Dict[str, Any]] = None):
        self.state = state
        self.save_count = 0

    def load(self) -> Optional[Dict[str, Any]]:
        return self.state

    def save(self, state: Dict[str, Any]) -> None:
        self.state = state
        self.save_count += 1


class BrowsingContext:
    """
    A Chrome WebDriver bound to a session store.

    Use as a context manager: the stored session is restored on entry and,
    if the block completed, saved again before the browser is closed.
    """

    def __init__(self, driver: Any, store: SessionStore):
        self.driver = driver
        self.store = store
        self._closed = False

    def __enter__(self) -> "BrowsingContext":
        try:
            self.restore_state()
        except Exception:
            self.close(save=False)
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        # A failed run (e.g. bounced to the login page) must not overwrite
        # the stored session
        self.close(save=exc_type is None)

    def restore_state(self) -> bool:
        """
        Load cookies and local storage from the store into the browser.

        Returns:
            True if a stored session was applied.
        """
        state = self.store.load()
        if not state:
            logger.info("Starting with an unauthenticated browser session")
            return False

        cookies = [_to_cookie_param(c) for c in state.get("cookies", []) if c.get("name")]
        if cookies:
            self.driver.execute_cdp_cmd("Network.enable", {})
            self.driver.execute_cdp_cmd("Network.setCookies", {"cookies": cookies})

        for origin in state.get("origins", []):
            items = origin.get("localStorage") or []
            if not origin.get("origin") or not items:
                continue
            # Local storage can only be written from a page on the same origin
            self.driver.get(origin["origin"])
            self.driver.execute_script(
                "for (const item of arguments[0]) {"
                " window.localStorage.setItem(item.name, item.value); }",
                items,
            )

        logger.info(f"Restored session with {len(cookies)} cookies")
        return True

    def capture_state(self) -> Dict[str, Any]:
        """Read the current cookies and the current origin's local storage."""
        cookies = self.driver.execute_cdp_cmd("Network.getAllCookies", {}).get("cookies", [])

        previous = self.store.load() or {}
        origins: List[Dict[str, Any]] = list(previous.get("origins", []))
        current = self.driver.execute_script(
            "return {origin: window.location.origin,"
            " localStorage: Object.keys(window.localStorage).map("
            "k => ({name: k, value: window.localStorage.getItem(k)}))};"
        )
        if current and str(current.get("origin", "")).startswith("http"):
            origins = [o for o in origins if o.get("origin") != current["origin"]]
            origins.append(current)

        return {"cookies": cookies, "origins": origins}

    def save_state(self) -> None:
        state = self.capture_state()
        self.store.save(state)
        logger.info(f"Session saved ({len(state['cookies'])} cookies)")

    def close(self, save: bool = True) -> None:
        """Save the session (best effort) and quit the browser."""
        if self._closed:
            return
        self._closed = True
        try:
            if save:
                self.save_state()
        except (WebDriverException, OSError) as e:
            logger.warning(f"Could not save browser session: {e}")
        finally:
            try:
                self.driver.quit()
            except WebDriverException as e:
                logger.debug(f"Error closing browser: {e}")


def _to_cookie_param(cookie: Dict[str, Any]) -> Dict[str, Any]:
    """Reduce a Network.getAllCookies entry to a Network.setCookies parameter."""
    param = {key: cookie[key] for key in _COOKIE_PARAM_KEYS if key in cookie}
    # Session cookies carry expires=-1, which setCookies rejects
    if cookie.get("session") or param.get("expires", 0) < 0:
        param.pop("expires", None)
    return param


def build_chrome_options(config: BrowserConfig, headless: bool,
                         remote_debug: bool = False) -> Options:
    """Chrome options for scraping: DOM-ready page loads, desktop user agent."""
    options = Options()

    if headless:
        options.add_argument("--headless=new")

    # Essential options for containers / Linux
    options.add_argument("--no-sandbox")
    options.add_argument("--disable-setuid-sandbox")
    options.add_argument("--disable-dev-shm-usage")
    options.add_argument("--disable-gpu")

    width, height = config.window_size
    options.add_argument(f"--window-size={width},{height}")
    options.add_argument(f"--user-agent={config.user_agent}")

    if remote_debug:
        options.add_argument(f"--remote-debugging-port={config.remote_debug_port}")

    # Return from driver.get() at DOMContentLoaded; the UI streams content
    # continuously so full load / network idle never settles.
    options.page_load_strategy = "eager"
    return options


def create_chrome_driver(config: BrowserConfig, headless: bool,
                         remote_debug: bool = False) -> webdriver.Chrome:
    """Initialize Chrome WebDriver, trying the usual chromedriver locations."""
    options = build_chrome_options(config, headless, remote_debug)

    driver = None
    last_error = None

    # Method 1: Try default (let Selenium find chromedriver)
    try:
        driver = webdriver.Chrome(options=options)
    except WebDriverException as e:
        last_error = e
        logger.debug(f"Default chromedriver not found: {e}")

    # Method 2: Try known paths
    if driver is None:
        for path in CHROMEDRIVER_PATHS:
            if not os.path.exists(path):
                continue
            try:
                driver = webdriver.Chrome(service=Service(path), options=options)
                logger.info(f"Using chromedriver from: {path}")
                break
            except WebDriverException as e:
                last_error = e

    if driver is None:
        logger.error(f"Failed to initialize Chrome driver: {last_error}")
        raise RuntimeError(
            "Could not initialize Chrome WebDriver. "
            "Ensure Chromium and chromedriver are installed. Try:\n"
            "  sudo apt install chromium chromium-driver"
        )

    driver.set_page_load_timeout(config.navigation_timeout)

    if remote_debug:
        logger.info("=" * 40)
        logger.info(f"Remote debugging enabled on port {config.remote_debug_port}")
        logger.info("Open chrome://inspect in your browser, or visit "
                    f"http://localhost:{config.remote_debug_port}")
        logger.info("=" * 40)

    return driver


def acquire_context(persistence_path: str, config: Optional[BrowserConfig] = None,
                    headless: Optional[bool] = None, remote_debug: bool = False,
                    store: Optional[SessionStore] = None,
                    driver_factory: Optional[Callable[..., Any]] = None) -> BrowsingContext:
    """
    Start a browser bound to the session stored under persistence_path.

    Args:
        persistence_path: Directory holding the stored session.
        config: Browser settings (defaults if None).
        headless: Overrides config.headless when given.
        remote_debug: Expose the DevTools port for attaching a local browser.
        store: Session store to use instead of a FileSessionStore.
        driver_factory: Replaces create_chrome_driver (tests).

    Returns:
        An unopened BrowsingContext; enter it to restore the session.
    """
    config = config or BrowserConfig()
    if headless is None:
        headless = config.headless
    store = store or FileSessionStore(persistence_path)
    factory = driver_factory or create_chrome_driver

    logger.info(f"Session directory: {persistence_path}")
    logger.info(f"Headless: {headless}")
    driver = factory(config, headless, remote_debug)
    return BrowsingContext(driver, store)
