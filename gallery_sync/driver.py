# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
"""
Navigation driver.

Thin wrapper over a Selenium WebDriver: opens pages, waits for DOM-ready plus
a fixed settle delay, runs scripts in the page and detects when a navigation
was bounced to the login page.
"""

import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Iterable, Optional
from urllib.parse import urlparse

from selenium.common.exceptions import TimeoutException
from selenium.webdriver.support.ui import WebDriverWait

from .errors import AuthenticationError, LoginTimeoutError

logger = logging.getLogger(__name__)

DOM_READY = "domcontentloaded"
WAIT_CONDITIONS = (DOM_READY,)


@dataclass
class PageHandle:
    """A page loaded by the driver."""
    driver: Any
    requested_url: str

    @property
    def url(self) -> str:
        """The URL the browser ended up on (after redirects)."""
        return self.driver.current_url

    @property
    def title(self) -> str:
        return self.driver.title or ""


def is_authenticated_url(url: str, expected_host: str, expected_path: str = "",
                         login_hosts: Iterable[str] = ()) -> bool:
    """
    Check whether a post-navigation URL is inside the authenticated app.

    Args:
        url: URL the browser landed on.
        expected_host: Host of the authenticated app, e.g. "photos.google.com".
        expected_path: Optional path prefix that must also match.
        login_hosts: Hosts that indicate a sign-in redirect.

    Returns:
        True if the URL is on the expected host (and path) and not a login page.
    """
    parsed = urlparse(url or "")
    host = (parsed.hostname or "").lower()
    if not host or host in {h.lower() for h in login_hosts}:
        return False
    if host != expected_host.lower():
        return False
    if expected_path and not parsed.path.startswith(expected_path):
        return False
    return True


class NavigationDriver:
    """
    Opens pages and evaluates scripts in them.

    The driver never waits for network idle: the target UI keeps streaming
    content, so it returns at DOM-ready and then sleeps a fixed settle delay.
    """

    def __init__(self, driver: Any, timeout: int = 30, settle_seconds: float = 2.5):
        """
        Args:
            driver: Selenium WebDriver (created with page_load_strategy "eager").
            timeout: Default navigation timeout in seconds.
            settle_seconds: Default delay after load for client-side rendering.
        """
        self.driver = driver
        self.timeout = timeout
        self.settle_seconds = settle_seconds

    def load(self, url: str, wait_condition: str = DOM_READY,
             timeout: Optional[int] = None, settle_seconds: Optional[float] = None) -> PageHandle:
        """
        Navigate to a URL.

        Raises:
            ValueError: Unsupported wait condition.
            TimeoutException: Navigation took longer than the timeout.
        """
        if wait_condition not in WAIT_CONDITIONS:
            raise ValueError(f"Unsupported wait condition: {wait_condition}")

        timeout = timeout or self.timeout
        settle = self.settle_seconds if settle_seconds is None else settle_seconds

        self.driver.set_page_load_timeout(timeout)
        logger.debug(f"Loading {url} (timeout {timeout}s)")
        self.driver.get(url)

        # No explicit "ready" signal from the page; let the client render
        if settle > 0:
            time.sleep(settle)

        return PageHandle(driver=self.driver, requested_url=url)

    def evaluate(self, page: PageHandle, script: str, *args: Any) -> Any:
        """Run a script in the page and return its result."""
        return page.driver.execute_script(script, *args)

    def current_page(self, requested_url: str = "") -> PageHandle:
        return PageHandle(driver=self.driver, requested_url=requested_url or self.driver.current_url)

    def ensure_authenticated(self, page: PageHandle, expected_host: str,
                             expected_path: str = "", login_hosts: Iterable[str] = ()) -> None:
        """
        Raise AuthenticationError if the page is outside the authenticated app.
        """
        url = page.url
        if not is_authenticated_url(url, expected_host, expected_path, login_hosts):
            raise AuthenticationError(url)

    def wait_for_url(self, pattern: str, timeout: int = 300, poll_seconds: float = 1.0) -> PageHandle:
        """
        Block until the browser URL matches a regex (interactive login).

        Raises:
            LoginTimeoutError: The URL did not match within the timeout.
        """
        regex = re.compile(pattern)
        try:
            WebDriverWait(self.driver, timeout, poll_frequency=poll_seconds).until(
                lambda d: regex.search(d.current_url or "")
            )
        except TimeoutException:
            raise LoginTimeoutError(
                f"Timed out after {timeout}s waiting for {pattern} "
                f"(last URL: {self.driver.current_url})"
            )
        return self.current_page()

    def screenshot(self, path: str) -> str:
        """Save a full-page PNG of the current page and return its path."""
        # Grow the window to the document so headless Chrome captures everything
        try:
            width, height = self.driver.execute_script(
                "return [document.documentElement.scrollWidth, document.body.scrollHeight];"
            )
            self.driver.set_window_size(max(int(width), 800), max(int(height), 600))
        except Exception as e:
            logger.debug(f"Could not resize window for screenshot: {e}")
        self.driver.save_screenshot(path)
        return path
