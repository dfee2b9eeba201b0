# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
"""Tests for the navigation driver."""

from unittest.mock import patch

import pytest

from gallery_sync.driver import NavigationDriver, is_authenticated_url
from gallery_sync.errors import AuthenticationError, LoginTimeoutError

LOGIN_HOSTS = ["accounts.google.com"]


class TestIsAuthenticatedUrl:
    """Tests for login-redirect detection."""

    def test_sharing_page(self):
        assert is_authenticated_url("https://photos.google.com/sharing", "photos.google.com",
                                    "/sharing", LOGIN_HOSTS)

    def test_login_redirect(self):
        url = "https://accounts.google.com/v3/signin/identifier?continue=https://photos.google.com/sharing"
        assert not is_authenticated_url(url, "photos.google.com", login_hosts=LOGIN_HOSTS)

    def test_other_host(self):
        assert not is_authenticated_url("https://www.google.com/photos/about/", "photos.google.com")

    def test_wrong_path(self):
        assert is_authenticated_url("https://photos.google.com/", "photos.google.com")
        assert not is_authenticated_url("https://photos.google.com/", "photos.google.com", "/sharing")

    def test_blank(self):
        assert not is_authenticated_url("", "photos.google.com")
        assert not is_authenticated_url("about:blank", "photos.google.com")


class TestNavigationDriver:
    """Tests for NavigationDriver."""

    def test_load_applies_timeout_and_settle(self, fake_driver_factory, no_sleep):
        driver = fake_driver_factory(redirects={"https://a/": "https://b/"})
        navigator = NavigationDriver(driver, timeout=30, settle_seconds=2.5)

        page = navigator.load("https://a/", timeout=60)

        assert driver.page_load_timeout == 60
        assert page.requested_url == "https://a/"
        assert page.url == "https://b/"
        no_sleep.assert_called_once_with(2.5)

    def test_load_default_timeout_no_settle(self, fake_driver_factory, no_sleep):
        driver = fake_driver_factory()
        navigator = NavigationDriver(driver, timeout=30, settle_seconds=2.5)

        navigator.load("https://a/", settle_seconds=0)

        assert driver.page_load_timeout == 30
        no_sleep.assert_not_called()

    def test_unsupported_wait_condition(self, fake_driver_factory):
        navigator = NavigationDriver(fake_driver_factory())
        with pytest.raises(ValueError):
            navigator.load("https://a/", wait_condition="networkidle")

    def test_ensure_authenticated_raises(self, fake_driver_factory, no_sleep):
        driver = fake_driver_factory(redirects={
            "https://photos.google.com/sharing": "https://accounts.google.com/signin",
        })
        navigator = NavigationDriver(driver, settle_seconds=0)
        page = navigator.load("https://photos.google.com/sharing")

        with pytest.raises(AuthenticationError) as exc_info:
            navigator.ensure_authenticated(page, "photos.google.com", login_hosts=LOGIN_HOSTS)
        assert exc_info.value.url == "https://accounts.google.com/signin"

    def test_ensure_authenticated_passes(self, fake_driver_factory, no_sleep):
        navigator = NavigationDriver(fake_driver_factory(), settle_seconds=0)
        page = navigator.load("https://photos.google.com/sharing")
        navigator.ensure_authenticated(page, "photos.google.com", "/sharing", LOGIN_HOSTS)

    def test_wait_for_url_matches(self, fake_driver_factory):
        driver = fake_driver_factory()
        driver.current_url = "https://photos.google.com/sharing"
        navigator = NavigationDriver(driver)

        page = navigator.wait_for_url(r"photos\.google\.com/sharing", timeout=1, poll_seconds=0.01)
        assert page.url == "https://photos.google.com/sharing"

    def test_wait_for_url_times_out(self, fake_driver_factory):
        driver = fake_driver_factory()
        driver.current_url = "https://accounts.google.com/signin"
        navigator = NavigationDriver(driver)

        with patch("gallery_sync.driver.WebDriverWait") as mock_wait:
            from selenium.common.exceptions import TimeoutException
            mock_wait.return_value.until.side_effect = TimeoutException()
            with pytest.raises(LoginTimeoutError):
                navigator.wait_for_url("photos", timeout=1)

    def test_screenshot(self, fake_driver_factory, temp_dir):
        driver = fake_driver_factory()
        path = str(temp_dir / "shot.png")

        assert NavigationDriver(driver).screenshot(path) == path
        assert driver.screenshots == [path]
