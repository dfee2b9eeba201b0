# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
"""Exceptions raised by the scraping pipeline."""


class GallerySyncError(Exception):
    """Base class for pipeline errors."""


class AuthenticationError(GallerySyncError):
    """The browser landed outside the authenticated listing page."""

    def __init__(self, url: str, message: str = ""):
        self.url = url
        super().__init__(message or f"Not logged in (redirected to {url})")


class LoginTimeoutError(GallerySyncError):
    """The interactive login did not reach the listing page in time."""
