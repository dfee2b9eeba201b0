"""
Configuration management for Gallery Sync.
Handles loading, validation, and defaults for all settings.
"""

import os
import yaml
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
import logging

logger = logging.getLogger(__name__)

# Default paths
DEFAULT_CONFIG_PATHS = [
    "./gallery_sync.yaml",
    os.path.expanduser("~/.config/gallery_sync/config.yaml"),
    "/etc/gallery_sync/config.yaml",
]

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class BrowserConfig:
    """Browser and navigation settings."""
    headless: bool = True
    window_size: List[int] = field(default_factory=lambda: [1280, 800])
    user_agent: str = DEFAULT_USER_AGENT
    navigation_timeout: int = 30        # Seconds, per album page
    listing_timeout: int = 60           # Seconds, for the sharing page
    settle_seconds: float = 2.5         # After an album page load
    listing_settle_seconds: float = 3.0  # After the sharing page load (redirects)
    login_timeout: int = 300            # Interactive login wait
    remote_debug_port: int = 9222


@dataclass
class ScrollConfig:
    """Infinite-scroll convergence settings."""
    settle_seconds: float = 1.5
    max_iterations: int = 50
    log_every: int = 5


@dataclass
class ExtractionConfig:
    """DOM heuristic settings."""
    share_path: str = "/share/"
    image_hosts: List[str] = field(default_factory=lambda: ["googleusercontent", "ggpht"])
    min_cover_size: int = 80   # Smaller images are avatars/icons
    cover_size: int = 400      # Size requested for resolved covers


@dataclass
class EnrichmentConfig:
    """Per-album visit settings."""
    request_delay_seconds: float = 0.5  # After each album during a scrape
    fetch_delay_seconds: float = 0.8    # After each album during a fetch


@dataclass
class PathsConfig:
    """File locations."""
    session_dir: str = ".browser-session"
    output_file: str = "data/albums.json"
    fallback_file: str = "data/fallback_albums.yaml"
    links_file: str = "data/album_links.txt"
    screenshot_file: str = "debug-screenshot.png"
    log_dir: Optional[str] = None


@dataclass
class ServiceConfig:
    """Target service URLs and host patterns."""
    listing_url: str = "https://photos.google.com/sharing"
    expected_host: str = "photos.google.com"
    expected_path: str = "/sharing"
    login_hosts: List[str] = field(default_factory=lambda: ["accounts.google.com"])
    title_suffix: str = "Google Photos"


@dataclass
class GallerySyncConfig:
    """Main configuration class."""
    browser: BrowserConfig = field(default_factory=BrowserConfig)
    scroll: ScrollConfig = field(default_factory=ScrollConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    enrichment: EnrichmentConfig = field(default_factory=EnrichmentConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    service: ServiceConfig = field(default_factory=ServiceConfig)

    # Runtime state (not persisted)
    config_path: Optional[str] = None


def _dict_to_dataclass(data: Optional[Dict[str, Any]], cls: type) -> Any:
    """Convert a dictionary to a dataclass instance, ignoring unknown keys."""
    if data is None:
        return cls()

    field_names = set(cls.__dataclass_fields__)
    kwargs = {key: value for key, value in data.items() if key in field_names}
    return cls(**kwargs)


def load_config(config_path: Optional[str] = None) -> GallerySyncConfig:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to config file. If None, searches default locations.

    Returns:
        GallerySyncConfig instance with loaded or default values.
    """
    if config_path:
        paths_to_try = [config_path]
    else:
        paths_to_try = DEFAULT_CONFIG_PATHS

    config_data = {}
    found_path = None

    for path in paths_to_try:
        expanded_path = os.path.expanduser(path)
        if os.path.exists(expanded_path):
            try:
                with open(expanded_path, 'r') as f:
                    config_data = yaml.safe_load(f) or {}
                found_path = expanded_path
                logger.info(f"Loaded config from {expanded_path}")
                break
            except Exception as e:
                logger.warning(f"Failed to load config from {expanded_path}: {e}")

    if not found_path:
        logger.info("No config file found, using defaults")

    config = GallerySyncConfig(
        browser=_dict_to_dataclass(config_data.get('browser'), BrowserConfig),
        scroll=_dict_to_dataclass(config_data.get('scroll'), ScrollConfig),
        extraction=_dict_to_dataclass(config_data.get('extraction'), ExtractionConfig),
        enrichment=_dict_to_dataclass(config_data.get('enrichment'), EnrichmentConfig),
        paths=_dict_to_dataclass(config_data.get('paths'), PathsConfig),
        service=_dict_to_dataclass(config_data.get('service'), ServiceConfig),
        config_path=found_path,
    )

    # Expand user paths
    paths = config.paths
    paths.session_dir = os.path.expanduser(paths.session_dir)
    paths.output_file = os.path.expanduser(paths.output_file)
    paths.fallback_file = os.path.expanduser(paths.fallback_file)
    paths.links_file = os.path.expanduser(paths.links_file)
    if paths.log_dir:
        paths.log_dir = os.path.expanduser(paths.log_dir)

    return config


def validate_config(config: GallerySyncConfig) -> List[str]:
    """
    Validate configuration and return list of errors.

    Returns:
        List of error messages. Empty if valid.
    """
    errors = []

    browser = config.browser
    if len(browser.window_size) != 2 or any(v <= 0 for v in browser.window_size):
        errors.append("browser.window_size must be two positive integers [width, height]")
    if browser.navigation_timeout <= 0 or browser.listing_timeout <= 0:
        errors.append("Navigation timeouts must be positive")
    if browser.settle_seconds < 0 or browser.listing_settle_seconds < 0:
        errors.append("Settle delays cannot be negative")
    if not (1 <= browser.login_timeout <= 300):
        errors.append("browser.login_timeout must be between 1 and 300 seconds")
    if not (1 <= browser.remote_debug_port <= 65535):
        errors.append("browser.remote_debug_port must be between 1 and 65535")

    if config.scroll.max_iterations < 1:
        errors.append("scroll.max_iterations must be at least 1")
    if config.scroll.settle_seconds < 0:
        errors.append("scroll.settle_seconds cannot be negative")

    extraction = config.extraction
    if not extraction.share_path:
        errors.append("extraction.share_path cannot be empty")
    if not extraction.image_hosts:
        errors.append("extraction.image_hosts must list at least one host")
    if extraction.min_cover_size < 0 or extraction.cover_size <= 0:
        errors.append("Cover sizes must be positive")

    if config.enrichment.request_delay_seconds < 0 or config.enrichment.fetch_delay_seconds < 0:
        errors.append("Enrichment delays cannot be negative")

    if not config.service.listing_url.startswith(('http://', 'https://')):
        errors.append("service.listing_url must start with http:// or https://")

    if not config.paths.output_file:
        errors.append("paths.output_file cannot be empty")

    return errors
