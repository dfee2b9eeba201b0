#!/usr/bin/env python3
# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
"""
Command-line interface for Gallery Sync.
Scrapes or fetches album metadata and shows the dataset the site will use.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import GallerySyncConfig, load_config, validate_config
from .errors import AuthenticationError, LoginTimeoutError

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(verbose: bool = False, log_dir: Optional[str] = None, quiet: bool = False) -> None:
    """Log to stdout, and to gallery_sync.log in log_dir when given."""
    level = logging.DEBUG if verbose else logging.INFO
    if quiet:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    # Selenium and urllib3 are chatty at DEBUG
    logging.getLogger('selenium').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path / 'gallery_sync.log')
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(file_handler)


def print_login_help(config: GallerySyncConfig) -> None:
    """Explain how to create a session when the stored one is missing or expired."""
    logger.error("=" * 40)
    logger.error("ERROR: Not logged in to Google Photos")
    logger.error("=" * 40)
    logger.error("Options to authenticate:")
    logger.error("1. Run locally (recommended):")
    logger.error("   - Run: gallery-sync scrape --login")
    logger.error("   - Log in when the browser opens")
    logger.error(f"   - Copy the {config.paths.session_dir}/ folder to the machine that runs the scraper")
    logger.error("2. Run remotely with a visible display (VNC, X forwarding):")
    logger.error("   - gallery-sync scrape --login")
    logger.error("3. Attach to the headless browser:")
    logger.error("   - gallery-sync scrape --login --headless --remote-debug")
    logger.error("   - Open chrome://inspect locally and complete the login there")


def cmd_scrape(args, config: GallerySyncConfig) -> int:
    """Scrape all shared albums from the sharing page."""
    from .pipeline import scrape_shared_albums

    headless = None
    if args.headless:
        headless = True
    elif args.headed:
        headless = False

    try:
        result = scrape_shared_albums(
            config,
            login_mode=args.login,
            headless=headless,
            remote_debug=args.remote_debug,
        )
    except AuthenticationError as e:
        logger.debug(f"Authentication failed: {e}")
        print_login_help(config)
        return 1
    except LoginTimeoutError as e:
        logger.error(f"Login not completed: {e}")
        return 1
    except Exception as e:
        logger.error(f"Error during scraping: {e}")
        return 1

    if not result.albums:
        # Not a failure: an empty result is a valid outcome
        logger.info("Nothing written.")
    return 0


def cmd_fetch(args, config: GallerySyncConfig) -> int:
    """Fetch metadata for the curated album URLs."""
    from .pipeline import fetch_album_metadata

    try:
        result = fetch_album_metadata(config)
    except Exception as e:
        logger.error(f"Error during fetch: {e}")
        return 1

    if result.output_path:
        logger.info(f"Wrote {len(result.albums)} album(s) to {result.output_path}")
    return 0


def cmd_show(args, config: GallerySyncConfig) -> int:
    """Show the albums the site build will use."""
    from .loader import load_unified_albums

    result = load_unified_albums(config.paths.output_file, fallback_file=config.paths.fallback_file)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return 0

    print(f"Source: {result.source}")
    print(f"Last updated: {result.last_updated or 'n/a'}")
    print("=" * 60)
    if not result.albums:
        print("No albums.")
        return 0

    for i, album in enumerate(result.albums, 1):
        details = [d for d in (album.date_range, album.year, album.country) if d]
        if album.photo_count is not None:
            details.append(f"{album.photo_count} photos")
        suffix = f" ({', '.join(details)})" if details else ""
        print(f"{i}. {album.title}{suffix}")
        print(f"   {album.link}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gallery-sync",
        description="Gallery Sync - Google Photos shared-album metadata",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  gallery-sync scrape --login    Log in once and save the browser session
  gallery-sync scrape            Scrape shared albums with the saved session
  gallery-sync fetch             Fetch metadata for the curated album list
  gallery-sync show              Show the albums the site will use
        """
    )
    parser.add_argument("--config", "-c", help="Path to config file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    scrape = subparsers.add_parser("scrape", help="Scrape shared albums from Google Photos")
    scrape.add_argument("--login", action="store_true",
                        help="Open a visible browser and wait for you to log in")
    mode = scrape.add_mutually_exclusive_group()
    mode.add_argument("--headless", action="store_true", help="Force headless browser")
    mode.add_argument("--headed", action="store_true", help="Force visible browser")
    scrape.add_argument("--remote-debug", action="store_true",
                        help="Enable Chrome remote debugging")

    subparsers.add_parser("fetch", help="Fetch metadata for curated album URLs")

    show = subparsers.add_parser("show", help="Show the unified album list")
    show.add_argument("--json", action="store_true", help="Print as JSON")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    # Keep stdout clean for JSON output
    quiet = args.command == "show" and args.json
    setup_logging(args.verbose, quiet=quiet)
    config = load_config(args.config)
    if config.paths.log_dir:
        setup_logging(args.verbose, config.paths.log_dir, quiet=quiet)

    for error in validate_config(config):
        logger.warning(f"Config warning: {error}")

    commands = {
        "scrape": cmd_scrape,
        "fetch": cmd_fetch,
        "show": cmd_show,
    }
    return commands[args.command](args, config)


if __name__ == "__main__":
    sys.exit(main())
