# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
"""
Build-time album loader.

Returns the scraped albums when the persisted document holds any, otherwise
the manual fallback list. The choice is all-or-nothing and this module never
raises: the worst case for the site build is a fallback or empty gallery.
"""

import logging
import os
from typing import Optional, Sequence

from .models import AlbumSet, FallbackAlbum, FallbackAlbums, ScrapedAlbums, UnifiedAlbum
from .sources import load_fallback_albums
from .storage import load_document

logger = logging.getLogger(__name__)

DEFAULT_DOCUMENT_PATH = os.path.join("data", "albums.json")
DEFAULT_FALLBACK_PATH = os.path.join("data", "fallback_albums.yaml")


def _load_scraped(document_path: str) -> Optional[ScrapedAlbums]:
    if not os.path.exists(document_path):
        logger.info(f"No album document at {document_path}")
        return None

    try:
        document = load_document(document_path)
    except (OSError, ValueError, TypeError, AttributeError) as e:
        logger.warning(f"Failed to load {document_path}, falling back to manual list: {e}")
        return None

    if not document.albums:
        logger.info(f"{document_path} contains no albums")
        return None

    return ScrapedAlbums(
        albums=[UnifiedAlbum.from_raw(entry) for entry in document.albums],
        last_updated=document.last_updated,
    )


def _load_fallback(fallback: Optional[Sequence[FallbackAlbum]], fallback_file: str) -> FallbackAlbums:
    if fallback is None:
        try:
            fallback = load_fallback_albums(fallback_file)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load fallback albums from {fallback_file}: {e}")
            fallback = []

    return FallbackAlbums(albums=[UnifiedAlbum.from_fallback(album) for album in fallback])


def load_unified_albums(document_path: str = DEFAULT_DOCUMENT_PATH,
                        fallback: Optional[Sequence[FallbackAlbum]] = None,
                        fallback_file: str = DEFAULT_FALLBACK_PATH) -> AlbumSet:
    """
    Load the albums for the site.

    Args:
        document_path: Persisted document written by a scrape or fetch run.
        fallback: Manual albums; loaded from fallback_file when None.
        fallback_file: YAML manual album list.

    Returns:
        ScrapedAlbums if the document exists, parses and is non-empty,
        otherwise FallbackAlbums.
    """
    scraped = _load_scraped(document_path)
    if scraped is not None:
        return scraped

    result = _load_fallback(fallback, fallback_file)
    logger.info(f"Using {len(result.albums)} albums from the manual list")
    return result
