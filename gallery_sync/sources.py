# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
"""
Manually curated album sources.

The fallback list is a YAML file whose entries are either a bare share URL or
a mapping with 'url' and optional 'title', 'year', 'country', 'location'.
A plain-text links file (one URL per line) can replace it as the source of
URLs to fetch.
"""

import logging
import os
from dataclasses import dataclass
from typing import List, Optional

import yaml

from .models import FallbackAlbum

logger = logging.getLogger(__name__)


@dataclass
class WorkItem:
    """An album URL to fetch, with an optional title that wins over the page."""
    url: str
    title_override: Optional[str] = None


def load_fallback_albums(path: str) -> List[FallbackAlbum]:
    """
    Load the manual album list.

    Returns:
        Albums in file order; empty if the file does not exist.

    Raises:
        ValueError: The file is not valid YAML or not a list of valid entries.
    """
    if not os.path.exists(path):
        logger.info(f"No fallback album list at {path}")
        return []

    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"{path}: invalid YAML: {e}") from e

    if data is None:
        return []
    if isinstance(data, dict):
        data = data.get('albums') or []
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of albums")

    return [FallbackAlbum.from_value(item) for item in data]


def read_links_file(path: str) -> List[str]:
    """URLs from a text file; blank lines and '#' comments are skipped."""
    with open(path, 'r', encoding='utf-8') as f:
        lines = [line.strip() for line in f]
    return [line for line in lines if line and not line.startswith('#')]


def build_worklist(links_file: str, fallback_file: str) -> List[WorkItem]:
    """
    URLs to fetch: the links file if present, otherwise the fallback list.
    """
    if links_file and os.path.exists(links_file):
        urls = read_links_file(links_file)
        logger.info(f"Read {len(urls)} album URLs from {links_file}")
        return [WorkItem(url=url) for url in urls]

    albums = load_fallback_albums(fallback_file)
    logger.info(f"Read {len(albums)} album URLs from {fallback_file}")
    return [WorkItem(url=album.url, title_override=album.title) for album in albums]
