# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
# Gallery Sync - Google Photos shared-album metadata pipeline
"""
Gallery Sync scrapes shared-album metadata (title, date range, cover image,
share link, photo count) from Google Photos with a real browser and merges it
with a manually curated fallback list into one dataset for a static site.
"""

__version__ = "1.0.0"
__author__ = "Luc Vincent"
