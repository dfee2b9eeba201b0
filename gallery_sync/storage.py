# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
"""
Reading and writing the persisted album document.
"""

import json
import logging
import os
from pathlib import Path

from .models import AlbumDocument

logger = logging.getLogger(__name__)


def save_document(document: AlbumDocument, path: str) -> str:
    """
    Write the album document atomically, replacing any previous version.

    Writes to a temp file first, then renames, so an interrupted run leaves
    the old document untouched.

    Returns:
        The path written.
    """
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)

    temp_path = str(output) + '.tmp'
    with open(temp_path, 'w', encoding='utf-8') as f:
        json.dump(document.to_dict(), f, indent=2, ensure_ascii=False)
        f.write('\n')
        f.flush()
        os.fsync(f.fileno())
    os.replace(temp_path, output)

    logger.info(f"Saved {len(document.albums)} albums to {output}")
    return str(output)


def load_document(path: str) -> AlbumDocument:
    """
    Read the album document.

    Raises:
        FileNotFoundError: No document at path.
        ValueError: The file is not valid JSON or not a valid document.
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    return AlbumDocument.from_dict(data)
