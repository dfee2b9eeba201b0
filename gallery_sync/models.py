# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
"""
Data model for scraped albums.

RawAlbumEntry and AlbumDocument mirror the persisted JSON (camelCase keys).
UnifiedAlbum is what the site build consumes; the result set is either
ScrapedAlbums or FallbackAlbums, never a blend of both.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional, Union

UNTITLED_ALBUM = "Untitled Album"


@dataclass
class RawAlbumEntry:
    """An album as discovered on the listing page or an album page."""
    share_url: str                          # Dedup key, fully-qualified URL
    title: str = UNTITLED_ALBUM
    cover_image_url: Optional[str] = None   # Largest qualifying image URL
    photo_count: Optional[int] = None       # Only if visibly rendered
    date_range: Optional[str] = None        # Free text, e.g. "Jun 3 – Jun 10, 2023"

    @property
    def has_default_title(self) -> bool:
        return not self.title or self.title == UNTITLED_ALBUM

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "shareUrl": self.share_url,
            "coverImageUrl": self.cover_image_url,
            "photoCount": self.photo_count,
            "dateRange": self.date_range,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "RawAlbumEntry":
        if not isinstance(data, dict):
            raise ValueError(f"Album entry must be an object: {data!r}")

        share_url = data.get("shareUrl")
        if not isinstance(share_url, str) or not share_url:
            raise ValueError(f"Album entry has no shareUrl: {data!r}")

        photo_count = data.get("photoCount")
        if photo_count is not None:
            photo_count = int(photo_count)

        title = data.get("title")
        if title is not None and not isinstance(title, str):
            raise ValueError(f"Album title must be a string: {title!r}")
        for key in ("coverImageUrl", "dateRange"):
            if data.get(key) is not None and not isinstance(data[key], str):
                raise ValueError(f"Album {key} must be a string: {data[key]!r}")

        return cls(
            share_url=share_url,
            title=(title or "").strip() or UNTITLED_ALBUM,
            cover_image_url=data.get("coverImageUrl") or None,
            photo_count=photo_count,
            date_range=data.get("dateRange") or None,
        )


@dataclass
class AlbumDocument:
    """The persisted artifact, fully replaced on every successful run."""
    last_updated: str
    albums: List[RawAlbumEntry] = field(default_factory=list)

    @classmethod
    def create(cls, albums: List[RawAlbumEntry]) -> "AlbumDocument":
        """Build a document stamped with the current UTC time."""
        now = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
        return cls(last_updated=now.replace("+00:00", "Z"), albums=list(albums))

    def to_dict(self) -> dict:
        return {
            "lastUpdated": self.last_updated,
            "albums": [album.to_dict() for album in self.albums],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "AlbumDocument":
        if not isinstance(data, dict):
            raise ValueError("Album document must be a JSON object")
        albums = data.get("albums")
        if not isinstance(albums, list):
            raise ValueError("Album document has no 'albums' list")
        return cls(
            last_updated=str(data.get("lastUpdated") or ""),
            albums=[RawAlbumEntry.from_dict(a) for a in albums],
        )


@dataclass
class FallbackAlbum:
    """A manually curated album entry (legacy gallery data)."""
    url: str
    title: Optional[str] = None     # Overrides the fetched title
    year: Optional[str] = None
    country: Optional[str] = None
    location: Optional[str] = None

    @classmethod
    def from_value(cls, value: Any) -> "FallbackAlbum":
        """Parse a bare URL string or a mapping with at least 'url'."""
        if isinstance(value, str):
            return cls(url=value.strip())
        if isinstance(value, dict) and value.get("url"):
            def text(key: str) -> Optional[str]:
                item = value.get(key)
                return str(item) if item is not None else None

            return cls(
                url=str(value["url"]).strip(),
                title=text("title"),
                year=text("year"),
                country=text("country"),
                location=text("location"),
            )
        raise ValueError(f"Invalid fallback album entry: {value!r}")


@dataclass
class UnifiedAlbum:
    """Consumer-facing album. Legacy fields are only set for fallback data."""
    title: str
    link: str
    cover_image_url: Optional[str] = None
    photo_count: Optional[int] = None
    date_range: Optional[str] = None
    year: Optional[str] = None
    country: Optional[str] = None
    location: Optional[str] = None

    @classmethod
    def from_raw(cls, entry: RawAlbumEntry) -> "UnifiedAlbum":
        return cls(
            title=entry.title or UNTITLED_ALBUM,
            link=entry.share_url,
            cover_image_url=entry.cover_image_url,
            photo_count=entry.photo_count,
            date_range=entry.date_range,
        )

    @classmethod
    def from_fallback(cls, album: FallbackAlbum) -> "UnifiedAlbum":
        return cls(
            title=album.title or album.location or UNTITLED_ALBUM,
            link=album.url,
            year=album.year,
            country=album.country,
            location=album.location,
        )

    def to_dict(self) -> dict:
        data = {
            "title": self.title,
            "link": self.link,
            "coverImageUrl": self.cover_image_url,
            "photoCount": self.photo_count,
            "dateRange": self.date_range,
        }
        for key in ("year", "country", "location"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass
class ScrapedAlbums:
    """Albums taken from the persisted document."""
    albums: List[UnifiedAlbum]
    last_updated: str
    source: str = field(default="scraped", init=False)

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "lastUpdated": self.last_updated,
            "albums": [a.to_dict() for a in self.albums],
        }


@dataclass
class FallbackAlbums:
    """Albums taken from the manual list; there is no last-updated time."""
    albums: List[UnifiedAlbum]
    last_updated: None = field(default=None, init=False)
    source: str = field(default="fallback", init=False)

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "lastUpdated": None,
            "albums": [a.to_dict() for a in self.albums],
        }


AlbumSet = Union[ScrapedAlbums, FallbackAlbums]
