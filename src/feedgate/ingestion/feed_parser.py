"""
RSS/Atom parsing into a structurally uniform feed representation.

Vendor variants (content:encoded, dc:creator, pubDate/published/updated,
guid/id) are folded into one field set by feedparser; this module adds input
sanitation, fail-fast shape checks and JSON-safe lineage capture.
"""
import logging
import re
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

import feedparser
from pydantic import BaseModel, Field

from ..errors import FeedParseError
from .normalize import struct_time_to_datetime

logger = logging.getLogger(__name__)

_ZERO_WIDTH_RE = re.compile("[\u200b-\u200d\ufeff]")
# & that does not start a named or numeric entity
_BARE_AMP_RE = re.compile(r"&(?!(?:[a-zA-Z][a-zA-Z0-9]{0,31}|#[0-9]{1,7}|#x[0-9a-fA-F]{1,6});)")
_FEED_MARKERS = ("<rss", "<feed", "<channel")
_PREVIEW_CHARS = 500


class RawFeedItem(BaseModel):
    """One feed entry with aliases resolved; `raw` keeps every upstream field."""

    title: Optional[str] = None
    link: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = Field(default=None, description="content:encoded or Atom content")
    published: Optional[str] = Field(default=None, description="Date string as published upstream")
    published_at: Optional[datetime] = Field(default=None, description="Parsed date, None if unparseable")
    guid: Optional[str] = None
    author: Optional[str] = None
    categories: List[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict)


class ParsedFeed(BaseModel):
    items: List[RawFeedItem] = Field(default_factory=list)
    title: Optional[str] = None
    description: Optional[str] = None
    link: Optional[str] = None
    language: Optional[str] = None
    last_build_date: Optional[str] = None


def sanitize_xml(raw_xml: str) -> str:
    """Strip zero-width characters and escape bare ampersands."""
    cleaned = _ZERO_WIDTH_RE.sub("", raw_xml)
    cleaned = _BARE_AMP_RE.sub("&amp;", cleaned)
    return cleaned.strip()


def _preview(raw_xml: str) -> str:
    return raw_xml[:_PREVIEW_CHARS] + ("..." if len(raw_xml) > _PREVIEW_CHARS else "")


def _json_safe(value: Any) -> Any:
    """feedparser structures to plain JSON-compatible values."""
    if isinstance(value, time.struct_time):
        parsed = struct_time_to_datetime(value)
        return parsed.isoformat() if parsed else None
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def _first_content(entry: Dict[str, Any]) -> Optional[str]:
    for block in entry.get("content") or []:
        value = block.get("value")
        if value:
            return value
    return None


def _image_url(entry: Dict[str, Any]) -> Optional[str]:
    for key in ("media_thumbnail", "media_content"):
        for media in entry.get(key) or []:
            if media.get("url"):
                return media["url"]
    for enclosure in entry.get("enclosures") or []:
        if str(enclosure.get("type", "")).startswith("image/") and enclosure.get("href"):
            return enclosure["href"]
    return None


def _date_fields(entry: Dict[str, Any]) -> tuple[Optional[str], Optional[datetime]]:
    # pubDate / published first, then updated (Atom-only feeds)
    for text_key, parsed_key in (("published", "published_parsed"), ("updated", "updated_parsed"), ("created", "created_parsed")):
        text = entry.get(text_key)
        if text:
            return text, struct_time_to_datetime(entry.get(parsed_key))
    return None, None


def _to_raw_item(entry: Dict[str, Any]) -> RawFeedItem:
    published, published_at = _date_fields(entry)
    return RawFeedItem(
        title=entry.get("title"),
        link=entry.get("link"),
        description=entry.get("summary") or entry.get("description"),
        content=_first_content(entry),
        published=published,
        published_at=published_at,
        guid=entry.get("id") or entry.get("guid"),
        author=entry.get("author") or entry.get("dc_creator"),
        categories=[t.get("term") for t in entry.get("tags") or [] if t.get("term")],
        image_url=_image_url(entry),
        raw=_json_safe(dict(entry)),
    )


def parse_feed(raw_xml: str) -> ParsedFeed:
    """
    Parse RSS/Atom XML.

    Args:
        raw_xml: Feed document as fetched

    Returns:
        ParsedFeed with one RawFeedItem per entry (possibly empty)

    Raises:
        FeedParseError: Input is not RSS/Atom or cannot be parsed
    """
    clean_xml = sanitize_xml(raw_xml or "")
    lowered = clean_xml.lower()
    if not any(marker in lowered for marker in _FEED_MARKERS):
        logger.error(f"Feed parse rejected input, preview: {_preview(raw_xml or '')}")
        raise FeedParseError(
            f"Input does not appear to be valid RSS/Atom XML: {_preview(raw_xml or '')}"
        )

    feed = feedparser.parse(clean_xml)
    entries = feed.get("entries")
    if entries is None or (feed.get("bozo") and not entries):
        cause = feed.get("bozo_exception") or "no items array"
        logger.error(f"Failed to parse feed XML: {cause}")
        raise FeedParseError(f"parse_feed failed: {cause}. XML preview: {_preview(raw_xml)}")

    meta = feed.get("feed", {})
    items = [_to_raw_item(entry) for entry in entries]
    logger.info(f"Parsed feed '{meta.get('title', '')}' with {len(items)} items")

    return ParsedFeed(
        items=items,
        title=meta.get("title"),
        description=meta.get("subtitle") or meta.get("description"),
        link=meta.get("link"),
        language=meta.get("language"),
        last_build_date=meta.get("updated"),
    )
