"""
Shared RSS/Atom adapter path.

Source-specific feeds subclass GenericRSSAdapter and only declare their
SourceConfig plus optional source tags, category and metadata extras.
"""
import logging
from typing import Any, ClassVar, Dict, List, Optional

from ..errors import ItemMappingError
from ..models.canonical_item import CanonicalItem
from .base import BaseAdapter, BatchDeduplicator
from .feed_parser import ParsedFeed, RawFeedItem, parse_feed
from .fetch import fetch_text
from .normalize import (
    derive_title,
    html_to_markdown,
    merge_tags,
    sort_newest_first,
    stable_hash,
    strip_html,
    truncate,
)

logger = logging.getLogger(__name__)

_SUMMARY_MAX_CHARS = 500


class GenericRSSAdapter(BaseAdapter):
    """RSS adapter with a strict date policy: unparseable dates drop the item."""

    source_tags: ClassVar[List[str]] = []
    story_category: ClassVar[Optional[str]] = None
    extra_metadata: ClassVar[Dict[str, Any]] = {}

    def derived_tags(self, title: str, content: str) -> List[str]:
        """Tags inferred from the item text. None by default."""
        return []

    def source_metadata(self, raw: RawFeedItem) -> Dict[str, Any]:
        """Adapter-specific additions to original_metadata."""
        return dict(self.extra_metadata)

    async def fetch_and_parse(self) -> List[CanonicalItem]:
        logger.info(f"📡 Fetching {self.name} feed: {self.config.endpoint_url}")
        raw_xml = await fetch_text(self.config.endpoint_url)
        feed = parse_feed(raw_xml)
        items = self.map_feed(feed)
        logger.info(f"✅ {self.name}: {len(items)} items from {len(feed.items)} entries")
        return items

    def map_feed(self, feed: ParsedFeed, dedup: Optional[BatchDeduplicator] = None, **context: Any) -> List[CanonicalItem]:
        """
        Map every feed entry, skipping the ones that cannot be mapped.

        Args:
            feed: Parsed feed
            dedup: Seen-set shared across sub-feeds (a fresh one if None)
            **context: Passed through to map_item

        Returns:
            Mapped items sorted newest first
        """
        seen = dedup or BatchDeduplicator()
        items: List[CanonicalItem] = []

        for raw in feed.items:
            try:
                item = self.map_item(raw, **context)
            except ItemMappingError as e:
                logger.warning(f"Skipping {self.name} entry '{raw.title or raw.link}': {e}")
                continue
            except Exception as e:
                logger.error(f"Unexpected error mapping {self.name} entry '{raw.title or raw.link}': {e}")
                continue

            if not seen.admit(item):
                logger.debug(f"Duplicate entry skipped: {item.url}")
                continue
            items.append(item)

        return sort_newest_first(items)

    def map_item(self, raw: RawFeedItem, **context: Any) -> CanonicalItem:
        """
        Map one feed entry to a CanonicalItem.

        Raises:
            ItemMappingError: Entry has no link or no parseable date
        """
        link = (raw.link or "").strip()
        if not link:
            raise ItemMappingError("missing link", raw=raw.raw)
        if raw.published_at is None:
            raise ItemMappingError(f"invalid date '{raw.published}'", raw=raw.raw)

        title = derive_title(raw.title, raw.description)
        body = raw.content or raw.description or ""
        content = truncate(html_to_markdown(body))

        summary = None
        if raw.content and raw.description:
            summary = strip_html(raw.description)[:_SUMMARY_MAX_CHARS] or None

        external_id = (raw.guid or "").strip() or stable_hash(link)
        tags = merge_tags(self.source_tags, self.derived_tags(title, content), context.get("feed_tags", []))

        metadata: Dict[str, Any] = {
            **raw.raw,
            "source_name": self.name,
            "feed_categories": raw.categories,
        }
        if tags:
            metadata["source_tags"] = tags
        metadata.update(self.source_metadata(raw))
        metadata.update(context.get("feed_metadata", {}))

        return CanonicalItem(
            title=title,
            url=link,
            content=content,
            published_at=raw.published_at,
            external_id=external_id,
            tags=tags,
            summary=summary,
            author=(raw.author or "").strip() or None,
            image_url=raw.image_url,
            story_category=context.get("story_category", self.story_category),
            original_metadata=metadata,
        )
