"""
Logical sources that publish several RSS feeds.

Sub-feeds are fetched concurrently. A failing sub-feed is logged and skipped;
the adapter only fails when every sub-feed fails.
"""
import asyncio
import logging
from typing import Any, ClassVar, Dict, List

from ..errors import FeedGateError
from ..models.canonical_item import CanonicalItem
from ..models.source import FeedDescriptor, SourceConfig, SourceType
from .base import BatchDeduplicator
from .feed_parser import ParsedFeed, parse_feed
from .fetch import fetch_text
from .generic_rss import GenericRSSAdapter
from .normalize import sort_newest_first

logger = logging.getLogger(__name__)


class MultiFeedAdapter(GenericRSSAdapter):
    """Fan-out over `feeds`, merge, dedupe across feeds, sort newest first."""

    feeds: ClassVar[List[FeedDescriptor]] = []

    def feed_tags(self, feed: FeedDescriptor) -> List[str]:
        return []

    def feed_metadata(self, feed: FeedDescriptor) -> Dict[str, Any]:
        return {"source_feed": feed.name, "feed_category": feed.category}

    async def _fetch_feed(self, feed: FeedDescriptor) -> ParsedFeed:
        logger.info(f"📡 {self.name}: fetching {feed.name} from {feed.url}")
        raw_xml = await fetch_text(feed.url)
        return parse_feed(raw_xml)

    async def fetch_and_parse(self) -> List[CanonicalItem]:
        results = await asyncio.gather(
            *(self._fetch_feed(feed) for feed in self.feeds),
            return_exceptions=True,
        )

        failures: List[BaseException] = []
        dedup = BatchDeduplicator()
        items: List[CanonicalItem] = []

        # Declaration order decides which duplicate survives
        for feed, result in zip(self.feeds, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.error(f"❌ {self.name}: {feed.name} failed: {result}")
                failures.append(result)
                continue

            feed_items = self.map_feed(
                result,
                dedup=dedup,
                feed_tags=self.feed_tags(feed),
                feed_metadata=self.feed_metadata(feed),
            )
            logger.info(f"{self.name}: {feed.name} contributed {len(feed_items)} items")
            items.extend(feed_items)

        if self.feeds and len(failures) == len(self.feeds):
            first = failures[0]
            if isinstance(first, FeedGateError):
                raise first
            raise FeedGateError(f"All {len(self.feeds)} feeds of {self.name} failed: {first}") from first

        items = sort_newest_first(items)
        logger.info(f"✅ {self.name}: {len(items)} unique items from {len(self.feeds) - len(failures)}/{len(self.feeds)} feeds")
        return items


class MicrosoftBlogAdapter(MultiFeedAdapter):
    key = "microsoft-blog"
    config = SourceConfig(
        name="Microsoft Excel & Power BI Blog",
        type=SourceType.RSS,
        endpoint_url="https://powerbi.microsoft.com/en-us/blog/feed/",
        fetch_frequency_minutes=120,
    )
    feeds = [
        FeedDescriptor(
            name="Power BI Blog",
            url="https://powerbi.microsoft.com/en-us/blog/feed/",
            description="Business intelligence and analytics updates",
        ),
        FeedDescriptor(
            name="Excel Blog",
            url="https://techcommunity.microsoft.com/t5/s/gxcuf89792/rss/board?board.id=ExcelBlog",
            description="Spreadsheet features, Copilot, Python integration",
        ),
        FeedDescriptor(
            name="Microsoft 365 Blog",
            url="https://techcommunity.microsoft.com/t5/s/gxcuf89792/rss/board?board.id=Microsoft365InsiderBlog",
            description="Office productivity suite updates",
        ),
    ]


class MITNewsAdapter(MultiFeedAdapter):
    key = "mit-tech-review"
    config = SourceConfig(
        name="MIT Technology Review",
        type=SourceType.RSS,
        endpoint_url="https://news.mit.edu/topic/mitartificial-intelligence2-rss.xml",
        fetch_frequency_minutes=720,
    )
    feeds = [
        FeedDescriptor(
            name="MIT AI News",
            url="https://news.mit.edu/topic/mitartificial-intelligence2-rss.xml",
            category="artificial-intelligence",
        ),
        FeedDescriptor(name="MIT Research News", url="https://news.mit.edu/rss/research", category="research"),
        FeedDescriptor(name="MIT Data News", url="https://news.mit.edu/topic/mitdata-rss.xml", category="data"),
    ]

    def feed_tags(self, feed: FeedDescriptor) -> List[str]:
        tags = ["mit", "research", "technology"]
        if feed.category:
            tags.append(feed.category)
        if feed.category == "artificial-intelligence":
            tags.extend(["ai", "machine-learning"])
        return tags
