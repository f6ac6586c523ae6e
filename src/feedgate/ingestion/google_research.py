import logging
from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from ..models.canonical_item import CanonicalItem
from ..models.source import SourceConfig, SourceType
from .base import BaseAdapter, BatchDeduplicator
from .fetch import ACCEPT_HTML, fetch_text
from .normalize import (
    decode_entities,
    normalize_whitespace,
    parse_loose_datetime,
    sort_newest_first,
    stable_hash,
    utcnow,
)

logger = logging.getLogger(__name__)

CARD_SELECTOR = "a.glue-card.not-glue"
TITLE_SELECTOR = ".headline-5.js-gt-item-id"
DATE_SELECTOR = ".glue-label.glue-spacer-1-bottom"
TAG_SELECTOR = ".glue-card__link-list .not-glue.caption"
MAX_TAGS = 5


def parse_card_date(text: str) -> datetime:
    """Card dates like "March 5, 2025". Unparseable text falls back to now."""
    try:
        return datetime.strptime(text.strip(), "%B %d, %Y").replace(tzinfo=timezone.utc)
    except ValueError:
        return parse_loose_datetime(text) or utcnow()


def card_tags(card: Tag) -> List[str]:
    tags = ["google"]
    for el in card.select(TAG_SELECTOR):
        text = decode_entities(el.get_text(" ", strip=True)).replace("·", " ")
        tag = normalize_whitespace(text).lower()
        if len(tag) > 2 and tag not in tags:
            tags.append(tag)
    return tags[:MAX_TAGS]


class GoogleResearchAdapter(BaseAdapter):
    """Google Research blog index scraper. The card title doubles as content."""

    key = "google-research"
    config = SourceConfig(
        name="Google Research Blog",
        type=SourceType.WEB_SCRAPE,
        endpoint_url="https://research.google/blog/",
        fetch_frequency_minutes=120,
    )

    async def fetch_and_parse(self) -> List[CanonicalItem]:
        logger.info(f"📡 Scraping {self.config.endpoint_url}")
        html = await fetch_text(self.config.endpoint_url, accept=ACCEPT_HTML)
        return self.parse_page(html)

    def _map_card(self, card: Tag, index: int, total: int) -> Optional[CanonicalItem]:
        href = card.get("href")
        if not isinstance(href, str) or not href.strip():
            return None
        url = urljoin(self.config.endpoint_url, href.strip())

        title_el = card.select_one(TITLE_SELECTOR)
        title = normalize_whitespace(title_el.get_text(" ", strip=True)) if title_el else ""
        date_el = card.select_one(DATE_SELECTOR)
        date_text = date_el.get_text(" ", strip=True) if date_el else ""
        if not title or not date_text:
            return None

        published_at = parse_card_date(date_text)
        tags = card_tags(card)
        return CanonicalItem(
            title=title,
            url=url,
            content=title,
            published_at=published_at,
            external_id=stable_hash(url or title, length=16),
            tags=tags,
            original_metadata={
                "google_title": title,
                "google_url": url,
                "google_relative_url": href,
                "google_date_text": date_text,
                "google_parsed_date": published_at.isoformat(),
                "google_extracted_tags": tags,
                "card_index": index,
                "total_cards_found": total,
                "source_name": self.name,
            },
        )

    def parse_page(self, html: str) -> List[CanonicalItem]:
        soup = BeautifulSoup(html, "html.parser")
        cards = soup.select(CARD_SELECTOR)
        if not cards:
            logger.warning(f"No cards matched '{CARD_SELECTOR}'. Page structure may have changed.")
            return []

        dedup = BatchDeduplicator()
        items: List[CanonicalItem] = []
        for index, card in enumerate(cards):
            try:
                item = self._map_card(card, index, len(cards))
            except Exception as e:
                logger.error(f"Unexpected error mapping Google Research card {index}: {e}")
                continue
            if item is None:
                continue
            if dedup.admit(item):
                items.append(item)

        logger.info(f"✅ Google Research: {len(items)} posts from {len(cards)} cards")
        return sort_newest_first(items)
