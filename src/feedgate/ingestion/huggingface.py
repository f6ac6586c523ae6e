"""
HuggingFace daily papers page scraper.

The page carries no dates, so every paper of one fetch is stamped with the
fetch time. Requests are followed by a fixed polite delay.
"""
import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from ..models.canonical_item import CanonicalItem
from ..models.source import SourceConfig, SourceType
from .base import BaseAdapter, BatchDeduplicator
from .fetch import ACCEPT_HTML, fetch_text, polite_delay
from .normalize import normalize_whitespace, sort_newest_first, stable_hash, utcnow

logger = logging.getLogger(__name__)

HF_LOGO = "/lib/images/hugging_face_logo.avif"
MAX_TAGS = 6

_CONTAINER_SELECTORS = ["article", ".paper-item", ".relative.rounded-lg", "[class*=paper]"]
_STATS_RE = re.compile(r"^\d+")
_SLUG_STRIP_RE = re.compile(r"[^a-z0-9\s-]")

# (keywords matched against title and author line, implied tags)
_TOPIC_TAGS = [
    (("llm", "language model", "large language"), ["large language models", "llm"]),
    (("vision", "image", "visual"), ["computer vision", "vision"]),
    (("multimodal", "multi-modal"), ["multimodal"]),
    (("reinforcement",), ["reinforcement learning"]),
    (("generation", "generative"), ["generative ai"]),
    (("diffusion",), ["diffusion models"]),
    (("reasoning", "chain of thought"), ["reasoning"]),
    (("transformer", "attention"), ["transformers"]),
    (("fine-tuning", "finetuning"), ["fine-tuning"]),
    (("nlp", "natural language"), ["nlp"]),
    (("robotics", "robot"), ["robotics"]),
    (("autonomous", "self-driving"), ["autonomous systems"]),
    (("deep learning", "neural network"), ["deep learning"]),
    (("optimization", "training"), ["optimization"]),
]


def paper_tags(title: str, authors: str) -> List[str]:
    text = f"{title} {authors}".lower()
    tags = ["huggingface"]
    for keywords, implied in _TOPIC_TAGS:
        if any(k in text for k in keywords):
            tags.extend(t for t in implied if t not in tags)
    return tags[:MAX_TAGS]


def slugify(title: str, max_len: int = 50) -> str:
    slug = _SLUG_STRIP_RE.sub("", title.lower())
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug).strip("-")
    return slug[:max_len]


class HuggingFacePapersAdapter(BaseAdapter):
    key = "huggingface-papers"
    config = SourceConfig(
        name="HuggingFace Papers",
        type=SourceType.WEB_SCRAPE,
        endpoint_url="https://huggingface.co/papers",
        fetch_frequency_minutes=30,
    )

    async def fetch_and_parse(self) -> List[CanonicalItem]:
        logger.info(f"📡 Scraping {self.config.endpoint_url}")
        html = await fetch_text(self.config.endpoint_url, accept=ACCEPT_HTML)
        await polite_delay()
        return self.parse_page(html)

    def _containers(self, soup: BeautifulSoup) -> List[Tag]:
        for selector in _CONTAINER_SELECTORS:
            found = soup.select(selector)
            if found:
                logger.debug(f"Found {len(found)} papers using selector: {selector}")
                return found
        # No known container, fall back to parents of paper links
        parents = []
        for link in soup.select('a[href*="/papers/"]'):
            if isinstance(link.parent, Tag) and link.parent not in parents:
                parents.append(link.parent)
        return parents

    def _paper_info(self, card: Tag) -> Dict[str, Any]:
        heading = card.select_one("h3, h4, .text-lg, .font-semibold")
        link = card.select_one('a[href*="/papers/"]')
        title = normalize_whitespace(heading.get_text(" ", strip=True)) if heading else ""
        if not title and link:
            title = normalize_whitespace(link.get_text(" ", strip=True))

        authors = ""
        submitter: Optional[str] = None
        stats = []
        for el in card.select(".text-gray-500, .text-sm, .text-xs, .text-gray-400"):
            text = el.get_text(" ", strip=True)
            if not authors and "author" in text:
                authors = text
            if submitter is None and "Submitted by" in text:
                submitter = text.replace("Submitted by", "").strip() or None
            elif _STATS_RE.match(text) and text not in stats:
                stats.append(text)

        href = link.get("href") if link else None
        return {
            "title": title,
            "authors": authors,
            "submitter": submitter,
            "stats": " ".join(stats),
            "href": href if isinstance(href, str) else None,
        }

    def _paper_url(self, info: Dict[str, Any], fetched_at_slug: str) -> str:
        if info["href"]:
            return urljoin(self.config.endpoint_url, info["href"])
        return f"{self.config.endpoint_url}/{fetched_at_slug}/{slugify(info['title'])}"

    def parse_page(self, html: str) -> List[CanonicalItem]:
        soup = BeautifulSoup(html, "html.parser")
        cards = self._containers(soup)
        if not cards:
            logger.warning("No papers found. Page structure may have changed.")
            return []

        now = utcnow()
        date_slug = now.strftime("%Y.%m.%d")
        dedup = BatchDeduplicator()
        items: List[CanonicalItem] = []

        for index, card in enumerate(cards, 1):
            try:
                item = self._map_card(card, index, now, date_slug)
            except Exception as e:
                logger.error(f"Unexpected error mapping paper card {index}: {e}")
                continue
            if item is None:
                continue
            if not dedup.admit(item):
                logger.debug(f"Skipping duplicate: '{item.title}'")
                continue
            items.append(item)

        # Same timestamp for every paper, so title order is kept inside the date sort
        items.sort(key=lambda i: i.title)
        logger.info(f"✅ HuggingFace: scraped {len(items)} unique papers")
        return sort_newest_first(items)

    def _map_card(self, card: Tag, index: int, now: datetime, date_slug: str) -> Optional[CanonicalItem]:
        info = self._paper_info(card)
        if not info["title"]:
            logger.debug(f"Paper {index}: no title found")
            return None

        url = self._paper_url(info, date_slug)
        submitter = info["submitter"] or "Unknown"
        lines = [
            f"# {info['title']}",
            "",
            f"**Authors:** {info['authors'] or 'Multiple authors'}",
            f"**Submitted by:** {submitter}",
        ]
        if info["stats"]:
            lines.append(f"**Engagement:** {info['stats']}")
        lines.extend(["", "Trending on HuggingFace Papers.", "", f"[View Paper]({url})"])
        content = "\n".join(lines)

        return CanonicalItem(
            title=info["title"],
            url=url,
            content=content,
            published_at=now,
            external_id=stable_hash(info["title"], submitter, length=16),
            tags=paper_tags(info["title"], info["authors"]),
            summary=f"{info['title']} by {info['authors']}" if info["authors"] else info["title"],
            author=info["submitter"],
            image_url=HF_LOGO,
            story_category="research",
            original_metadata={
                "hf_title": info["title"],
                "hf_authors": info["authors"],
                "hf_submitter": submitter,
                "hf_stats": info["stats"],
                "hf_href": info["href"],
                "content_word_count": len(content.split()),
                "processing_timestamp": now.isoformat(),
                "processing_endpoint": self.config.endpoint_url,
                "source_name": self.name,
                "content_type": "research_paper",
                "publication_type": "community_paper",
            },
        )
