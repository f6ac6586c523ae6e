import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from ..errors import ItemMappingError
from ..models.canonical_item import CanonicalItem
from ..models.source import SourceConfig, SourceType
from .base import BaseAdapter, BatchDeduplicator
from .feed_parser import RawFeedItem, parse_feed
from .fetch import fetch_text
from .normalize import normalize_whitespace, parse_iso_datetime, sort_newest_first, truncate, utcnow

logger = logging.getLogger(__name__)

_ABS_ID_RE = re.compile(r"arxiv\.org/abs/(.+)$")


class ArxivAdapter(BaseAdapter):
    """arXiv Atom API adapter for AI/ML papers. Permissive dates: missing or bad -> now."""

    key = "arxiv-papers"
    config = SourceConfig(
        name="arXiv AI/ML Papers",
        type=SourceType.API,
        endpoint_url="http://export.arxiv.org/api/query",
        fetch_frequency_minutes=1440,
    )

    SEARCH_QUERY = "(cat:cs.AI OR cat:cs.LG OR cat:cs.CL OR cat:stat.ML)"
    MAX_RESULTS = 200

    def query_url(self) -> str:
        params: dict[str, str | int] = {
            "search_query": self.SEARCH_QUERY,
            "start": 0,
            "max_results": self.MAX_RESULTS,
            "sortBy": "submittedDate",
            "sortOrder": "descending",
        }
        return str(httpx.URL(self.config.endpoint_url, params=params))

    async def fetch_and_parse(self) -> List[CanonicalItem]:
        """
        Fetch the most recent AI/ML submissions.

        Returns:
            Papers sorted newest first, abstract as content

        Raises:
            FetchError: arXiv API unreachable
            FeedParseError: Response is not an Atom document
        """
        url = self.query_url()
        logger.info(f"📡 Fetching arXiv papers: {url}")
        feed = parse_feed(await fetch_text(url))

        dedup = BatchDeduplicator()
        items: List[CanonicalItem] = []
        for entry in feed.items:
            try:
                item = self.map_entry(entry, source_endpoint=url)
            except ItemMappingError as e:
                logger.warning(f"Skipping arXiv entry: {e}")
                continue
            except Exception as e:
                logger.error(f"Unexpected error processing arXiv entry '{entry.title}': {e}")
                continue
            if dedup.admit(item):
                items.append(item)

        logger.info(f"✅ arXiv: extracted {len(items)} papers from {len(feed.items)} entries")
        return sort_newest_first(items)

    def map_entry(self, entry: RawFeedItem, source_endpoint: str = "") -> CanonicalItem:
        entry_id = (entry.guid or "").strip()
        if not entry_id:
            raise ItemMappingError("entry without id", raw=entry.raw)

        match = _ABS_ID_RE.search(entry_id)
        paper_id: Optional[str] = match.group(1) if match else None
        if paper_id is None and not entry_id.startswith("http"):
            paper_id = entry_id
        if paper_id is None:
            raise ItemMappingError(f"unrecognised arXiv id '{entry_id}'", raw=entry.raw)

        url = entry_id if entry_id.startswith("http") else f"https://arxiv.org/abs/{paper_id}"
        title = normalize_whitespace((entry.title or "").replace("\n", " ")) or "Untitled"
        abstract = normalize_whitespace(entry.description or "")

        # Atom dates are ISO 8601; feedparser already parsed them when it could
        published_at = entry.published_at or parse_iso_datetime(entry.published) or utcnow()

        raw = entry.raw
        authors = [a.get("name", "") for a in raw.get("authors") or [] if a.get("name")]
        links: List[Dict[str, Any]] = [
            {"href": link.get("href"), "type": link.get("type"), "rel": link.get("rel"), "title": link.get("title")}
            for link in raw.get("links") or []
        ]
        primary = raw.get("arxiv_primary_category") or {}

        metadata: Dict[str, Any] = {
            "arxiv_id": entry_id,
            "arxiv_paper_id": paper_id,
            "arxiv_title": entry.title,
            "arxiv_summary": entry.description,
            "arxiv_published": raw.get("published"),
            "arxiv_updated": raw.get("updated"),
            "arxiv_primary_category": primary.get("term") if isinstance(primary, dict) else primary,
            "arxiv_comment": raw.get("arxiv_comment"),
            "arxiv_journal_ref": raw.get("arxiv_journal_ref"),
            "arxiv_doi": raw.get("arxiv_doi"),
            "arxiv_author_names": authors,
            "arxiv_categories": entry.categories,
            "arxiv_links": links,
            "arxiv_pdf_link": next((l["href"] for l in links if l.get("title") == "pdf"), None),
            "arxiv_abs_link": next((l["href"] for l in links if l.get("rel") == "alternate"), None),
            "extraction_timestamp": utcnow().isoformat(),
            "source_name": self.name,
            "source_type": self.config.type.value,
            "source_endpoint": source_endpoint,
            "platform": "arxiv",
            "content_type": "academic_paper",
            "publication_type": "preprint",
            "raw_entry": raw,
        }

        return CanonicalItem(
            title=title,
            url=url,
            content=truncate(abstract),
            published_at=published_at,
            external_id=f"arxiv-{paper_id}",
            author=", ".join(authors) or None,
            original_metadata=metadata,
        )
