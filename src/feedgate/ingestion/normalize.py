"""
Field-level normalization shared by adapters: entities, HTML to markdown-like
text, truncation, stable ids and date parsing.
"""
import calendar
import hashlib
import re
from datetime import datetime, timezone
from html import unescape
from typing import Any, Iterable, List, Optional

from bs4 import BeautifulSoup
from dateutil import parser as date_parser

from ..config import settings
from ..models.canonical_item import CanonicalItem

_WHITESPACE_RE = re.compile(r"[ \t\r\f\v]+")
_BLANK_LINES_RE = re.compile(r"\n{3,}")
_TITLE_FALLBACK_CHARS = 70

_BLOCK_TAGS = ["p", "div", "section", "article", "blockquote", "ul", "ol", "table", "tr", "figure", "header", "footer"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def decode_entities(text: Optional[str]) -> str:
    """Decode HTML entities (&amp; &lt; &gt; &quot; &#39; &nbsp; ...)."""
    if not text:
        return ""
    return unescape(text).replace("\xa0", " ")


def normalize_whitespace(text: str) -> str:
    lines = [_WHITESPACE_RE.sub(" ", line).strip() for line in text.split("\n")]
    return _BLANK_LINES_RE.sub("\n\n", "\n".join(lines)).strip()


def strip_html(html: Optional[str]) -> str:
    if not html:
        return ""
    if "<" not in html:
        return normalize_whitespace(decode_entities(html))
    text = BeautifulSoup(html, "html.parser").get_text(" ", strip=True)
    return normalize_whitespace(text.replace("\xa0", " "))


def html_to_markdown(html: Optional[str]) -> str:
    """
    Convert an HTML fragment to markdown-like plain text.

    Headings become `#` lines, links `[text](href)`, list items `- ` bullets,
    <pre> blocks fenced code. Scripts and styles are dropped.
    """
    if not html:
        return ""
    if "<" not in html:
        return normalize_whitespace(decode_entities(html))

    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript", "iframe", "svg"]):
        tag.decompose()

    for pre in soup.find_all("pre"):
        pre.replace_with(f"\n\n```\n{pre.get_text().strip()}\n```\n\n")
    for code in soup.find_all("code"):
        code.replace_with(f"`{code.get_text()}`")
    for img in soup.find_all("img"):
        alt = img.get("alt") or ""
        img.replace_with(f" {alt} " if alt else " ")

    for a in soup.find_all("a"):
        text = a.get_text(" ", strip=True)
        href = a.get("href")
        a.replace_with(f"[{text}]({href})" if text and href else text)
    for strong in soup.find_all(["strong", "b"]):
        text = strong.get_text(" ", strip=True)
        strong.replace_with(f"**{text}**" if text else "")
    for em in soup.find_all(["em", "i"]):
        text = em.get_text(" ", strip=True)
        em.replace_with(f"_{text}_" if text else "")

    for li in soup.find_all("li"):
        li.replace_with(f"\n- {li.get_text(' ', strip=True)}\n")
    for level in range(1, 7):
        for heading in soup.find_all(f"h{level}"):
            heading.replace_with(f"\n\n{'#' * level} {heading.get_text(' ', strip=True)}\n\n")
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for block in soup.find_all(_BLOCK_TAGS):
        block.insert_before("\n\n")
        block.insert_after("\n\n")

    return normalize_whitespace(soup.get_text().replace("\xa0", " "))


def truncate(text: str, max_chars: Optional[int] = None) -> str:
    limit = settings.content_max_chars if max_chars is None else max_chars
    return text[:limit]


def derive_title(title: Optional[str], description: Optional[str] = None) -> str:
    """Trimmed, decoded title; falls back to the first 70 chars of the description."""
    cleaned = normalize_whitespace(decode_entities(title)) if title else ""
    if cleaned:
        return cleaned
    fallback = strip_html(description)[:_TITLE_FALLBACK_CHARS].strip()
    return fallback or "Untitled"


def stable_hash(*parts: str, length: Optional[int] = None) -> str:
    """SHA-256 over the joined parts, optionally truncated."""
    digest = hashlib.sha256("-".join(parts).encode("utf-8")).hexdigest()
    return digest[:length] if length else digest


def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def struct_time_to_datetime(value: Any) -> Optional[datetime]:
    """feedparser *_parsed struct (always UTC) to an aware datetime."""
    if value is None:
        return None
    try:
        return datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        return None


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """ISO 8601 (Atom, JSON APIs). Naive values are taken as UTC."""
    if not value or not value.strip():
        return None
    try:
        return ensure_utc(date_parser.isoparse(value.strip()))
    except (ValueError, OverflowError):
        return None


def parse_loose_datetime(value: Optional[str]) -> Optional[datetime]:
    """Free-form dates as printed on web pages ("March 5, 2025")."""
    if not value or not value.strip():
        return None
    try:
        return ensure_utc(date_parser.parse(value.strip()))
    except (ValueError, OverflowError):
        return None


def merge_tags(*groups: Iterable[str]) -> List[str]:
    """Order-preserving union of tag groups."""
    seen: dict[str, None] = {}
    for group in groups:
        for tag in group:
            if tag:
                seen.setdefault(tag, None)
    return list(seen)


def sort_newest_first(items: List[CanonicalItem]) -> List[CanonicalItem]:
    return sorted(items, key=lambda item: item.published_at, reverse=True)
