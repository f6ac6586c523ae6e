"""
ValidationGate: structural checks between the adapters and enrichment.

Invalid items are reported, never raised. Only valid items move on.
"""
import logging
from datetime import datetime
from typing import Any, List, Sequence

from pydantic import AnyHttpUrl, BaseModel, Field, TypeAdapter, ValidationError

from ..config import settings
from ..models.canonical_item import STORY_CATEGORIES, CanonicalItem
from ..models.run_result import InvalidItem

logger = logging.getLogger(__name__)

_http_url = TypeAdapter(AnyHttpUrl)


class ValidationReport(BaseModel):
    valid: List[CanonicalItem] = Field(default_factory=list)
    invalid: List[InvalidItem] = Field(default_factory=list)


def _blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def is_valid_url(value: str) -> bool:
    try:
        _http_url.validate_python(value)
        return True
    except ValidationError:
        return False


class ValidationGate:
    """Checks every item and splits the batch into valid and invalid."""

    def __init__(self, max_content_chars: int | None = None):
        self.max_content_chars = max_content_chars or settings.content_max_chars

    def issues_for(self, item: CanonicalItem) -> List[str]:
        issues: List[str] = []

        if _blank(item.title):
            issues.append("Missing or empty title")
        if _blank(item.url):
            issues.append("Missing or empty URL")
        elif not is_valid_url(item.url):
            issues.append(f"Invalid URL format: {item.url}")
        if _blank(item.content):
            issues.append("Missing or empty content")
        elif len(item.content) > self.max_content_chars:
            issues.append(f"Content exceeds {self.max_content_chars} characters ({len(item.content)})")
        if _blank(item.external_id):
            issues.append("Missing or empty external ID")

        if not isinstance(item.published_at, datetime):
            issues.append("Invalid or missing published date")
        if not isinstance(item.tags, list):
            issues.append("Tags must be a list")

        if item.image_url:
            # Site-relative paths are allowed
            if not item.image_url.startswith("/") and not is_valid_url(item.image_url):
                issues.append(f"Invalid image URL format: {item.image_url}")

        if item.story_category and item.story_category not in STORY_CATEGORIES:
            issues.append(
                f"Invalid story category: {item.story_category}. Must be one of: {', '.join(sorted(STORY_CATEGORIES))}"
            )

        return issues

    def validate(self, items: Sequence[CanonicalItem]) -> ValidationReport:
        report = ValidationReport()
        for item in items:
            issues = self.issues_for(item)
            if issues:
                report.invalid.append(InvalidItem(
                    title=item.title or "",
                    url=item.url or "",
                    external_id=item.external_id or "",
                    issues=issues,
                ))
            else:
                report.valid.append(item)

        if report.invalid:
            logger.warning(f"⚠️ Validation: {len(report.invalid)}/{len(items)} items rejected")
            for bad in report.invalid[:5]:
                logger.warning(f"  ├─ '{bad.title[:50]}': {'; '.join(bad.issues)}")
        logger.info(f"Validation: {len(report.valid)} valid, {len(report.invalid)} invalid")
        return report


def validate_items(items: Sequence[CanonicalItem]) -> ValidationReport:
    return ValidationGate().validate(items)
