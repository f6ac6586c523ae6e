from pydantic import Field
from datetime import datetime, timezone
from typing import Optional

from .canonical_item import CanonicalItem


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Story(CanonicalItem):
    """Persisted record: a canonical item bound to its source."""

    id: str
    source_id: str
    content_fingerprint: str = ""
    embedding_model: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
