from pydantic import BaseModel, Field
from enum import Enum
from typing import List, Optional, Sequence

from .canonical_item import CanonicalItem


class RunState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    VALIDATING = "validating"
    ENRICHING = "enriching"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


class InvalidItem(BaseModel):
    """An item rejected by the validation gate, with human-readable issues."""

    title: str = ""
    url: str = ""
    external_id: str = ""
    issues: List[str] = Field(default_factory=list)


def _pct(count: int, total: int) -> float:
    return round(count / total * 100, 1) if total else 0.0


class MetadataCoverage(BaseModel):
    total: int = 0
    with_summary: int = 0
    with_author: int = 0
    with_image: int = 0
    with_category: int = 0
    with_embedding: int = 0

    @classmethod
    def from_items(cls, items: Sequence[CanonicalItem]) -> "MetadataCoverage":
        return cls(
            total=len(items),
            with_summary=sum(1 for i in items if i.summary and i.summary.strip()),
            with_author=sum(1 for i in items if i.author and i.author.strip()),
            with_image=sum(1 for i in items if i.image_url and i.image_url.strip()),
            with_category=sum(1 for i in items if i.story_category),
            with_embedding=sum(1 for i in items if i.embedding),
        )

    def percentages(self) -> dict[str, float]:
        return {
            "summary": _pct(self.with_summary, self.total),
            "author": _pct(self.with_author, self.total),
            "image": _pct(self.with_image, self.total),
            "category": _pct(self.with_category, self.total),
            "embedding": _pct(self.with_embedding, self.total),
        }


class RunResult(BaseModel):
    """Structured outcome of one pipeline run against one source."""

    adapter: str
    source_name: Optional[str] = None
    state: RunState = RunState.IDLE
    success: bool = False
    items_processed: int = 0
    items_succeeded: int = 0
    items_updated: int = 0
    items_failed: int = 0
    items_skipped: int = 0
    invalid_items: List[InvalidItem] = Field(default_factory=list)
    duration_ms: float = 0.0
    error: Optional[str] = None
    coverage: MetadataCoverage = Field(default_factory=MetadataCoverage)
