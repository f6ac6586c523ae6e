from pydantic import BaseModel, Field, field_validator
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional


class StoryCategory(str, Enum):
    RESEARCH = "research"
    NEWS = "news"
    TOOLS = "tools"
    ANALYSIS = "analysis"
    TUTORIAL = "tutorial"
    ANNOUNCEMENT = "announcement"


STORY_CATEGORIES = frozenset(c.value for c in StoryCategory)


class SemanticTag(BaseModel):
    tag: str
    similarity: float


class TaggingMetadata(BaseModel):
    """Provenance of the tags attached to a canonical item."""

    adapter_name: str
    version: str
    mode: Literal["heuristic", "hybrid"] = "heuristic"
    tags_found: int = 0
    tag_categories_matched: List[str] = Field(default_factory=list)
    keywords_matched: List[str] = Field(default_factory=list)
    patterns_matched: List[str] = Field(default_factory=list)
    confidence_score: float = 0.0
    processing_time_ms: float = 0.0
    processing_notes: List[str] = Field(default_factory=list)
    heuristic_tags: List[str] = Field(default_factory=list)
    semantic_tags: List[SemanticTag] = Field(default_factory=list)
    semantic_fallback: bool = False


class CanonicalItem(BaseModel):
    """Unified shape every source adapter produces."""

    title: str
    url: str
    content: str = Field(..., description="Primary body as markdown-like plain text")
    published_at: datetime
    external_id: str = Field(..., description="Stable per-source identifier used for dedup")
    tags: List[str] = Field(default_factory=list)

    summary: Optional[str] = None
    author: Optional[str] = None
    image_url: Optional[str] = Field(default=None, description="Absolute URL or site-relative path")
    # Kept as plain string so the validation gate can report unknown values
    story_category: Optional[str] = None

    original_metadata: Dict[str, Any] = Field(default_factory=dict)
    tagging_metadata: Optional[TaggingMetadata] = None
    embedding: Optional[List[float]] = None

    @field_validator("published_at")
    @classmethod
    def _force_utc(cls, value: datetime) -> datetime:
        # Naive datetimes are taken as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
