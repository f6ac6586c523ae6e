from pydantic import BaseModel, Field
from enum import Enum
from typing import Optional


class SourceType(str, Enum):
    RSS = "rss"
    ATOM = "atom"
    API = "api"
    WEB_SCRAPE = "web_scrape"


class SourceConfig(BaseModel):
    """Identity of an external source. Immutable for the duration of a run."""

    model_config = {"frozen": True}

    id: Optional[str] = Field(default=None, description="Persisted id, resolved by the orchestrator")
    name: str
    type: SourceType
    endpoint_url: str
    fetch_frequency_minutes: int = Field(default=60, gt=0)


class FeedDescriptor(BaseModel):
    """One sub-feed of a logical source that publishes several feeds."""

    model_config = {"frozen": True}

    name: str
    url: str
    category: Optional[str] = None
    description: Optional[str] = None
