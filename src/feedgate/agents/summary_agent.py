from pydantic import BaseModel, Field
from typing import List, Optional
import logging
from ..utils.llm_client import LLMClient
from ..models.canonical_item import CanonicalItem, StoryCategory

logger = logging.getLogger(__name__)


class StorySummary(BaseModel):
    """TL;DR for a story with no upstream summary."""
    tldr: str = Field(..., description="One or two sentence plain-text summary of the story")
    story_category: StoryCategory = Field(..., description="Best-fitting category for the story")


class SummaryAgent:
    """Fills in summary and story_category for items lacking them. Best-effort."""

    def __init__(self, llm_client: LLMClient, max_content_chars: int = 4000):
        self.llm_client = llm_client
        self.max_content_chars = max_content_chars

    async def summarize(self, item: CanonicalItem) -> StorySummary:
        prompt = f"""Summarize this story for a technology news feed.

Title: {item.title}
Content:
{item.content[:self.max_content_chars]}

Write a factual TL;DR of at most two sentences (no marketing language) and pick
the category that fits best: research, news, tools, analysis, tutorial or announcement."""

        return await self.llm_client.extract(
            prompt=prompt,
            response_model=StorySummary,
            system_prompt="You are a concise technical editor.",
            temperature=0.2
        )

    async def enrich(self, items: List[CanonicalItem]) -> List[CanonicalItem]:
        """Summarize items without a summary. A failed call leaves the item unchanged."""
        enriched = []
        done = 0
        for item in items:
            if item.summary and item.summary.strip():
                enriched.append(item)
                continue
            try:
                result = await self.summarize(item)
            except Exception as e:
                logger.warning(f"SummaryAgent failed for '{item.title[:50]}': {e}")
                enriched.append(item)
                continue

            update: dict[str, Optional[str]] = {"summary": result.tldr}
            if not item.story_category:
                update["story_category"] = result.story_category.value
            enriched.append(item.model_copy(update=update))
            done += 1

        logger.info(f"📝 SummaryAgent: summarized {done}/{len(items)} items")
        return enriched
