from .canonical_item import CanonicalItem, TaggingMetadata, SemanticTag, StoryCategory, STORY_CATEGORIES
from .source import SourceConfig, SourceType, FeedDescriptor
from .story import Story
from .run_result import RunResult, RunState, InvalidItem, MetadataCoverage

__all__ = [
    "CanonicalItem", "TaggingMetadata", "SemanticTag", "StoryCategory", "STORY_CATEGORIES",
    "SourceConfig", "SourceType", "FeedDescriptor",
    "Story",
    "RunResult", "RunState", "InvalidItem", "MetadataCoverage",
]
