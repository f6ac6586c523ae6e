from .story_store import (
    RedisStoryStore,
    StoryStore,
    UpsertOutcome,
    content_fingerprint,
    story_key,
)

__all__ = ["RedisStoryStore", "StoryStore", "UpsertOutcome", "content_fingerprint", "story_key"]
