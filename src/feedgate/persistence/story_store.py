"""
Story persistence.

StoryStore is the interface the orchestrator depends on; RedisStoryStore is
the shipped implementation. (source_id, external_id) is the story key and a
url belongs to at most one story key.
"""
import hashlib
import json
import logging
import uuid
from enum import Enum
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Protocol, Set, cast

import redis.asyncio as redis

from ..config import settings
from ..models.canonical_item import CanonicalItem
from ..models.source import SourceConfig
from ..models.story import Story
from ..ingestion.normalize import utcnow

logger = logging.getLogger(__name__)

SOURCES_BY_NAME = "sources:by_name"
URL_INDEX = "stories:url_index"

# Enrichment output and lineage do not count as a content change
_FINGERPRINT_FIELDS = {
    "title", "url", "content", "published_at", "external_id", "tags",
    "summary", "author", "image_url", "story_category",
}


class UpsertOutcome(str, Enum):
    INSERTED = "inserted"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    CONFLICT = "conflict"


def story_key(source_id: str, external_id: str) -> str:
    return f"story:{source_id}:{external_id}"


def source_key(source_id: str) -> str:
    return f"source:{source_id}"


def content_fingerprint(item: CanonicalItem) -> str:
    payload = item.model_dump(mode="json", include=_FINGERPRINT_FIELDS)
    return hashlib.sha256(json.dumps(payload, sort_keys=True).encode("utf-8")).hexdigest()


def missing_enrichment(existing: Story, item: CanonicalItem) -> Dict[str, Any]:
    """Enrichment the incoming item carries and the stored story lacks."""
    filled: Dict[str, Any] = {}
    if item.embedding and not existing.embedding:
        filled["embedding"] = item.embedding
        filled["embedding_model"] = settings.embedding_model
    if item.tagging_metadata is not None and existing.tagging_metadata is None:
        filled["tagging_metadata"] = item.tagging_metadata
    return filled


class StoryStore(Protocol):
    async def find_source_by_name(self, name: str) -> Optional[str]: ...

    async def register_source(self, config: SourceConfig) -> str: ...

    async def upsert_story(self, source_id: str, item: CanonicalItem) -> UpsertOutcome: ...

    async def query_existing(self, source_id: str, external_ids: Iterable[str]) -> Set[str]: ...

    async def query_existing_urls(self, urls: Iterable[str]) -> Set[str]: ...

    async def count_stories(self) -> int: ...


class RedisStoryStore:
    """Stories as JSON strings, sources and the url index as hashes."""

    def __init__(self, redis_url: Optional[str] = None, client: Optional[redis.Redis] = None):
        self.redis_url = redis_url or settings.redis_url
        self.client: Optional[redis.Redis] = client

    async def connect(self) -> None:
        self.client = redis.from_url(self.redis_url, decode_responses=True)  # type: ignore[no-untyped-call]
        logger.info(f"Connected to Redis at {self.redis_url}")

    async def close(self) -> None:
        if self.client:
            await self.client.aclose()

    async def _conn(self) -> redis.Redis:
        if not self.client:
            await self.connect()
        return cast(redis.Redis, self.client)

    async def find_source_by_name(self, name: str) -> Optional[str]:
        cl = await self._conn()
        return await cl.hget(SOURCES_BY_NAME, name)

    async def register_source(self, config: SourceConfig) -> str:
        """Return the id registered for config.name, creating it if needed."""
        cl = await self._conn()
        new_id = uuid.uuid4().hex
        created = await cl.hsetnx(SOURCES_BY_NAME, config.name, new_id)
        if not created:
            return cast(str, await cl.hget(SOURCES_BY_NAME, config.name))

        await cl.hset(source_key(new_id), mapping={
            "id": new_id,
            "name": config.name,
            "type": config.type.value,
            "endpoint_url": config.endpoint_url,
            "fetch_frequency_minutes": str(config.fetch_frequency_minutes),
            "created_at": utcnow().isoformat(),
        })
        logger.info(f"Registered source '{config.name}' as {new_id}")
        return new_id

    async def source_names(self) -> Dict[str, str]:
        """Registered source ids mapped to their names."""
        cl = await self._conn()
        by_name = await cl.hgetall(SOURCES_BY_NAME)
        return {source_id: name for name, source_id in by_name.items()}

    async def get_story(self, source_id: str, external_id: str) -> Optional[Story]:
        cl = await self._conn()
        raw = await cl.get(story_key(source_id, external_id))
        return Story.model_validate_json(raw) if raw else None

    async def upsert_story(self, source_id: str, item: CanonicalItem) -> UpsertOutcome:
        """
        Insert or update the story keyed by (source_id, item.external_id).

        The url is claimed with HSETNX before anything is written, so two
        concurrent writers of one url cannot both own it.

        Returns:
            CONFLICT when item.url already belongs to another story key,
            UNCHANGED when the content fingerprint matches the stored story
            and the story already has the enrichment the item carries
        """
        cl = await self._conn()
        key = story_key(source_id, item.external_id)

        claimed = await cl.hsetnx(URL_INDEX, item.url, key)
        if not claimed:
            owner = await cl.hget(URL_INDEX, item.url)
            if owner != key:
                logger.debug(f"URL conflict: {item.url} already owned by {owner}")
                return UpsertOutcome.CONFLICT

        try:
            return await self._write_story(cl, key, source_id, item)
        except Exception:
            # Release a claim that never got a story behind it
            if claimed:
                await cl.hdel(URL_INDEX, item.url)
            raise

    async def _write_story(self, cl: redis.Redis, key: str, source_id: str, item: CanonicalItem) -> UpsertOutcome:
        fingerprint = content_fingerprint(item)
        now = utcnow()
        existing_raw = await cl.get(key)
        existing = Story.model_validate_json(existing_raw) if existing_raw else None

        if existing is not None and existing.content_fingerprint == fingerprint:
            filled = missing_enrichment(existing, item)
            if not filled:
                return UpsertOutcome.UNCHANGED
            await cl.set(key, existing.model_copy(update={**filled, "updated_at": now}).model_dump_json())
            logger.debug(f"Filled {', '.join(sorted(filled))} on {key}")
            return UpsertOutcome.UPDATED

        story = Story(
            **item.model_dump(),
            id=existing.id if existing else uuid.uuid4().hex,
            source_id=source_id,
            content_fingerprint=fingerprint,
            embedding_model=settings.embedding_model if item.embedding else None,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )

        async with cl.pipeline(transaction=True) as pipe:
            pipe.set(key, story.model_dump_json())
            pipe.hset(URL_INDEX, item.url, key)
            if existing is not None and existing.url != item.url:
                pipe.hdel(URL_INDEX, existing.url)
            await pipe.execute()

        return UpsertOutcome.UPDATED if existing else UpsertOutcome.INSERTED

    async def set_embedding(self, story: Story, embedding: List[float]) -> Story:
        """Attach an embedding to an already stored story."""
        cl = await self._conn()
        updated = story.model_copy(update={
            "embedding": embedding,
            "embedding_model": settings.embedding_model,
            "updated_at": utcnow(),
        })
        await cl.set(story_key(story.source_id, story.external_id), updated.model_dump_json())
        return updated

    async def iter_stories(self) -> AsyncIterator[Story]:
        """Every stored story, in SCAN order."""
        cl = await self._conn()
        async for key in cl.scan_iter(match="story:*", count=200):
            raw = await cl.get(key)
            if raw:
                yield Story.model_validate_json(raw)

    async def query_existing(self, source_id: str, external_ids: Iterable[str]) -> Set[str]:
        ids = list(dict.fromkeys(external_ids))
        if not ids:
            return set()
        cl = await self._conn()
        async with cl.pipeline(transaction=False) as pipe:
            for external_id in ids:
                pipe.exists(story_key(source_id, external_id))
            flags = await pipe.execute()
        return {external_id for external_id, flag in zip(ids, flags) if flag}

    async def query_existing_urls(self, urls: Iterable[str]) -> Set[str]:
        return set(await self.url_owners(urls))

    async def url_owners(self, urls: Iterable[str]) -> Dict[str, str]:
        unique = list(dict.fromkeys(urls))
        if not unique:
            return {}
        cl = await self._conn()
        owners = await cl.hmget(URL_INDEX, unique)
        return {url: owner for url, owner in zip(unique, owners) if owner}

    async def count_stories(self) -> int:
        cl = await self._conn()
        return int(await cl.hlen(URL_INDEX))
