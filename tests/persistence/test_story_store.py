"""RedisStoryStore against an in-memory Redis."""
import asyncio

import fakeredis.aioredis
import pytest
from unittest.mock import AsyncMock, patch

from feedgate.models.canonical_item import TaggingMetadata
from feedgate.models.source import SourceConfig, SourceType
from feedgate.persistence.story_store import (
    URL_INDEX,
    RedisStoryStore,
    UpsertOutcome,
    content_fingerprint,
    story_key,
)
from tests.fixtures.feeds import make_item

SOURCE = SourceConfig(name="TechCrunch", type=SourceType.RSS, endpoint_url="https://techcrunch.com/feed/")


@pytest.fixture
def redis_client():
    return fakeredis.aioredis.FakeRedis(decode_responses=True)


@pytest.fixture
def store(redis_client):
    return RedisStoryStore(client=redis_client)


class TestSources:

    @pytest.mark.asyncio
    async def test_register_is_idempotent(self, store, redis_client):
        first = await store.register_source(SOURCE)
        second = await store.register_source(SOURCE)

        assert first == second
        assert await store.find_source_by_name("TechCrunch") == first
        stored = await redis_client.hgetall(f"source:{first}")
        assert stored["endpoint_url"] == "https://techcrunch.com/feed/"
        assert stored["type"] == "rss"

    @pytest.mark.asyncio
    async def test_unknown_source(self, store):
        assert await store.find_source_by_name("Nobody") is None


class TestUpsert:

    @pytest.mark.asyncio
    async def test_insert_then_unchanged(self, store):
        item = make_item()
        assert await store.upsert_story("src", item) is UpsertOutcome.INSERTED
        assert await store.upsert_story("src", item) is UpsertOutcome.UNCHANGED
        assert await store.count_stories() == 1

    @pytest.mark.asyncio
    async def test_reingestion_is_idempotent(self, store):
        """Running the same batch twice leaves exactly one story per key."""
        batch = [make_item(external_id=f"id-{n}", url=f"https://example.com/{n}") for n in range(3)]
        for item in batch:
            await store.upsert_story("src", item)
        outcomes = [await store.upsert_story("src", item) for item in batch]

        assert outcomes == [UpsertOutcome.UNCHANGED] * 3
        assert await store.count_stories() == 3

    @pytest.mark.asyncio
    async def test_changed_content_updates_in_place(self, store):
        item = make_item()
        await store.upsert_story("src", item)
        original = await store.get_story("src", item.external_id)

        edited = item.model_copy(update={"content": "Corrected article body."})
        assert await store.upsert_story("src", edited) is UpsertOutcome.UPDATED

        stored = await store.get_story("src", item.external_id)
        assert stored.content == "Corrected article body."
        assert stored.id == original.id
        assert stored.created_at == original.created_at
        assert stored.updated_at >= original.updated_at
        assert await store.count_stories() == 1

    @pytest.mark.asyncio
    async def test_enrichment_changes_do_not_count(self, store):
        item = make_item(
            embedding=[0.1, 0.2],
            tagging_metadata=TaggingMetadata(adapter_name="x", version="2.0.0"),
        )
        await store.upsert_story("src", item)
        reenriched = item.model_copy(update={
            "embedding": [0.3, 0.4],
            "tagging_metadata": TaggingMetadata(adapter_name="x", version="2.1.0"),
            "original_metadata": {"extraction_timestamp": "2025-01-07T00:00:00+00:00"},
        })
        assert content_fingerprint(reenriched) == content_fingerprint(item)
        assert await store.upsert_story("src", reenriched) is UpsertOutcome.UNCHANGED
        assert (await store.get_story("src", item.external_id)).embedding == [0.1, 0.2]

    @pytest.mark.asyncio
    async def test_missing_embedding_filled_on_reingest(self, store):
        item = make_item()
        await store.upsert_story("src", item)
        original = await store.get_story("src", item.external_id)

        enriched = item.model_copy(update={"embedding": [0.1, 0.2]})
        assert await store.upsert_story("src", enriched) is UpsertOutcome.UPDATED

        stored = await store.get_story("src", item.external_id)
        assert stored.embedding == [0.1, 0.2]
        assert stored.embedding_model
        assert stored.id == original.id
        assert stored.content_fingerprint == original.content_fingerprint
        assert await store.upsert_story("src", enriched) is UpsertOutcome.UNCHANGED

    @pytest.mark.asyncio
    async def test_missing_tagging_metadata_filled(self, store):
        item = make_item()
        await store.upsert_story("src", item)
        tagged = item.model_copy(update={"tagging_metadata": TaggingMetadata(adapter_name="x", version="2.1.0")})

        assert await store.upsert_story("src", tagged) is UpsertOutcome.UPDATED
        assert (await store.get_story("src", item.external_id)).tagging_metadata.adapter_name == "x"

    @pytest.mark.asyncio
    async def test_concurrent_writers_of_one_url(self, store, redis_client):
        """Only one story key may own a url, however the writes interleave."""
        url = "https://example.com/shared"
        outcomes = await asyncio.gather(
            store.upsert_story("src-a", make_item(external_id="x", url=url)),
            store.upsert_story("src-b", make_item(external_id="y", url=url)),
        )

        assert sorted(o.value for o in outcomes) == ["conflict", "inserted"]
        owner = await redis_client.hget(URL_INDEX, url)
        assert owner in {story_key("src-a", "x"), story_key("src-b", "y")}
        stored = [await store.get_story("src-a", "x"), await store.get_story("src-b", "y")]
        assert sum(s is not None for s in stored) == 1
        assert await store.count_stories() == 1

    @pytest.mark.asyncio
    async def test_failed_write_releases_url(self, store, redis_client):
        item = make_item()
        with patch.object(store, "_write_story", new=AsyncMock(side_effect=ConnectionError("gone"))):
            with pytest.raises(ConnectionError):
                await store.upsert_story("src", item)

        assert await redis_client.hget(URL_INDEX, item.url) is None
        assert await store.upsert_story("other", item) is UpsertOutcome.INSERTED

    @pytest.mark.asyncio
    async def test_url_owned_by_other_key_is_conflict(self, store):
        first = make_item(external_id="a")
        await store.upsert_story("src", first)

        same_url = make_item(external_id="b", title="Same link, new id")
        assert await store.upsert_story("src", same_url) is UpsertOutcome.CONFLICT
        assert await store.upsert_story("other-src", first) is UpsertOutcome.CONFLICT

        assert await store.get_story("src", "b") is None
        assert (await store.get_story("src", "a")).title == first.title
        assert await store.count_stories() == 1

    @pytest.mark.asyncio
    async def test_url_change_moves_index_entry(self, store, redis_client):
        item = make_item(url="https://example.com/old")
        await store.upsert_story("src", item)
        moved = item.model_copy(update={"url": "https://example.com/new"})

        assert await store.upsert_story("src", moved) is UpsertOutcome.UPDATED
        assert await redis_client.hget(URL_INDEX, "https://example.com/new") == story_key("src", item.external_id)
        assert await redis_client.hget(URL_INDEX, "https://example.com/old") is None

    @pytest.mark.asyncio
    async def test_embedding_model_recorded(self, store):
        item = make_item(embedding=[0.5, 0.5])
        await store.upsert_story("src", item)
        stored = await store.get_story("src", item.external_id)
        assert stored.embedding == [0.5, 0.5]
        assert stored.embedding_model


class TestQueries:

    @pytest.mark.asyncio
    async def test_query_existing(self, store):
        await store.upsert_story("src", make_item(external_id="a", url="https://e.com/a"))
        await store.upsert_story("src", make_item(external_id="b", url="https://e.com/b"))

        assert await store.query_existing("src", ["a", "b", "c"]) == {"a", "b"}
        assert await store.query_existing("other", ["a"]) == set()
        assert await store.query_existing("src", []) == set()

    @pytest.mark.asyncio
    async def test_query_existing_urls(self, store):
        await store.upsert_story("src", make_item(external_id="a", url="https://e.com/a"))

        assert await store.query_existing_urls(["https://e.com/a", "https://e.com/z"]) == {"https://e.com/a"}
        assert await store.url_owners(["https://e.com/a"]) == {"https://e.com/a": story_key("src", "a")}
        assert await store.query_existing_urls([]) == set()

    @pytest.mark.asyncio
    async def test_iter_stories_skips_index_keys(self, store):
        await store.register_source(SOURCE)
        await store.upsert_story("src", make_item(external_id="a", url="https://e.com/a"))
        await store.upsert_story("other", make_item(external_id="b", url="https://e.com/b"))

        keys = sorted([(s.source_id, s.external_id) async for s in store.iter_stories()])
        assert keys == [("other", "b"), ("src", "a")]

    @pytest.mark.asyncio
    async def test_set_embedding_keeps_identity(self, store):
        await store.upsert_story("src", make_item())
        story = await store.get_story("src", "item-1")

        updated = await store.set_embedding(story, [0.3, 0.7])

        stored = await store.get_story("src", "item-1")
        assert stored.embedding == [0.3, 0.7]
        assert stored.embedding_model
        assert stored.id == story.id
        assert updated.updated_at >= story.updated_at

    @pytest.mark.asyncio
    async def test_source_names(self, store):
        source_id = await store.register_source(SOURCE)
        assert await store.source_names() == {source_id: "TechCrunch"}
