"""feedgate-ingest command dispatch."""
import argparse

import fakeredis.aioredis
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from feedgate.persistence.story_store import RedisStoryStore
from feedgate.scripts import run_ingestion
from tests.fixtures.feeds import make_item


@pytest.fixture
def store():
    store = RedisStoryStore(client=fakeredis.aioredis.FakeRedis(decode_responses=True))
    store.connect = AsyncMock()
    store.close = AsyncMock()
    return store


def maintenance_args(target, **overrides):
    return argparse.Namespace(target=target, limit=overrides.get("limit"), dry_run=overrides.get("dry_run", False))


class TestListAdapters:

    def test_lists_registered_source_names(self, capsys):
        run_ingestion.list_adapters()

        lines = capsys.readouterr().out.splitlines()
        google = next(line for line in lines if line.startswith("google-research"))
        assert "Google Research Blog" in google
        assert "web_scrape" in google


class TestMaintenanceCommands:

    @pytest.mark.asyncio
    async def test_backfill_command(self, store, capsys):
        await store.upsert_story("src", make_item())
        embedder = MagicMock()
        embedder.embed = AsyncMock(return_value=[0.1, 0.9])

        with patch.object(run_ingestion, "RedisStoryStore", return_value=store), \
                patch.object(run_ingestion, "EmbeddingClient", return_value=embedder), \
                patch.object(run_ingestion, "RunAuditLogger"):
            exit_code = await run_ingestion.run_maintenance(maintenance_args("backfill-embeddings"))

        assert exit_code == 0
        assert (await store.get_story("src", "item-1")).embedding == [0.1, 0.9]
        assert "BACKFILL SUMMARY" in capsys.readouterr().out
        store.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_audit_command(self, store, capsys):
        await store.upsert_story("src", make_item())

        with patch.object(run_ingestion, "RedisStoryStore", return_value=store), \
                patch.object(run_ingestion, "RunAuditLogger"):
            exit_code = await run_ingestion.run_maintenance(maintenance_args("audit"))

        assert exit_code == 0
        assert "METADATA AUDIT" in capsys.readouterr().out

    def test_unknown_target_rejected(self, monkeypatch):
        monkeypatch.setattr("sys.argv", ["feedgate-ingest", "nope"])
        with pytest.raises(SystemExit) as exc:
            run_ingestion.main()
        assert exc.value.code == 2
