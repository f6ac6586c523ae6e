"""Adapter registry."""
from typing import List

import pytest

from feedgate.errors import SourceNotRegisteredError
from feedgate.ingestion.base import BaseAdapter
from feedgate.ingestion.registry import (
    ADAPTER_REGISTRY,
    adapter_keys,
    get_adapter,
    register_adapter,
    source_name_for,
)
from feedgate.ingestion.rss_sources import TechCrunchAdapter


class TestRegistry:

    def test_all_sources_registered(self):
        assert set(adapter_keys()) == {
            "aws-big-data", "openai-blog", "microsoft-blog", "mit-tech-review", "mit-sloan",
            "venturebeat", "arstechnica", "google-research", "huggingface-papers",
            "arxiv-papers", "pypi-packages", "techcrunch",
        }

    def test_keys_match_class_keys(self):
        for key, cls in ADAPTER_REGISTRY.items():
            assert cls.key == key

    def test_source_names_unique(self):
        names = [cls.config.name for cls in ADAPTER_REGISTRY.values()]
        assert len(names) == len(set(names))

    def test_get_adapter(self):
        adapter = get_adapter("techcrunch")
        assert isinstance(adapter, TechCrunchAdapter)
        assert adapter.name == "TechCrunch"

    def test_unknown_adapter(self):
        with pytest.raises(SourceNotRegisteredError, match="Unknown adapter 'nope'"):
            get_adapter("nope")
        with pytest.raises(SourceNotRegisteredError):
            source_name_for("nope")

    def test_source_name_for(self):
        assert source_name_for("google-research") == "Google Research Blog"

    def test_duplicate_key_rejected(self):
        class Impostor(BaseAdapter):
            key = "techcrunch"
            config = TechCrunchAdapter.config

            async def fetch_and_parse(self) -> List:
                return []

        with pytest.raises(ValueError, match="already registered"):
            register_adapter(Impostor)
        assert ADAPTER_REGISTRY["techcrunch"] is TechCrunchAdapter

    def test_reregistering_same_class_is_noop(self):
        assert register_adapter(TechCrunchAdapter) is TechCrunchAdapter
