"""arXiv and PyPI adapters."""
from datetime import datetime, timezone

import pytest
from unittest.mock import AsyncMock, patch

from feedgate.errors import FetchError, FetchHTTPError
from feedgate.ingestion.arxiv import ArxivAdapter
from feedgate.ingestion.feed_parser import parse_feed
from feedgate.ingestion.pypi import PyPIAdapter, recent_versions, version_key
from tests.fixtures.feeds import atom_entry, atom_feed, pypi_payload


class TestArxiv:

    def setup_method(self):
        self.adapter = ArxivAdapter()

    def test_query_url(self):
        url = self.adapter.query_url()
        assert url.startswith("http://export.arxiv.org/api/query?")
        assert "max_results=200" in url
        assert "sortBy=submittedDate" in url

    @pytest.mark.asyncio
    async def test_entries_mapped(self):
        xml = atom_feed(
            atom_entry(entry_id="http://arxiv.org/abs/2501.00001v1", title="Older paper", published="2025-01-02T00:00:00Z"),
            atom_entry(entry_id="http://arxiv.org/abs/2501.00002v2", title="Newer paper", published="2025-01-05T00:00:00Z"),
        )
        with patch("feedgate.ingestion.arxiv.fetch_text", new=AsyncMock(return_value=xml)):
            items = await self.adapter.fetch_and_parse()

        assert [i.title for i in items] == ["Newer paper", "Older paper"]
        newer = items[0]
        assert newer.external_id == "arxiv-2501.00002v2"
        assert newer.url == "http://arxiv.org/abs/2501.00002v2"
        assert newer.author == "Ada Lovelace, Alan Turing"
        assert newer.content == "We study how sparse models scale."
        assert newer.original_metadata["arxiv_paper_id"] == "2501.00002v2"
        assert newer.original_metadata["platform"] == "arxiv"

    def test_title_whitespace_collapsed(self):
        entry = parse_feed(atom_feed(atom_entry())).items[0]
        assert self.adapter.map_entry(entry).title == "Scaling Laws for Sparse Models"

    def test_missing_date_falls_back_to_now(self):
        entry = parse_feed(atom_feed(atom_entry(published=None))).items[0]
        before = datetime.now(timezone.utc)
        item = self.adapter.map_entry(entry)
        assert item.published_at >= before


class TestPyPIHelpers:

    def test_version_key(self):
        assert version_key("2.10.0") > version_key("2.9.3")
        assert version_key("2.1.0rc1") == (2, 1, 0)

    def test_recent_versions_skip_empty_releases(self):
        releases = {"1.0": [{}], "1.2": [{}], "1.10": [{}], "2.0": [], "0.9": [{}]}
        assert recent_versions(releases) == ["1.10", "1.2", "1.0"]


class TestPyPIAdapter:

    def setup_method(self):
        self.adapter = PyPIAdapter()
        self.adapter.packages = ["requests", "missing-pkg"]

    def test_map_package(self):
        items = self.adapter.map_package("requests", pypi_payload())

        assert [i.title for i in items] == ["requests 2.32.3", "requests 2.32.0", "requests 2.31.0"]
        latest = items[0]
        assert latest.url == "https://pypi.org/project/requests/2.32.3/"
        assert latest.external_id == "pypi-requests-2.32.3"
        assert latest.story_category == "tools"
        assert latest.summary == "Python HTTP for Humans."
        assert "**elegant**" in latest.content
        assert latest.published_at == datetime(2024, 5, 29, 15, 37, 47, 444000, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_missing_package_skipped(self):
        async def fake_fetch_json(url, **kwargs):
            if "missing-pkg" in url:
                raise FetchHTTPError("HTTP 404", url=url, status_code=404)
            return pypi_payload()

        with patch("feedgate.ingestion.pypi.fetch_json", new=fake_fetch_json):
            items = await self.adapter.fetch_and_parse()

        assert len(items) == 3
        dates = [i.published_at for i in items]
        assert dates == sorted(dates, reverse=True)

    @pytest.mark.asyncio
    async def test_all_packages_failing_raises(self):
        with patch("feedgate.ingestion.pypi.fetch_json", new=AsyncMock(side_effect=FetchError("down"))):
            with pytest.raises(FetchError, match="All 2 PyPI"):
                await self.adapter.fetch_and_parse()

    def test_broken_release_keeps_siblings(self):
        data = pypi_payload()
        data["releases"]["2.32.0"] = ["garbage"]

        items = self.adapter.map_package("requests", data)

        assert [i.title for i in items] == ["requests 2.32.3", "requests 2.31.0"]

    def test_non_string_upload_time_skips_release(self):
        data = pypi_payload()
        data["releases"]["2.32.3"][0]["upload_time_iso_8601"] = 1716997067

        items = self.adapter.map_package("requests", data)

        assert "requests 2.32.3" not in [i.title for i in items]
        assert len(items) == 2

    @pytest.mark.asyncio
    async def test_invalid_package_info_does_not_sink_batch(self):
        async def fake_fetch_json(url, **kwargs):
            if "missing-pkg" in url:
                data = pypi_payload("missing-pkg")
                data["info"]["summary"] = 42
                return data
            return pypi_payload()

        with patch("feedgate.ingestion.pypi.fetch_json", new=fake_fetch_json):
            items = await self.adapter.fetch_and_parse()

        assert [i.title for i in items] == ["requests 2.32.3", "requests 2.32.0", "requests 2.31.0"]
