"""parse_feed: sanitation, shape checks and vendor alias folding."""
import json

import pytest

from feedgate.errors import FeedParseError
from feedgate.ingestion.feed_parser import parse_feed, sanitize_xml
from tests.fixtures.feeds import atom_entry, atom_feed, rss_feed, rss_item


class TestSanitize:

    def test_bare_ampersand_escaped(self):
        assert sanitize_xml("AT&T &amp; Co &#39;x&#39; &#x27;") == "AT&amp;T &amp; Co &#39;x&#39; &#x27;"

    def test_zero_width_characters_removed(self):
        assert sanitize_xml("\ufeff<rss>a\u200bb</rss>") == "<rss>ab</rss>"


class TestShapeChecks:

    def test_html_document_rejected(self):
        with pytest.raises(FeedParseError, match="does not appear to be valid RSS/Atom"):
            parse_feed("<html><body>Service temporarily unavailable</body></html>")

    def test_empty_input_rejected(self):
        with pytest.raises(FeedParseError):
            parse_feed("")

    def test_empty_channel_yields_no_items(self):
        feed = parse_feed(rss_feed())
        assert feed.items == []
        assert feed.title == "Example Feed"

    def test_bare_ampersand_in_feed_still_parses(self):
        xml = rss_feed(rss_item(title="Q&A with the team", guid="qa-1"))
        feed = parse_feed(xml)
        assert feed.items[0].title == "Q&A with the team"


class TestAliases:

    def test_rss_fields(self):
        xml = rss_feed(rss_item(
            title="Lakehouse patterns",
            link="https://example.com/lakehouse",
            guid="post-42",
            description="<p>Short teaser</p>",
            content="<h2>Full body</h2><p>All of it.</p>",
            creator="Jane Doe",
            categories=("Analytics", "AWS Glue"),
        ))
        item = parse_feed(xml).items[0]

        assert item.link == "https://example.com/lakehouse"
        assert item.guid == "post-42"
        assert "Full body" in item.content
        assert "Short teaser" in item.description
        assert item.author == "Jane Doe"
        assert item.categories == ["Analytics", "AWS Glue"]
        assert item.published == "Mon, 06 Jan 2025 10:00:00 GMT"
        assert item.published_at.isoformat() == "2025-01-06T10:00:00+00:00"

    def test_unparseable_date_kept_as_text(self):
        xml = rss_feed(rss_item(pub_date="sometime last week", guid="d-1"))
        item = parse_feed(xml).items[0]
        assert item.published == "sometime last week"
        assert item.published_at is None

    def test_atom_updated_used_when_no_published(self):
        xml = atom_feed(atom_entry(published=None, updated="2025-02-01T08:30:00Z"))
        item = parse_feed(xml).items[0]
        assert item.published_at.isoformat() == "2025-02-01T08:30:00+00:00"
        assert item.guid == "http://arxiv.org/abs/2501.01234v1"
        assert item.link == "http://arxiv.org/abs/2501.01234v1"

    def test_raw_lineage_is_json_safe(self):
        item = parse_feed(rss_feed(rss_item(guid="j-1"))).items[0]
        json.dumps(item.raw)
        assert item.raw["published_parsed"] == "2025-01-06T10:00:00+00:00"
