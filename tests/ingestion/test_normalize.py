"""Field normalization helpers."""
from datetime import datetime, timezone

from feedgate.ingestion.normalize import (
    decode_entities,
    derive_title,
    html_to_markdown,
    merge_tags,
    parse_iso_datetime,
    parse_loose_datetime,
    sort_newest_first,
    stable_hash,
    strip_html,
    truncate,
)
from tests.fixtures.feeds import make_item


class TestEntities:

    def test_decode_named_and_numeric(self):
        assert decode_entities("AWS &amp; Analytics") == "AWS & Analytics"
        assert decode_entities("&lt;b&gt; &quot;hi&quot; &#39;x&#39;") == "<b> \"hi\" 'x'"
        assert decode_entities("a&nbsp;b") == "a b"

    def test_decode_empty(self):
        assert decode_entities(None) == ""

    def test_title_is_decoded_and_trimmed(self):
        assert derive_title("  AWS &amp; Analytics \n") == "AWS & Analytics"

    def test_title_falls_back_to_description(self):
        description = "<p>" + "word " * 40 + "</p>"
        title = derive_title("", description)
        assert len(title) <= 70
        assert title.startswith("word word")

    def test_title_fallback_untitled(self):
        assert derive_title(None, None) == "Untitled"


class TestMarkdown:

    def test_structure_preserved(self):
        html = (
            "<h2>Setup</h2><p>Install with <code>pip install x</code> and read "
            '<a href="https://docs.example.com">the docs</a>.</p>'
            "<ul><li>fast</li><li>small</li></ul><script>alert(1)</script>"
        )
        text = html_to_markdown(html)
        assert "## Setup" in text
        assert "`pip install x`" in text
        assert "[the docs](https://docs.example.com)" in text
        assert "- fast" in text and "- small" in text
        assert "alert" not in text

    def test_plain_text_passthrough(self):
        assert html_to_markdown("Tom &amp; Jerry") == "Tom & Jerry"

    def test_strip_html(self):
        assert strip_html("<p>Hello <b>world</b></p>") == "Hello world"


class TestTruncation:

    def test_long_content_capped(self):
        assert len(truncate("x" * 80_000)) == 50_000

    def test_explicit_cap(self):
        assert truncate("abcdef", 3) == "abc"


class TestIdsAndDates:

    def test_stable_hash_deterministic(self):
        assert stable_hash("a", "b") == stable_hash("a", "b")
        assert stable_hash("a", "b") != stable_hash("b", "a")
        assert len(stable_hash("a", length=16)) == 16

    def test_iso_naive_is_utc(self):
        parsed = parse_iso_datetime("2024-05-29T15:37:47")
        assert parsed == datetime(2024, 5, 29, 15, 37, 47, tzinfo=timezone.utc)

    def test_iso_offset_converted(self):
        parsed = parse_iso_datetime("2024-05-29T17:00:00+02:00")
        assert parsed == datetime(2024, 5, 29, 15, 0, tzinfo=timezone.utc)

    def test_bad_dates_return_none(self):
        assert parse_iso_datetime("yesterday-ish") is None
        assert parse_iso_datetime("") is None
        assert parse_loose_datetime("not a date at all") is None

    def test_loose_date(self):
        assert parse_loose_datetime("March 5, 2025") == datetime(2025, 3, 5, tzinfo=timezone.utc)


class TestTagsAndOrdering:

    def test_merge_tags_order_preserving_union(self):
        assert merge_tags(["ai", "llm"], ["llm", "python"], ["", "ai"]) == ["ai", "llm", "python"]

    def test_sort_newest_first(self):
        old = make_item(external_id="old", published_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
        new = make_item(external_id="new", published_at=datetime(2025, 1, 1, tzinfo=timezone.utc))
        assert [i.external_id for i in sort_newest_first([old, new])] == ["new", "old"]
