"""Validation gate issue reporting."""
from feedgate.agents.validator import ValidationGate, is_valid_url, validate_items
from feedgate.models.canonical_item import CanonicalItem
from tests.fixtures.feeds import make_item


class TestValidationGate:

    def setup_method(self):
        self.gate = ValidationGate(max_content_chars=1000)

    def test_valid_item_has_no_issues(self):
        item = make_item(image_url="/lib/images/logo.png", story_category="news")
        assert self.gate.issues_for(item) == []

    def test_empty_fields_reported(self):
        item = make_item(title="  ", content="", external_id="")
        issues = self.gate.issues_for(item)
        assert "Missing or empty title" in issues
        assert "Missing or empty content" in issues
        assert "Missing or empty external ID" in issues

    def test_bad_urls_reported(self):
        item = make_item(url="not-a-url", image_url="ftp//broken")
        issues = self.gate.issues_for(item)
        assert "Invalid URL format: not-a-url" in issues
        assert "Invalid image URL format: ftp//broken" in issues

    def test_content_over_cap(self):
        item = make_item(content="z" * 1001)
        assert self.gate.issues_for(item) == ["Content exceeds 1000 characters (1001)"]

    def test_unknown_category(self):
        issues = self.gate.issues_for(make_item(story_category="gossip"))
        assert len(issues) == 1
        assert issues[0].startswith("Invalid story category: gossip. Must be one of: analysis, announcement")

    def test_structurally_broken_item(self):
        item = CanonicalItem.model_construct(
            title="t", url="https://example.com/x", content="c", external_id="x",
            published_at=None, tags="ai",
        )
        issues = self.gate.issues_for(item)
        assert "Invalid or missing published date" in issues
        assert "Tags must be a list" in issues

    def test_validate_splits_batch(self):
        good = make_item(external_id="good")
        bad = make_item(external_id="bad", url="nope", title="")
        report = self.gate.validate([good, bad])

        assert report.valid == [good]
        assert len(report.invalid) == 1
        assert report.invalid[0].external_id == "bad"
        assert report.invalid[0].issues == ["Missing or empty title", "Invalid URL format: nope"]

    def test_validate_items_default_gate(self):
        report = validate_items([make_item()])
        assert len(report.valid) == 1 and report.invalid == []


def test_is_valid_url():
    assert is_valid_url("https://example.com/a?b=c")
    assert is_valid_url("http://export.arxiv.org/abs/2501.00001")
    assert not is_valid_url("/relative/path")
    assert not is_valid_url("mailto:someone@example.com")
