"""RunAuditLogger writes one JSON line per event."""
import json

from feedgate.models.run_result import InvalidItem, MetadataCoverage, RunResult, RunState
from feedgate.utils.logging import RunAuditLogger


def read_lines(audit):
    with open(audit.log_file) as f:
        return [json.loads(line) for line in f if line.strip()]


class TestRunAuditLogger:

    def test_lifecycle_event(self, tmp_path):
        audit = RunAuditLogger("svc", log_dir=str(tmp_path))
        audit.log_event("SYSTEM_START", "INFO", details={"target": "all"})

        entry = read_lines(audit)[0]
        assert entry["service_name"] == "svc"
        assert entry["event_type"] == "SYSTEM_START"
        assert entry["target"] == "all"
        assert "timestamp" in entry

    def test_run_results(self, tmp_path):
        audit = RunAuditLogger("svc", log_dir=str(tmp_path))
        ok = RunResult(
            adapter="techcrunch", state=RunState.DONE, success=True, items_succeeded=2,
            coverage=MetadataCoverage(total=2, with_author=1),
        )
        bad = RunResult(
            adapter="arxiv", state=RunState.FAILED, success=False, error="no valid items",
            invalid_items=[InvalidItem(title="t", url="u", external_id="", issues=["Missing or empty external ID"])],
        )
        audit.log_run(ok)
        audit.log_run(bad)

        first, second = read_lines(audit)
        assert first["event_type"] == "RUN_COMPLETE"
        assert first["coverage_pct"]["author"] == 50.0
        assert second["event_type"] == "RUN_FAILED"
        assert second["severity"] == "WARN"
        assert second["invalid_count"] == 1
        assert "invalid_items" not in second
