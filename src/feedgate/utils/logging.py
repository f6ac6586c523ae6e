import structlog
import logging
from typing import Any, Dict, Optional
import os

from ..config import settings
from ..models.run_result import RunResult

# Configure structlog
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

RUN_LOG_FILE = "ingestion_runs.jsonl"


class RunAuditLogger:
    """
    Appends one JSON line per ingestion run result to <log_dir>/ingestion_runs.jsonl.
    Also records service lifecycle events (start, stop, errors).
    """

    def __init__(self, service_name: str = "ingestion", log_dir: Optional[str] = None):
        self.service_name = service_name
        self.log_dir = log_dir or settings.log_dir

        os.makedirs(self.log_dir, exist_ok=True)
        self.log_file = os.path.join(self.log_dir, RUN_LOG_FILE)

        # One file handler per target file, even across instances
        self._audit_logger = logging.getLogger(f"feedgate_audit.{service_name}.{os.path.abspath(self.log_file)}")
        self._audit_logger.setLevel(logging.INFO)
        self._audit_logger.propagate = False

        if not self._audit_logger.handlers:
            handler = logging.FileHandler(self.log_file)
            handler.setFormatter(logging.Formatter('%(message)s'))  # JSON renderer does formatting
            self._audit_logger.addHandler(handler)

        self._logger = structlog.wrap_logger(self._audit_logger, processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer()
        ])

    def log_event(self, event_type: str, severity: str = "INFO", details: Optional[Dict[str, Any]] = None) -> None:
        """
        Log a lifecycle event.

        Args:
            event_type: e.g. "SYSTEM_START", "RUN_COMPLETE", "RUN_ERROR"
            severity: "INFO", "WARN", "CRITICAL"
            details: Extra metadata
        """
        entry: Dict[str, Any] = {
            "service_name": self.service_name,
            "event_type": event_type,
            "severity": severity,
        }
        if details:
            entry.update(details)
        self._logger.info(**entry)

    def log_run(self, result: RunResult) -> None:
        payload = result.model_dump(mode="json", exclude={"invalid_items"})
        payload["invalid_count"] = len(result.invalid_items)
        payload["coverage_pct"] = result.coverage.percentages()
        self.log_event(
            "RUN_COMPLETE" if result.success else "RUN_FAILED",
            "INFO" if result.success else "WARN",
            details=payload,
        )
