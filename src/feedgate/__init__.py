"""feedgate: multi-source content ingestion with validation and hybrid tagging."""

__version__ = "0.1.0"
