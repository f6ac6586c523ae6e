from .ingestion_graph import IngestionGraph, IngestionState, NO_VALID_ITEMS
from .pipeline import IngestionPipeline

__all__ = ["IngestionGraph", "IngestionState", "NO_VALID_ITEMS", "IngestionPipeline"]
