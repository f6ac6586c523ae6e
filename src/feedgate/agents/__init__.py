from .validator import ValidationGate, ValidationReport, validate_items
from .heuristic_tagger import HeuristicTagger, HeuristicResult, CompiledTagConfig, load_tagging_rules
from .semantic_tagger import SemanticTagger
from .tagging_agent import TaggingAgent, TagBatchStats
from .summary_agent import SummaryAgent, StorySummary

__all__ = [
    "ValidationGate", "ValidationReport", "validate_items",
    "HeuristicTagger", "HeuristicResult", "CompiledTagConfig", "load_tagging_rules",
    "SemanticTagger",
    "TaggingAgent", "TagBatchStats",
    "SummaryAgent", "StorySummary"
]
