"""
Deterministic keyword/pattern tagger driven by a versioned rule document.

The rule document is loaded and compiled once; every tag decision is a pure
function of (title, content, rules). Results are memoized per story.
"""
import json
import logging
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Pattern

import yaml
from pydantic import BaseModel, Field, ValidationError

from ..config import settings
from ..errors import TaggingConfigError
from ..models.canonical_item import CanonicalItem, TaggingMetadata

logger = logging.getLogger(__name__)

MAX_KEYWORDS_SAMPLE = 10
MAX_NOTES = 8

_NON_WORD_RE = re.compile(r"[^\w]")


class TagCategory(BaseModel):
    description: str = ""
    tags: Dict[str, List[str]] = Field(default_factory=dict)


class TaggingRules(BaseModel):
    """Rule document as written on disk."""

    version: str
    confidence_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    production_mode: bool = True
    max_tags_per_story: int = Field(default=8, gt=0)
    tag_categories: Dict[str, TagCategory] = Field(default_factory=dict)
    patterns: Dict[str, str] = Field(default_factory=dict)
    pattern_tags: Dict[str, List[str]] = Field(default_factory=dict)


@dataclass(frozen=True)
class CompiledTagConfig:
    version: str
    confidence_threshold: float
    production_mode: bool
    max_tags_per_story: int
    # category -> tag -> lowercased keywords
    tag_categories: Dict[str, Dict[str, List[str]]]
    patterns: Dict[str, Pattern[str]]
    pattern_tags: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def from_rules(cls, rules: TaggingRules) -> "CompiledTagConfig":
        patterns = {}
        for name, expr in rules.patterns.items():
            try:
                patterns[name] = re.compile(expr, re.IGNORECASE)
            except re.error as e:
                raise TaggingConfigError(f"Invalid regex for pattern '{name}': {e}") from e

        return cls(
            version=rules.version,
            confidence_threshold=rules.confidence_threshold,
            production_mode=rules.production_mode,
            max_tags_per_story=rules.max_tags_per_story,
            tag_categories={
                category: {tag: [k.lower() for k in keywords] for tag, keywords in cfg.tags.items()}
                for category, cfg in rules.tag_categories.items()
            },
            patterns=patterns,
            pattern_tags=dict(rules.pattern_tags),
        )


def load_tagging_rules(path: Optional[str | Path] = None) -> CompiledTagConfig:
    """
    Load and compile the tagging rule document.

    Args:
        path: YAML or JSON file (default: settings.tagging_rules_path)

    Returns:
        CompiledTagConfig with case-insensitive precompiled patterns

    Raises:
        TaggingConfigError: File missing, unparseable or schema-invalid
    """
    rules_path = Path(path or settings.tagging_rules_path)
    try:
        with open(rules_path, "r", encoding="utf-8") as f:
            if rules_path.suffix == ".json":
                raw = json.load(f)
            else:
                raw = yaml.safe_load(f)
    except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise TaggingConfigError(f"Failed to read tagging rules {rules_path}: {e}") from e

    if not isinstance(raw, dict):
        raise TaggingConfigError(f"Tagging rules {rules_path} must be a mapping")
    try:
        rules = TaggingRules.model_validate(raw)
    except ValidationError as e:
        raise TaggingConfigError(f"Invalid tagging rules {rules_path}: {e}") from e

    config = CompiledTagConfig.from_rules(rules)
    logger.info(f"Loaded tagging rules v{config.version} with {len(config.tag_categories)} tag categories")
    return config


class HeuristicResult(BaseModel):
    tags: List[str]
    metadata: TaggingMetadata
    processing_time_ms: float


class HeuristicTagger:
    """Keyword and regex tagging with a bounded memo cache."""

    def __init__(self, config: CompiledTagConfig, cache_size: Optional[int] = None):
        self.config = config
        self.cache_size = settings.tagging_cache_size if cache_size is None else cache_size
        self._cache: Dict[str, HeuristicResult] = {}

    @staticmethod
    def cache_key(item: CanonicalItem) -> str:
        return f"{item.url}:{item.title[:50]}"

    @property
    def cache_len(self) -> int:
        return len(self._cache)

    def clear_cache(self) -> None:
        self._cache.clear()

    def tag(self, item: CanonicalItem, adapter_name: str) -> HeuristicResult:
        start = time.perf_counter()
        key = self.cache_key(item)
        cached = self._cache.get(key)
        if cached is not None:
            return cached.model_copy(update={"processing_time_ms": (time.perf_counter() - start) * 1000})

        result = self._extract(item.title, item.content, adapter_name, start)
        # Full cache stops storing, it never evicts
        if len(self._cache) < self.cache_size:
            self._cache[key] = result
        return result

    def _extract(self, title: str, content: str, adapter_name: str, start: float) -> HeuristicResult:
        cfg = self.config
        # Title counted twice for extra weight
        text = f"{title} {title} {content}".lower()
        words = {_NON_WORD_RE.sub("", w) for w in text.split()}

        extracted: List[str] = []
        keywords_matched: List[str] = []
        patterns_matched: List[str] = []
        categories_matched: List[str] = []
        notes: List[str] = []

        # STAGE 1: category keywords
        for category, tags in cfg.tag_categories.items():
            category_hit = False
            for tag, keywords in tags.items():
                hits = [k for k in keywords if k in words or k in text]
                if hits:
                    extracted.append(tag)
                    keywords_matched.extend(hits)
                    category_hit = True
                    notes.append(f"{tag}: {len(hits)} keyword matches")
            if category_hit:
                categories_matched.append(category)

        # STAGE 2: patterns imply fixed tags
        for name, pattern in cfg.patterns.items():
            if pattern.search(text):
                patterns_matched.append(name)
                extracted.extend(cfg.pattern_tags.get(name, []))

        unique_tags = sorted(set(extracted))[: cfg.max_tags_per_story]
        elapsed_ms = (time.perf_counter() - start) * 1000
        confidence = min(len(unique_tags) / cfg.max_tags_per_story, 1.0) if unique_tags else 0.0

        metadata = TaggingMetadata(
            adapter_name=adapter_name,
            version=cfg.version,
            mode="heuristic",
            tags_found=len(unique_tags),
            tag_categories_matched=categories_matched,
            keywords_matched=list(dict.fromkeys(keywords_matched))[:MAX_KEYWORDS_SAMPLE],
            patterns_matched=patterns_matched,
            confidence_score=confidence,
            processing_time_ms=elapsed_ms,
            processing_notes=[
                f"Analyzed {len(text)} chars in {elapsed_ms:.2f}ms",
                f"Extracted {len(unique_tags)}/{cfg.max_tags_per_story} tags",
                f"Categories matched: {', '.join(categories_matched)}",
                *notes,
            ][:MAX_NOTES],
            heuristic_tags=unique_tags,
        )
        return HeuristicResult(tags=unique_tags, metadata=metadata, processing_time_ms=elapsed_ms)

    def explain(self, title: str, content: str, adapter_name: str = "debug") -> Dict[str, object]:
        """
        Human-readable breakdown of a tagging decision, for debugging rules.

        Disabled when the rule document sets production_mode.
        """
        if self.config.production_mode:
            return {
                "analysis": ["Production mode: detailed analysis disabled"],
                "tag_breakdown": {},
                "suggestions": [],
            }

        result = self._extract(title, content, adapter_name, time.perf_counter())
        meta = result.metadata
        analysis = [
            f"TAGGING ANALYSIS for '{title}'",
            f"Text length: {len(title) + len(content)} characters",
            f"Processing time: {result.processing_time_ms:.2f}ms",
            f"Tags extracted: {len(result.tags)}/{self.config.max_tags_per_story}",
            f"Extracted tags: [{', '.join(result.tags)}]",
            f"Categories: {', '.join(meta.tag_categories_matched)}",
            f"Confidence: {meta.confidence_score * 100:.0f}%",
            f"Rules version: {self.config.version}",
        ]
        if meta.keywords_matched:
            analysis.append(f"Keywords matched: {', '.join(meta.keywords_matched)}")
        if meta.patterns_matched:
            analysis.append(f"Patterns matched: {', '.join(meta.patterns_matched)}")

        breakdown = {
            category: [t for t in result.tags if t in self.config.tag_categories.get(category, {})]
            for category in meta.tag_categories_matched
        }
        suggestions = []
        if not result.tags:
            suggestions.append("No tags matched: add keywords or patterns covering this content")
        elif len(result.tags) == self.config.max_tags_per_story:
            suggestions.append("Tag cap reached: lower-ranked matches were dropped")
        return {"analysis": analysis, "tag_breakdown": breakdown, "suggestions": suggestions}
