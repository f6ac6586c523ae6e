"""
TaggingAgent: hybrid heuristic + semantic tagging.

Stage 1: keyword/pattern heuristics (always, instant)
Stage 2: embedding similarity against tag prototypes (optional)

Semantic failures never fail a batch: the heuristic result is kept and the
fallback is noted in the item's tagging metadata.
"""
import logging
import time
from collections import Counter
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from ..config import settings
from ..models.canonical_item import CanonicalItem, SemanticTag
from ..ingestion.normalize import merge_tags
from .heuristic_tagger import MAX_NOTES, CompiledTagConfig, HeuristicResult, HeuristicTagger, load_tagging_rules
from .semantic_tagger import Embedder, SemanticTagger

logger = logging.getLogger(__name__)

SEMANTIC_FALLBACK_NOTE = "Semantic tagging failed - using heuristic only"


class TagBatchStats(BaseModel):
    source_label: str
    mode: str
    total: int = 0
    failed: int = 0
    fallbacks: int = 0
    duration_ms: float = 0.0
    avg_ms_per_item: float = 0.0
    tag_histogram: Dict[str, int] = Field(default_factory=dict)


def semantic_text(item: CanonicalItem, max_chars: Optional[int] = None) -> str:
    """Title-weighted text used for both semantic tags and the stored embedding."""
    limit = max_chars or settings.embedding_max_chars
    return f"{item.title} {item.title} {item.content}"[:limit]


class TaggingAgent:
    """Owns the compiled rules, the heuristic memo cache and the prototype cache."""

    def __init__(
        self,
        config: Optional[CompiledTagConfig] = None,
        embedder: Optional[Embedder] = None,
        rules_path: Optional[str] = None,
    ) -> None:
        self._config = config
        self._heuristic: Optional[HeuristicTagger] = None
        self.rules_path = rules_path
        self.embedder = embedder
        self.semantic = SemanticTagger(embedder) if embedder is not None else None
        self.last_batch_stats: Optional[TagBatchStats] = None

    @property
    def config(self) -> CompiledTagConfig:
        # Load on first use; a broken rule document fails every call until fixed
        if self._config is None:
            self._config = load_tagging_rules(self.rules_path)
        return self._config

    @property
    def heuristic(self) -> HeuristicTagger:
        if self._heuristic is None:
            self._heuristic = HeuristicTagger(self.config)
        return self._heuristic

    @property
    def threshold(self) -> float:
        if settings.semantic_threshold is not None:
            return settings.semantic_threshold
        return self.config.confidence_threshold

    def _apply_heuristic(self, item: CanonicalItem, result: HeuristicResult, fallback_error: Optional[str] = None) -> CanonicalItem:
        metadata = result.metadata
        if fallback_error is not None:
            note = f"{SEMANTIC_FALLBACK_NOTE}: {fallback_error}"
            metadata = metadata.model_copy(update={
                "semantic_fallback": True,
                # The fallback note survives the notes cap
                "processing_notes": metadata.processing_notes[: MAX_NOTES - 1] + [note],
            })
        return item.model_copy(update={"tags": list(result.tags), "tagging_metadata": metadata})

    async def tag_item(self, item: CanonicalItem, adapter_name: str, use_semantic: bool = True) -> CanonicalItem:
        """
        Tag one item.

        Args:
            item: Canonical item to tag
            adapter_name: Recorded in tagging metadata
            use_semantic: Add prototype-similarity tags and attach the embedding

        Returns:
            Copy of the item with tags, tagging_metadata and (hybrid) embedding
        """
        start = time.perf_counter()
        heuristic = self.heuristic.tag(item, adapter_name)

        if not use_semantic or self.semantic is None or not self.semantic.is_warm:
            return self._apply_heuristic(item, heuristic)

        try:
            embedding = await self.semantic.embedder.embed(semantic_text(item))
            semantic_tags: List[SemanticTag] = self.semantic.tag_embedding(
                embedding, self.threshold, self.config.max_tags_per_story
            )
        except Exception as e:
            logger.warning(f"[{adapter_name}] Semantic tagging failed for '{item.title[:50]}', falling back to heuristic: {e}")
            return self._apply_heuristic(item, heuristic, fallback_error=str(e))

        max_tags = self.config.max_tags_per_story
        tags = merge_tags(heuristic.tags, [s.tag for s in semantic_tags])[:max_tags]
        elapsed_ms = (time.perf_counter() - start) * 1000

        base = heuristic.metadata
        metadata = base.model_copy(update={
            "mode": "hybrid",
            "tags_found": len(tags),
            "confidence_score": min(len(tags) / max_tags, 1.0) if tags else 0.0,
            "processing_time_ms": elapsed_ms,
            "semantic_tags": semantic_tags,
            "processing_notes": (base.processing_notes + [
                f"Semantic tags: {len(semantic_tags)} found",
                f"Hybrid processing: {elapsed_ms:.2f}ms",
            ])[:MAX_NOTES],
        })
        return item.model_copy(update={"tags": tags, "tagging_metadata": metadata, "embedding": embedding})

    async def tag_batch(self, items: Sequence[CanonicalItem], source_label: str, use_semantic: bool = True) -> List[CanonicalItem]:
        """
        Tag items sequentially. A failing item is kept with empty tags.

        Raises:
            TaggingConfigError: Rule document cannot be loaded
        """
        start = time.perf_counter()
        # Surface a broken rule document before touching any item
        _ = self.config

        warm_error: Optional[str] = None
        semantic = use_semantic and self.semantic is not None
        if semantic:
            try:
                await self.semantic.initialize()
            except Exception as e:
                logger.error(f"[{source_label}] Failed to initialize prototype embeddings: {e}")
                warm_error = str(e)
                semantic = False

        mode = "hybrid" if semantic else "heuristic"
        logger.info(f"[{source_label}] Starting {mode} tagging of {len(items)} items...")

        tagged: List[CanonicalItem] = []
        failed = 0
        for item in items:
            try:
                if warm_error is not None:
                    result = self._apply_heuristic(item, self.heuristic.tag(item, source_label), fallback_error=warm_error)
                else:
                    result = await self.tag_item(item, source_label, use_semantic=semantic)
                tagged.append(result)
            except Exception as e:
                logger.error(f"[{source_label}] Error tagging item {item.external_id}: {e}")
                failed += 1
                tagged.append(item.model_copy(update={"tags": []}))

        duration_ms = (time.perf_counter() - start) * 1000
        histogram = Counter(tag for item in tagged for tag in item.tags)
        fallbacks = sum(1 for i in tagged if i.tagging_metadata and i.tagging_metadata.semantic_fallback)
        self.last_batch_stats = TagBatchStats(
            source_label=source_label,
            mode=mode,
            total=len(items),
            failed=failed,
            fallbacks=fallbacks,
            duration_ms=duration_ms,
            avg_ms_per_item=duration_ms / len(items) if items else 0.0,
            tag_histogram=dict(histogram.most_common()),
        )

        logger.info(
            f"[{source_label}] Tagged {len(tagged) - failed}/{len(items)} items in {duration_ms:.2f}ms "
            f"({self.last_batch_stats.avg_ms_per_item:.2f}ms/item, {fallbacks} semantic fallbacks)"
        )
        logger.info(f"[{source_label}] Tag distribution: {dict(histogram.most_common(20))}")
        return tagged

    async def embed_batch(self, items: Sequence[CanonicalItem]) -> List[CanonicalItem]:
        """Attach embeddings without tagging. Failures leave the item without one."""
        if self.embedder is None:
            return list(items)
        result = []
        for item in items:
            if item.embedding:
                result.append(item)
                continue
            try:
                embedding = await self.embedder.embed(semantic_text(item))
                result.append(item.model_copy(update={"embedding": embedding}))
            except Exception as e:
                logger.warning(f"Embedding failed for '{item.title[:50]}': {e}")
                result.append(item)
        return result
