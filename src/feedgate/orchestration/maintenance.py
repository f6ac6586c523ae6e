"""
Maintenance passes over stories already in the store.

backfill_embeddings attaches embeddings to stories stored without one, for
example after a run with --no-embeddings. audit_metadata reports how
complete the stored metadata is, overall and per source.
"""
import asyncio
import logging
import time
from collections import defaultdict
from typing import Any, Dict, List, Optional

from ..agents.semantic_tagger import Embedder
from ..agents.tagging_agent import semantic_text
from ..errors import EmbeddingError
from ..models.run_result import MetadataCoverage
from ..models.story import Story
from ..persistence.story_store import RedisStoryStore
from ..utils.logging import RunAuditLogger

logger = logging.getLogger(__name__)


async def backfill_embeddings(
    store: RedisStoryStore,
    embedder: Embedder,
    limit: Optional[int] = None,
    dry_run: bool = False,
    sleep_seconds: float = 0.0,
    audit_logger: Optional[RunAuditLogger] = None,
) -> Dict[str, Any]:
    """
    Embed every stored story that has no embedding.

    Args:
        limit: Stop after this many stories were attempted (None = all)
        dry_run: Count the candidates without calling the embedder
        sleep_seconds: Pause between provider calls

    Returns:
        Summary dict with scanned/embedded/failed/remaining counts
    """
    start = time.time()
    scanned = embedded = failed = candidates = 0

    async for story in store.iter_stories():
        scanned += 1
        if story.embedding:
            continue
        candidates += 1
        if dry_run or (limit is not None and embedded + failed >= limit):
            continue

        try:
            vector = await embedder.embed(semantic_text(story))
            await store.set_embedding(story, vector)
            embedded += 1
            logger.info(f"  ✅ Embedded {story.source_id}/{story.external_id}: {story.title[:60]}")
        except EmbeddingError as e:
            failed += 1
            logger.error(f"  ⚠️ Embedding failed for {story.source_id}/{story.external_id}: {e}")

        if sleep_seconds > 0:
            await asyncio.sleep(sleep_seconds)

    summary = {
        "scanned": scanned,
        "missing": candidates,
        "embedded": embedded,
        "failed": failed,
        "remaining": candidates - embedded,
        "duration_seconds": round(time.time() - start, 1),
        "dry_run": dry_run,
    }
    if audit_logger:
        audit_logger.log_event("BACKFILL_COMPLETE", "INFO", details=summary)
    logger.info(f"📊 Backfill: {embedded}/{candidates} embedded, {failed} failed, {scanned} scanned")
    return summary


def _metadata_shape(stories: List[Story]) -> Dict[str, int]:
    with_original = [s for s in stories if s.original_metadata]
    return {
        "with_original_metadata": len(with_original),
        "with_tagging_metadata": sum(1 for s in stories if s.tagging_metadata is not None),
        "with_raw_payload": sum(
            1 for s in with_original if any("raw" in key for key in s.original_metadata)
        ),
    }


async def audit_metadata(store: RedisStoryStore) -> Dict[str, Any]:
    """
    Metadata completeness of every stored story.

    Returns:
        {"overall": {...}, "by_source": {source_id: {...}}} where each entry
        holds MetadataCoverage counts, their percentages and lineage counts
    """
    by_source: Dict[str, List[Story]] = defaultdict(list)
    async for story in store.iter_stories():
        by_source[story.source_id].append(story)

    def report(stories: List[Story]) -> Dict[str, Any]:
        coverage = MetadataCoverage.from_items(stories)
        return {
            **coverage.model_dump(),
            "percentages": coverage.percentages(),
            **_metadata_shape(stories),
        }

    everything = [s for stories in by_source.values() for s in stories]
    return {
        "overall": report(everything),
        "by_source": {source_id: report(stories) for source_id, stories in sorted(by_source.items())},
    }


def print_audit(audit: Dict[str, Any], source_names: Optional[Dict[str, str]] = None) -> None:
    names = source_names or {}
    overall = audit["overall"]
    print("\n" + "=" * 60)
    print("🔬 METADATA AUDIT")
    print("=" * 60)
    print(f"  Stories:           {overall['total']}")
    for field, pct in overall["percentages"].items():
        print(f"  {field.capitalize():<18} {pct:.1f}%")
    print(f"  Tagging metadata:  {overall['with_tagging_metadata']}/{overall['total']}")
    print(f"  Raw payload kept:  {overall['with_raw_payload']}/{overall['total']}")
    print("-" * 60)
    for source_id, entry in audit["by_source"].items():
        pct = entry["percentages"]
        label = names.get(source_id, source_id)
        print(
            f"  {label[:30]:<30} {entry['total']:>5} stories  "
            f"summary {pct['summary']:.0f}%  embedding {pct['embedding']:.0f}%"
        )
    print("=" * 60)
