"""
IngestionPipeline: runs the ingestion graph for one or many adapters.

A run never raises. Every outcome, including configuration errors and
timeouts, is reported as a RunResult and appended to the audit log.
"""
import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from ..config import settings
from ..errors import SourceNotRegisteredError
from ..models.run_result import RunResult, RunState
from ..ingestion.registry import ADAPTER_REGISTRY, adapter_keys, get_adapter
from ..agents.tagging_agent import TaggingAgent
from ..agents.summary_agent import SummaryAgent
from ..persistence.story_store import StoryStore
from ..utils.logging import RunAuditLogger
from .ingestion_graph import IngestionGraph

logger = logging.getLogger(__name__)


def _failed(key: str, reason: str, source_name: Optional[str] = None) -> RunResult:
    return RunResult(adapter=key, source_name=source_name, state=RunState.FAILED, success=False, error=reason)


class IngestionPipeline:
    def __init__(
        self,
        store: StoryStore,
        tagging_agent: Optional[TaggingAgent] = None,
        summary_agent: Optional[SummaryAgent] = None,
        audit_logger: Optional[RunAuditLogger] = None,
        enable_validation: Optional[bool] = None,
        enable_tagging: Optional[bool] = None,
        generate_embeddings: Optional[bool] = None,
        adapter_timeout_seconds: Optional[float] = None,
        persist_delay_seconds: Optional[float] = None,
    ) -> None:
        self.store = store
        self.audit_logger = audit_logger
        self.graph = IngestionGraph(
            store,
            tagging_agent=tagging_agent,
            summary_agent=summary_agent,
            enable_validation=settings.enable_validation if enable_validation is None else enable_validation,
            enable_tagging=settings.enable_tagging if enable_tagging is None else enable_tagging,
            generate_embeddings=settings.generate_embeddings if generate_embeddings is None else generate_embeddings,
            adapter_timeout_seconds=adapter_timeout_seconds,
            persist_delay_seconds=persist_delay_seconds,
        )

    async def register_sources(self, keys: Optional[Sequence[str]] = None) -> Dict[str, str]:
        """Ensure every adapter's source has a persisted id. Returns key -> source id."""
        ids = {}
        for key in keys or adapter_keys():
            cls = ADAPTER_REGISTRY.get(key)
            if cls is None:
                logger.warning(f"⚠️ Cannot register unknown adapter '{key}'")
                continue
            ids[key] = await self.store.register_source(cls.config)
        return ids

    async def run_adapter(self, key: str) -> RunResult:
        """
        Run fetch -> validate -> enrich -> persist for one adapter.

        Args:
            key: Adapter registry key

        Returns:
            RunResult with counts, coverage and duration; state is DONE or FAILED
        """
        start = time.perf_counter()
        result = await self._run(key)
        result.duration_ms = (time.perf_counter() - start) * 1000

        status = "✅" if result.success else "❌"
        logger.info(
            f"{status} [{key}] {result.state.value}: processed={result.items_processed} "
            f"succeeded={result.items_succeeded} failed={result.items_failed} "
            f"skipped={result.items_skipped} ({result.duration_ms:.0f}ms)"
        )
        if self.audit_logger is not None:
            self.audit_logger.log_run(result)
        return result

    async def _run(self, key: str) -> RunResult:
        # STAGE 1: resolve adapter and source identity (configuration errors, no retry)
        try:
            adapter = get_adapter(key)
        except SourceNotRegisteredError as e:
            logger.error(f"❌ {e}")
            return _failed(key, str(e))

        try:
            source_id = await self.store.find_source_by_name(adapter.name)
        except Exception as e:
            logger.error(f"❌ [{key}] Source lookup failed: {e}")
            return _failed(key, f"Source lookup failed: {e}", adapter.name)
        if not source_id:
            reason = f"Source '{adapter.name}' is not registered"
            logger.error(f"❌ [{key}] {reason}")
            return _failed(key, reason, adapter.name)

        # STAGE 2: the graph handles fetch, validation, enrichment and persistence
        result = RunResult(adapter=key, source_name=adapter.name)
        try:
            return await self.graph.run(adapter, source_id, result)
        except Exception as e:
            logger.exception(f"❌ [{key}] Pipeline error: {e}")
            result.state = RunState.FAILED
            result.success = False
            result.error = f"Pipeline error: {e}"
            return result

    async def run_all(
        self,
        keys: Optional[Sequence[str]] = None,
        parallel: bool = False,
        continue_on_error: bool = True,
    ) -> List[RunResult]:
        """
        Run several adapters.

        Args:
            keys: Adapter keys, defaults to every registered adapter
            parallel: Run all adapters concurrently and wait for every one to settle
            continue_on_error: Sequential mode only; stop at the first failed run when False
        """
        keys = list(keys or adapter_keys())
        logger.info(f"📡 Running {len(keys)} adapters ({'parallel' if parallel else 'sequential'})")

        if parallel:
            settled = await asyncio.gather(*(self.run_adapter(k) for k in keys), return_exceptions=True)
            results = []
            for key, outcome in zip(keys, settled):
                if isinstance(outcome, BaseException):
                    if not isinstance(outcome, Exception):
                        raise outcome
                    logger.error(f"❌ [{key}] Unhandled error: {outcome}")
                    outcome = _failed(key, str(outcome))
                results.append(outcome)
            return results

        results = []
        for key in keys:
            try:
                result = await self.run_adapter(key)
            except Exception as e:
                logger.error(f"❌ [{key}] Unhandled error: {e}")
                result = _failed(key, str(e))
            results.append(result)
            if not result.success and not continue_on_error:
                logger.warning(f"⚠️ Stopping after failed adapter '{key}'")
                break
        return results

    def summarize(self, results: Sequence[RunResult]) -> Dict[str, Any]:
        """Log a run-level summary and return it as a dict."""
        successful = [r for r in results if r.success]
        failed = [r for r in results if not r.success]
        totals = {
            "processed": sum(r.items_processed for r in results),
            "succeeded": sum(r.items_succeeded for r in results),
            "updated": sum(r.items_updated for r in results),
            "failed": sum(r.items_failed for r in results),
            "skipped": sum(r.items_skipped for r in results),
        }
        persisted = [r for r in successful if r.coverage.total]
        coverage: Dict[str, float] = {}
        if persisted:
            fields = persisted[0].coverage.percentages().keys()
            coverage = {
                f: round(sum(r.coverage.percentages()[f] for r in persisted) / len(persisted), 1)
                for f in fields
            }
        top = sorted(successful, key=lambda r: r.items_succeeded, reverse=True)[:3]

        logger.info("=" * 60)
        logger.info(f"📊 Ingestion summary: {len(successful)}/{len(results)} adapters succeeded")
        logger.info(
            f"   Items: processed={totals['processed']} succeeded={totals['succeeded']} "
            f"updated={totals['updated']} failed={totals['failed']} skipped={totals['skipped']}"
        )
        for r in failed:
            logger.info(f"   ❌ {r.adapter}: {r.error}")
        if coverage:
            logger.info(f"   Coverage: {coverage}")
        if top:
            logger.info(f"   Top: {', '.join(f'{r.adapter} ({r.items_succeeded})' for r in top)}")
        logger.info("=" * 60)

        return {
            "adapters_total": len(results),
            "successful": [r.adapter for r in successful],
            "failed": [r.adapter for r in failed],
            "totals": totals,
            "coverage": coverage,
            "top_performers": [r.adapter for r in top],
        }
