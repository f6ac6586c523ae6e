from typing import TypedDict, Optional, Any, List
from langgraph.graph import StateGraph, END
import asyncio
import logging

from ..models.canonical_item import CanonicalItem
from ..models.run_result import MetadataCoverage, RunResult, RunState
from ..ingestion.base import BaseAdapter
from ..agents.validator import ValidationGate
from ..agents.tagging_agent import TaggingAgent
from ..agents.summary_agent import SummaryAgent
from ..persistence.story_store import StoryStore, UpsertOutcome
from ..config import settings

logger = logging.getLogger(__name__)

NO_VALID_ITEMS = "no valid items"


class IngestionState(TypedDict):
    adapter: BaseAdapter
    source_id: str
    items: List[CanonicalItem]
    result: RunResult


class IngestionGraph:
    """Per-source ingestion workflow: fetch -> validate -> enrich -> persist."""

    def __init__(
        self,
        store: StoryStore,
        tagging_agent: Optional[TaggingAgent] = None,
        summary_agent: Optional[SummaryAgent] = None,
        validation_gate: Optional[ValidationGate] = None,
        enable_validation: bool = True,
        enable_tagging: bool = True,
        generate_embeddings: bool = True,
        adapter_timeout_seconds: Optional[float] = None,
        persist_delay_seconds: Optional[float] = None,
    ) -> None:
        self.store = store
        self.tagging_agent = tagging_agent
        self.summary_agent = summary_agent
        self.validation_gate = validation_gate or ValidationGate()
        self.enable_validation = enable_validation
        self.enable_tagging = enable_tagging
        self.generate_embeddings = generate_embeddings
        self.adapter_timeout_seconds = adapter_timeout_seconds or settings.adapter_timeout_seconds
        self.persist_delay_seconds = (
            settings.persist_delay_seconds if persist_delay_seconds is None else persist_delay_seconds
        )

        self.workflow = self._build_graph()

    def _build_graph(self) -> Any:
        workflow = StateGraph(IngestionState)

        # Nodes
        workflow.add_node("fetch", self.fetch_node)
        workflow.add_node("validate", self.validate_node)
        workflow.add_node("enrich", self.enrich_node)
        workflow.add_node("persist", self.persist_node)

        # Edges
        workflow.set_entry_point("fetch")

        workflow.add_conditional_edges(
            "fetch",
            self.check_progress,
            {
                "continue": "validate",
                "stop": END
            }
        )

        workflow.add_conditional_edges(
            "validate",
            self.check_progress,
            {
                "continue": "enrich",
                "stop": END
            }
        )

        workflow.add_edge("enrich", "persist")
        workflow.add_edge("persist", END)

        return workflow.compile()

    async def fetch_node(self, state: IngestionState) -> IngestionState:
        adapter, result = state["adapter"], state["result"]
        result.state = RunState.FETCHING
        logger.info(f"📡 [{adapter.key}] Fetching from {adapter.config.endpoint_url}")

        try:
            items = await asyncio.wait_for(adapter.fetch_and_parse(), timeout=self.adapter_timeout_seconds)
        except asyncio.TimeoutError:
            return self._fail(state, f"Fetch timed out after {self.adapter_timeout_seconds}s")
        except Exception as e:
            return self._fail(state, f"Fetch failed: {e}")

        result.items_processed = len(items)
        if not items:
            logger.info(f"[{adapter.key}] No items returned")
            result.state = RunState.DONE
            result.success = True
        return {**state, "items": items, "result": result}

    async def validate_node(self, state: IngestionState) -> IngestionState:
        adapter, result = state["adapter"], state["result"]
        result.state = RunState.VALIDATING
        items = state["items"]

        if self.enable_validation:
            report = self.validation_gate.validate(items)
            result.invalid_items = list(report.invalid)
            # Invalid items count as failed
            result.items_failed += len(report.invalid)
            items = report.valid

            if not items:
                return self._fail({**state, "items": items}, NO_VALID_ITEMS)

        return {**state, "items": items, "result": result}

    async def enrich_node(self, state: IngestionState) -> IngestionState:
        adapter, result = state["adapter"], state["result"]
        result.state = RunState.ENRICHING

        items = await self._skip_url_conflicts(state)

        if self.tagging_agent is not None and self.enable_tagging:
            try:
                items = await self.tagging_agent.tag_batch(items, adapter.name, use_semantic=self.generate_embeddings)
            except Exception as e:
                logger.warning(f"⚠️ [{adapter.key}] Tagging skipped: {e}")

        if self.tagging_agent is not None and self.generate_embeddings:
            try:
                items = await self.tagging_agent.embed_batch(items)
            except Exception as e:
                logger.warning(f"⚠️ [{adapter.key}] Embeddings skipped: {e}")

        if self.summary_agent is not None:
            try:
                items = await self.summary_agent.enrich(items)
            except Exception as e:
                logger.warning(f"⚠️ [{adapter.key}] Summaries skipped: {e}")

        return {**state, "items": items, "result": result}

    async def persist_node(self, state: IngestionState) -> IngestionState:
        adapter, result = state["adapter"], state["result"]
        result.state = RunState.PERSISTING
        items = state["items"]

        for index, item in enumerate(items):
            try:
                outcome = await self.store.upsert_story(state["source_id"], item)
            except Exception as e:
                logger.error(f"❌ [{adapter.key}] Failed to persist '{item.title[:50]}': {e}")
                result.items_failed += 1
                continue

            if outcome is UpsertOutcome.INSERTED:
                result.items_succeeded += 1
            elif outcome is UpsertOutcome.UPDATED:
                result.items_succeeded += 1
                result.items_updated += 1
            else:
                result.items_skipped += 1

            if self.persist_delay_seconds and index < len(items) - 1:
                await asyncio.sleep(self.persist_delay_seconds)

        result.coverage = MetadataCoverage.from_items(items)
        result.state = RunState.DONE
        result.success = True
        logger.info(
            f"✅ [{adapter.key}] Persisted {result.items_succeeded} items "
            f"({result.items_updated} updated, {result.items_skipped} skipped, {result.items_failed} failed)"
        )
        return {**state, "result": result}

    async def _skip_url_conflicts(self, state: IngestionState) -> List[CanonicalItem]:
        """Drop items whose url is already owned by a different story key."""
        items, result = state["items"], state["result"]
        existing_ids = await self.store.query_existing(state["source_id"], [i.external_id for i in items])
        existing_urls = await self.store.query_existing_urls([i.url for i in items])

        kept = []
        for item in items:
            if item.url in existing_urls and item.external_id not in existing_ids:
                logger.info(f"[{state['adapter'].key}] Skipping '{item.title[:50]}': URL already stored under another key")
                result.items_skipped += 1
                continue
            kept.append(item)
        return kept

    def _fail(self, state: IngestionState, reason: str) -> IngestionState:
        result = state["result"]
        logger.error(f"❌ [{state['adapter'].key}] {reason}")
        result.state = RunState.FAILED
        result.success = False
        result.error = reason
        return {**state, "result": result}

    def check_progress(self, state: IngestionState) -> str:
        return "stop" if state["result"].state in (RunState.DONE, RunState.FAILED) else "continue"

    async def run(self, adapter: BaseAdapter, source_id: str, result: Optional[RunResult] = None) -> RunResult:
        initial_state = IngestionState(
            adapter=adapter,
            source_id=source_id,
            items=[],
            result=result or RunResult(adapter=adapter.key, source_name=adapter.name),
        )
        final_state = await self.workflow.ainvoke(initial_state)
        return final_state["result"]
