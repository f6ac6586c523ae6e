"""
Command-line entry point for the ingestion pipeline.

    feedgate-ingest list
    feedgate-ingest all --parallel
    feedgate-ingest techcrunch --no-embeddings
    feedgate-ingest all --loop 3600
    feedgate-ingest backfill-embeddings --limit 100
    feedgate-ingest audit
"""
import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from feedgate.config import settings
from feedgate.ingestion.registry import ADAPTER_REGISTRY, adapter_keys, source_name_for
from feedgate.agents.tagging_agent import TaggingAgent
from feedgate.agents.summary_agent import SummaryAgent
from feedgate.orchestration.maintenance import audit_metadata, backfill_embeddings, print_audit
from feedgate.orchestration.pipeline import IngestionPipeline
from feedgate.persistence.story_store import RedisStoryStore
from feedgate.utils.embeddings import EmbeddingClient
from feedgate.utils.llm_client import LLMClient
from feedgate.utils.logging import RunAuditLogger

# Setup logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

MAINTENANCE_COMMANDS = ("backfill-embeddings", "audit")


def list_adapters() -> None:
    print(f"{'KEY':<22} {'SOURCE':<36} {'TYPE':<11} EVERY")
    for key, cls in ADAPTER_REGISTRY.items():
        cfg = cls.config
        print(f"{key:<22} {source_name_for(key):<36} {cfg.type.value:<11} {cfg.fetch_frequency_minutes}m")


def build_pipeline(store: RedisStoryStore, args: argparse.Namespace, audit: RunAuditLogger) -> IngestionPipeline:
    generate_embeddings = settings.generate_embeddings and not args.no_embeddings and not args.fast

    embedder = EmbeddingClient() if generate_embeddings else None
    tagging_agent = TaggingAgent(embedder=embedder)

    summary_agent = None
    if (settings.enable_summaries or args.summaries) and not args.fast:
        summary_agent = SummaryAgent(LLMClient())
        logger.info("✅ SummaryAgent initialized with LLM")

    return IngestionPipeline(
        store,
        tagging_agent=tagging_agent,
        summary_agent=summary_agent,
        audit_logger=audit,
        enable_validation=not args.no_validation,
        enable_tagging=not args.no_tagging,
        generate_embeddings=generate_embeddings,
        persist_delay_seconds=0.0 if args.fast else None,
    )


async def run_ingestion(args: argparse.Namespace) -> int:
    load_dotenv()

    keys: Optional[List[str]] = None if args.target == "all" else [args.target]
    audit = RunAuditLogger("ingestion")
    audit.log_event("SYSTEM_START", "INFO", details={"target": args.target, "parallel": args.parallel})

    store = RedisStoryStore()
    await store.connect()
    pipeline = build_pipeline(store, args, audit)

    exit_code = 0
    try:
        await pipeline.register_sources(keys)
        while True:
            results = await pipeline.run_all(keys, parallel=args.parallel)
            summary = pipeline.summarize(results)
            logger.info(f"📚 Stories stored: {await store.count_stories()}")
            exit_code = 1 if summary["failed"] else 0

            if not args.loop:
                break
            logger.info(f"⏰ Next run in {args.loop}s")
            await asyncio.sleep(args.loop)
    finally:
        await store.close()
        audit.log_event("SYSTEM_STOP", "INFO")

    return exit_code


async def run_maintenance(args: argparse.Namespace) -> int:
    load_dotenv()

    audit = RunAuditLogger("maintenance")
    store = RedisStoryStore()
    await store.connect()
    try:
        if args.target == "audit":
            print_audit(await audit_metadata(store), await store.source_names())
            return 0

        summary = await backfill_embeddings(
            store,
            EmbeddingClient(),
            limit=args.limit,
            dry_run=args.dry_run,
            sleep_seconds=settings.persist_delay_seconds,
            audit_logger=audit,
        )
        print("\n" + "=" * 60)
        print("📊 BACKFILL SUMMARY")
        print("=" * 60)
        print(f"  Scanned:   {summary['scanned']} stories")
        print(f"  Missing:   {summary['missing']} embeddings")
        print(f"  Embedded:  {summary['embedded']}")
        print(f"  Failed:    {summary['failed']}")
        print(f"  Remaining: {summary['remaining']}")
        print(f"  Dry Run:   {summary['dry_run']}")
        print("=" * 60)
        return 1 if summary["failed"] else 0
    finally:
        await store.close()


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Fetch, validate, tag and store stories from registered sources"
    )
    parser.add_argument(
        "target",
        help="Adapter key, 'all', 'list', or a maintenance command: "
             "'backfill-embeddings', 'audit'"
    )
    parser.add_argument(
        "--parallel", action="store_true",
        help="Run adapters concurrently (default: sequential)"
    )
    parser.add_argument(
        "--no-embeddings", action="store_true",
        help="Skip embeddings and semantic tags"
    )
    parser.add_argument(
        "--no-tagging", action="store_true",
        help="Skip tagging"
    )
    parser.add_argument(
        "--no-validation", action="store_true",
        help="Skip the validation gate"
    )
    parser.add_argument(
        "--summaries", action="store_true",
        help="Generate TL;DR summaries with the LLM for items that have none"
    )
    parser.add_argument(
        "--fast", action="store_true",
        help="No embeddings, no summaries, no delay between writes"
    )
    parser.add_argument(
        "--loop", type=int, default=0, metavar="SECONDS",
        help="Repeat the run every SECONDS (default: run once)"
    )
    parser.add_argument(
        "--limit", type=int, default=None, metavar="N",
        help="backfill-embeddings: embed at most N stories"
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="backfill-embeddings: count stories without embeddings, call nothing"
    )

    args = parser.parse_args()

    if args.target == "list":
        list_adapters()
        return
    if args.target in MAINTENANCE_COMMANDS:
        logger.info(f"🔧 Starting maintenance: {args.target}")
        sys.exit(asyncio.run(run_maintenance(args)))
    if args.target != "all" and args.target not in adapter_keys():
        parser.error(f"unknown adapter '{args.target}' (choose from: {', '.join(adapter_keys())})")

    logger.info(f"🚀 Starting ingestion: {args.target}")
    sys.exit(asyncio.run(run_ingestion(args)))


if __name__ == "__main__":
    main()
