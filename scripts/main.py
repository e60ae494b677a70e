"""
main.py — Dependency Wiring (Composition Root)
------------------------------------------------
This file has ONE job: wire all the pieces together and run the crawl.

It does NOT contain any business logic. It just:
  1. Reads configuration from the environment and the command line
  2. Creates concrete implementations of each interface
  3. Injects them into the classes that need them
  4. Calls the top-level use case (CrawlApplicationService.execute)
  5. Reports the result and exits (0 done, 1 failed, 130 stopped)

Dependency graph (what depends on what):
                         main.py  (wires everything)
                            │
              ┌─────────────┼──────────────┐
              ▼             ▼              ▼
    CrawlApplicationService │    JsonCheckpointStore
              │             │
              ▼             ▼
    CrawlerOrchestrator  GitHubClient
              │
    ┌─────────┼──────────────┐
    ▼         ▼              ▼
RequestGovernor  IDeduplicator  SystemClock
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys

import httpx

# Application layer
from orgscraper.application.crawl_service import CrawlApplicationService
from orgscraper.application.governor import RequestGovernor
from orgscraper.application.orchestrator import CrawlerOrchestrator
from orgscraper.config import CrawlerConfig

# Infrastructure layer
from orgscraper.infrastructure.clock import SystemClock
from orgscraper.infrastructure.github_client import GitHubClient
from orgscraper.infrastructure.json_storage import JsonCheckpointStore

log = logging.getLogger(__name__)

EXIT_OK        = 0
EXIT_FAILED    = 1
EXIT_CANCELLED = 130


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )
    # httpx logs every request at INFO; keep the progress notices readable
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ---------------------------------------------------------------------------
# Dependency wiring
# ---------------------------------------------------------------------------

def _install_stop_handlers(stop_event: asyncio.Event) -> None:
    """SIGINT / SIGTERM set the stop event; the crawl halts at its next suspension point."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            log.debug("Cannot install a handler for %s on this platform", sig)


async def build_and_run(config: CrawlerConfig) -> int:
    """
    Wires all dependencies together and executes the crawl use case.

    This is the Composition Root, the only place that knows which
    concrete class implements each interface.
    """
    stop_event = asyncio.Event()
    _install_stop_handlers(stop_event)

    clock = SystemClock()
    store = JsonCheckpointStore(config.result_path)

    async with httpx.AsyncClient() as client:
        github_client = GitHubClient(
            token    = config.token,
            client   = client,           # injected, GitHubClient doesn't create this
            base_url = config.api_url,
            timeout  = config.timeout,
        )
        governor = RequestGovernor(
            clock      = clock,
            retries    = config.retries,
            stop_event = stop_event,
        )

        def build_orchestrator(deduplicator):
            return CrawlerOrchestrator(
                api          = github_client,
                governor     = governor,
                store        = store,
                deduplicator = deduplicator,   # seeded from the loaded checkpoint
                clock        = clock,
                base_query   = config.base_query,
                per_page     = config.per_page,
            )

        crawl_service = CrawlApplicationService(
            build_orchestrator = build_orchestrator,
            store              = store,
            clock              = clock,
        )

        # --- Execute ---
        result = await crawl_service.execute()

    # --- Report ---
    if result.status == "success":
        log.info(
            "✅ Success | %d organizations (+%d this run) | %.0fs | %s",
            result.total_organizations,
            result.new_organizations,
            result.elapsed_secs,
            config.result_path,
        )
        return EXIT_OK

    if result.status == "cancelled":
        log.warning(
            "⏸ Stopped | %d organizations saved in %s",
            result.total_organizations,
            config.result_path,
        )
        return EXIT_CANCELLED

    log.error(
        "❌ Failed | %d organizations saved before failure | error: %s",
        result.total_organizations,
        result.error_message,
    )
    return EXIT_FAILED


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Resumable GitHub organization crawler"
    )
    parser.add_argument("--query", help="base user-search query (default: $SCRAPER_QUERY or 'type:org')")
    parser.add_argument("--output", help="checkpoint/result JSON file (default: $SCRAPER_RESULT_PATH or result.json)")
    parser.add_argument("--retries", type=int, help="retry budget for transient request errors (default: 1)")
    parser.add_argument("--log-level", default="INFO", help="logging level (default: INFO)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    _configure_logging(args.log_level)

    try:
        config = CrawlerConfig.from_env(
            base_query  = args.query,
            result_path = args.output,
            retries     = args.retries,
        )
    except ValueError as exc:
        log.error("Invalid configuration: %s (is GITHUB_TOKEN set?)", exc)
        return EXIT_FAILED

    return asyncio.run(build_and_run(config))


if __name__ == "__main__":
    sys.exit(main())
