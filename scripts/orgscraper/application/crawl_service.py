from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from orgscraper.domain.entities import Checkpoint, CrawlResult
from orgscraper.domain.errors import CrawlCancelled
from orgscraper.domain.interfaces import ICheckpointStore, IClock, IDeduplicator
from .deduplicator import InMemoryDeduplicator
from .orchestrator import CrawlerOrchestrator

log = logging.getLogger(__name__)

OrchestratorFactory = Callable[[IDeduplicator], CrawlerOrchestrator]


class CrawlApplicationService:
    """
    The top-level use case: resume from the checkpoint, crawl, report.

    Receives all dependencies via constructor injection. The orchestrator
    is built through a factory because its deduplicator must be seeded
    with the logins of the checkpoint loaded here.
    """

    def __init__(self, build_orchestrator: OrchestratorFactory, store: ICheckpointStore, clock: IClock) -> None:
        self._build_orchestrator = build_orchestrator
        self._store              = store
        self._clock              = clock

    def load_checkpoint(self) -> Checkpoint:
        checkpoint = self._store.load()
        if checkpoint is None:
            checkpoint = Checkpoint.starting_at(self._clock.today())
            log.info("Starting a new crawl from %s", checkpoint.searching_date.isoformat())
        else:
            log.info(
                "Resuming | page %d of window ending %s | %d organizations already recorded",
                checkpoint.next_page_to_scrape,
                checkpoint.searching_date.isoformat(),
                len(checkpoint.organizations),
            )
        return checkpoint

    async def execute(self) -> CrawlResult:
        """
        Run the crawl to completion (or until it is stopped or fails).
        Returns a CrawlResult describing what happened; everything recorded
        before a failure stays in the checkpoint.
        """
        started_at = datetime.now(tz=timezone.utc)
        checkpoint = self.load_checkpoint()
        before     = len(checkpoint.organizations)

        orchestrator = self._build_orchestrator(InMemoryDeduplicator(checkpoint.logins()))

        def result(status: str, error: str | None = None) -> CrawlResult:
            elapsed = (datetime.now(tz=timezone.utc) - started_at).total_seconds()
            return CrawlResult(
                status              = status,
                total_organizations = len(checkpoint.organizations),
                new_organizations   = len(checkpoint.organizations) - before,
                elapsed_secs        = elapsed,
                error_message       = error,
            )

        try:
            await orchestrator.run(checkpoint)
        except CrawlCancelled:
            log.warning("Crawl stopped; progress is saved, run again to resume")
            return result("cancelled")
        except Exception as exc:
            log.error("Crawl failed: %s", exc, exc_info=True)
            return result("failed", str(exc))

        return result("success")
