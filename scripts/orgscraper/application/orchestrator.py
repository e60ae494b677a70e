from __future__ import annotations
import logging
from datetime import datetime, time, timezone
from functools import partial

from orgscraper.domain.entities import (
    Checkpoint,
    CrawlBounds,
    Organization,
    PublicUser,
    RepoWithEvents,
)
from orgscraper.domain.errors import ResourceBlocked
from orgscraper.domain.interfaces import ICheckpointStore, IClock, IDeduplicator, IDirectoryApi
from .aggregator import aggregate_repositories
from .governor import RequestGovernor

log = logging.getLogger(__name__)

PAGE_SIZE = 100


class CrawlerOrchestrator:
    """
    Walks the search result set one week of creation dates at a time.

    All dependencies are injected; this class creates NOTHING itself:
      - IDirectoryApi    → how to talk to GitHub (always via the governor)
      - RequestGovernor  → rate-limit and retry discipline
      - ICheckpointStore → where progress is flushed after every step
      - IDeduplicator    → which logins were already handled

    GitHub search returns at most 1,000 results per query, so the query is
    narrowed to `created:<start>..<end>` windows, walked backward from today
    until the window passes the oldest matching account.
    """

    def __init__(
        self,
        api: IDirectoryApi,
        governor: RequestGovernor,
        store: ICheckpointStore,
        deduplicator: IDeduplicator,
        clock: IClock,
        base_query: str,
        per_page: int = PAGE_SIZE,
    ) -> None:
        self._api          = api
        self._governor     = governor
        self._store        = store
        self._deduplicator = deduplicator
        self._clock        = clock
        self._base_query   = base_query
        self._per_page     = per_page

    async def bootstrap(self) -> CrawlBounds | None:
        """
        Find the chronologically first matching account.

        Its creation date is the crawl's lower bound; the search's
        total_count is the denominator of the progress notices.
        Returns None when nothing matches the base query.
        """
        page = await self._governor.call(partial(
            self._api.search_users,
            self._base_query,
            sort     = "joined",
            order    = "asc",
            per_page = 1,
        ))
        if not page.logins:
            log.info("No account matches %r, nothing to crawl", self._base_query)
            return None

        oldest = await self._governor.call(partial(self._api.get_user, page.logins[0]))
        log.info(
            "Bootstrap | %d matching accounts | oldest %s created %s",
            page.total_count,
            oldest.login,
            oldest.created_at.isoformat(),
        )
        return CrawlBounds(total_count=page.total_count, oldest_created_at=oldest.created_at)

    async def run(self, checkpoint: Checkpoint) -> Checkpoint:
        """
        Drive the window loop until the window end is no longer after the
        oldest account's creation time. `checkpoint` is mutated in place and
        persisted after every change.
        """
        bounds = await self.bootstrap()

        while bounds is not None and self._window_open(checkpoint, bounds):
            window = checkpoint.window
            page   = await self._governor.call(partial(
                self._api.search_users,
                window.query(self._base_query),
                page     = checkpoint.next_page_to_scrape,
                per_page = self._per_page,
            ))

            if not page.logins:
                log.debug("Window %s..%s exhausted at page %d", window.start, window.end, checkpoint.next_page_to_scrape)
                checkpoint.advance_window()
                self._store.save(checkpoint)
                continue

            for login in self._deduplicator.filter_fresh(page.logins):
                organization = await self._enrich(login)
                if organization is None:
                    continue

                checkpoint.organizations.append(organization)
                self._store.save(checkpoint)
                self._report(checkpoint, bounds, organization)

            checkpoint.next_page_to_scrape += 1
            self._store.save(checkpoint)

        log.info(
            "[%s] Crawl finished | %d organizations recorded | %d logins seen",
            self._clock.formatted_time(),
            len(checkpoint.organizations),
            self._deduplicator.total_seen(),
        )
        return checkpoint

    @staticmethod
    def _window_open(checkpoint: Checkpoint, bounds: CrawlBounds) -> bool:
        window_end = datetime.combine(checkpoint.searching_date, time.min, tzinfo=timezone.utc)
        return window_end > bounds.oldest_created_at

    async def _enrich(self, login: str) -> Organization | None:
        """
        Fetch repositories, profile and per-repository events of one account.
        Accounts without repositories are skipped and never written.
        """
        repos = await self._governor.call(partial(self._api.list_repos, login))
        if not repos:
            log.debug("Skipping %s: no repositories", login)
            return None

        user = await self._governor.call(partial(self._api.get_user, login))

        with_events: list[RepoWithEvents] = []
        for repo in repos:
            try:
                events = await self._governor.call(partial(self._api.list_repo_events, login, repo.name))
                count  = len(events)
            except ResourceBlocked as exc:
                log.info("Events of %s/%s unavailable (%s), counting 0", login, repo.name, exc.reason)
                count = 0
            with_events.append(RepoWithEvents(repo=repo, last_90_days_events_count=count))

        return self._assemble(user, with_events)

    @staticmethod
    def _assemble(user: PublicUser, repos: list[RepoWithEvents]) -> Organization:
        totals = aggregate_repositories(repos)
        return Organization(
            login                          = user.login,
            id                             = user.id,
            avatar_url                     = user.avatar_url,
            html_url                       = user.html_url,
            name                           = user.name,
            company                        = user.company,
            blog                           = user.blog,
            location                       = user.location,
            email                          = user.email,
            hireable                       = user.hireable,
            bio                            = user.bio,
            twitter_username               = user.twitter_username,
            public_repos                   = user.public_repos,
            followers                      = user.followers,
            following                      = user.following,
            created_at                     = user.created_at,
            updated_at                     = user.updated_at,
            total_repo_stars               = totals.stars,
            total_repo_watchers            = totals.watchers,
            total_repo_forks               = totals.forks,
            total_repo_open_issues         = totals.open_issues,
            total_repo_last_90_days_events = totals.events,
        )

    def _report(self, checkpoint: Checkpoint, bounds: CrawlBounds, organization: Organization) -> None:
        log.info(
            "[%d/%d - %s] %s (%s): %d recent events | %d stars across repositories",
            len(checkpoint.organizations),
            bounds.total_count,
            self._clock.formatted_time(),
            organization.name,
            organization.login,
            organization.total_repo_last_90_days_events,
            organization.total_repo_stars,
        )
