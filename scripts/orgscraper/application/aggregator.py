from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable

from orgscraper.domain.entities import RepoWithEvents


@dataclass(frozen=True)
class RepoTotals:
    """The five counters summed over an organization's repositories."""
    stars:       int = 0
    watchers:    int = 0
    forks:       int = 0
    open_issues: int = 0
    events:      int = 0


def aggregate_repositories(repos: Iterable[RepoWithEvents]) -> RepoTotals:
    """
    Sum stars, watchers, forks, open issues and recent events.

    Counters GitHub left out count as 0. An empty input gives all zeros.
    """
    stars = watchers = forks = open_issues = events = 0

    for item in repos:
        repo = item.repo
        stars       += repo.stargazers_count or 0
        watchers    += repo.watchers_count or 0
        forks       += repo.forks_count or 0
        open_issues += repo.open_issues_count or 0
        events      += item.last_90_days_events_count

    return RepoTotals(
        stars       = stars,
        watchers    = watchers,
        forks       = forks,
        open_issues = open_issues,
        events      = events,
    )
