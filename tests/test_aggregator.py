"""Tests for repository aggregation."""

from orgscraper.application.aggregator import RepoTotals, aggregate_repositories
from orgscraper.domain.entities import Repository, RepoWithEvents


def repo(stars, watchers, forks, issues, events):
    return RepoWithEvents(
        Repository(
            "r",
            stargazers_count  = stars,
            watchers_count    = watchers,
            forks_count       = forks,
            open_issues_count = issues,
        ),
        last_90_days_events_count = events,
    )


def test_sums_every_counter():
    totals = aggregate_repositories([
        repo(3, 1, 0, 4, 10),
        repo(0, 1, 2, 0, 0),
        repo(5, 1, 0, 0, 7),
    ])

    assert totals == RepoTotals(stars=8, watchers=3, forks=2, open_issues=4, events=17)


def test_missing_counters_count_as_zero():
    totals = aggregate_repositories([repo(None, None, 1, None, 2), repo(4, None, None, None, 0)])

    assert totals == RepoTotals(stars=4, watchers=0, forks=1, open_issues=0, events=2)


def test_empty_list_gives_zeros():
    assert aggregate_repositories([]) == RepoTotals(0, 0, 0, 0, 0)


def test_accepts_any_iterable():
    assert aggregate_repositories(repo(1, 1, 1, 1, 1) for _ in range(3)).events == 3
