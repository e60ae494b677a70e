"""In-memory fakes for the crawler's collaborators: API, checkpoint store, clock."""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

import pytest

from orgscraper.domain.entities import ApiResponse, Checkpoint, PublicUser, Repository, SearchPage
from orgscraper.domain.errors import ApiError
from orgscraper.domain.interfaces import ICheckpointStore, IClock, IDirectoryApi

TODAY = date(2024, 3, 1)

_CREATED = re.compile(r"created:(\d{4}-\d{2}-\d{2})\.\.(\d{4}-\d{2}-\d{2})")


def utc(year, month, day, hour=0):
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


def make_user(login: str, created_at: datetime, **extra) -> PublicUser:
    values = dict(
        login            = login,
        id               = sum(map(ord, login)),
        avatar_url       = f"https://avatars.example/{login}",
        html_url         = f"https://github.com/{login}",
        name             = login.title(),
        company          = None,
        blog             = "",
        location         = None,
        email            = None,
        hireable         = None,
        bio              = None,
        twitter_username = None,
        public_repos     = 1,
        followers        = 0,
        following        = 0,
        created_at       = created_at,
        updated_at       = created_at,
    )
    values.update(extra)
    return PublicUser(**values)


def blocked_error() -> ApiError:
    return ApiError(
        451,
        "Repository access blocked",
        payload={"message": "Repository access blocked", "block": {"reason": "tos"}},
    )


@dataclass
class FakeAccount:
    login:          str
    created_at:     datetime
    repos:          list[Repository] = field(default_factory=list)
    events:         dict[str, int] = field(default_factory=dict)
    blocked:        set[str] = field(default_factory=set)
    failing_events: set[str] = field(default_factory=set)


class FakeDirectoryApi(IDirectoryApi):
    """
    Serves a fixed set of accounts. `created:a..b` in a query filters by
    creation date (both ends inclusive, as GitHub does); results are
    ordered by join time.
    """

    def __init__(self, accounts=(), failing_profiles=(), blocked_calls=()) -> None:
        self.accounts         = {a.login: a for a in accounts}
        self.failing_profiles = set(failing_profiles)
        self.blocked_calls    = set(blocked_calls)
        self.calls: list[tuple] = []

    def _matching(self, query: str) -> list[FakeAccount]:
        matches = list(self.accounts.values())
        window = _CREATED.search(query)
        if window:
            start, end = (date.fromisoformat(d) for d in window.groups())
            matches = [a for a in matches if start <= a.created_at.date() <= end]
        return sorted(matches, key=lambda a: a.created_at)

    async def search_users(self, query, *, sort=None, order=None, page=1, per_page=100):
        self.calls.append(("search", query, page))
        matches = self._matching(query)
        chunk   = matches[(page - 1) * per_page: page * per_page]
        return ApiResponse(SearchPage(total_count=len(matches), logins=[a.login for a in chunk]))

    async def get_user(self, login):
        self.calls.append(("user", login))
        self._raise_if_blocked("user", login)
        if login in self.failing_profiles:
            raise ApiError(500, "Server Error")
        return ApiResponse(make_user(login, self.accounts[login].created_at))

    async def list_repos(self, login):
        self.calls.append(("repos", login))
        self._raise_if_blocked("repos", login)
        return ApiResponse(list(self.accounts[login].repos))

    async def list_repo_events(self, owner, repo):
        self.calls.append(("events", owner, repo))
        account = self.accounts[owner]
        if repo in account.blocked:
            raise blocked_error()
        if repo in account.failing_events:
            raise ApiError(502, "Bad Gateway")
        return ApiResponse([{"type": "PushEvent"}] * account.events.get(repo, 0))

    def _raise_if_blocked(self, *call) -> None:
        if call in self.blocked_calls:
            raise blocked_error()

    def called(self, kind: str, *args) -> bool:
        return (kind, *args) in self.calls


class MemoryCheckpointStore(ICheckpointStore):
    """Keeps a snapshot of every save so tests can replay the crawl's progress."""

    def __init__(self, initial: Checkpoint | None = None) -> None:
        self._initial = copy.deepcopy(initial)
        self.saved: list[Checkpoint] = []

    def load(self):
        if self.saved:
            return copy.deepcopy(self.saved[-1])
        return copy.deepcopy(self._initial)

    def save(self, checkpoint):
        self.saved.append(copy.deepcopy(checkpoint))


class FakeClock(IClock):
    """Time only moves when something sleeps."""

    def __init__(self, now: float = 1_000.0, today: date = TODAY) -> None:
        self.now    = now
        self._today = today
        self.sleeps: list[float] = []

    def time(self):
        return self.now

    def today(self):
        return self._today

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds

    def formatted_time(self, epoch=None):
        return f"t={self.now if epoch is None else epoch:.0f}"


def standard_accounts() -> list[FakeAccount]:
    """
    alpha   : three repositories, the aggregation example
    bravo   : created on a window boundary, so two windows return it
    charlie : no repositories
    delta   : the oldest account
    """
    return [
        FakeAccount(
            "alpha",
            utc(2024, 2, 27, 10),
            repos=[
                Repository("a1", stargazers_count=3, watchers_count=1, forks_count=0, open_issues_count=4),
                Repository("a2", stargazers_count=0, watchers_count=1, forks_count=2, open_issues_count=0),
                Repository("a3", stargazers_count=5, watchers_count=1, forks_count=0, open_issues_count=0),
            ],
            events={"a1": 10, "a3": 7},
        ),
        FakeAccount(
            "bravo",
            utc(2024, 2, 23, 12),
            repos=[Repository("b1", stargazers_count=1, watchers_count=1, forks_count=1, open_issues_count=1)],
            events={"b1": 2},
        ),
        FakeAccount("charlie", utc(2024, 2, 10, 8)),
        FakeAccount(
            "delta",
            utc(2024, 1, 20),
            repos=[Repository("d1")],
        ),
    ]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return MemoryCheckpointStore()


@pytest.fixture
def api():
    return FakeDirectoryApi(standard_accounts())
