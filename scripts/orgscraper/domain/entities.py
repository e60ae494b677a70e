from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Generic, Mapping, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Repository:
    """
    A repository owned by an organization, reduced to the counters we sum.

    GitHub occasionally omits counters, so every one of them is optional.
    """
    name:              str
    stargazers_count:  int | None = None
    watchers_count:    int | None = None
    forks_count:       int | None = None
    open_issues_count: int | None = None


@dataclass(frozen=True)
class RepoWithEvents:
    """A repository plus the number of recent activity events it has."""
    repo:                      Repository
    last_90_days_events_count: int = 0


@dataclass(frozen=True)
class PublicUser:
    """
    Immutable profile as returned by GET /users/{username}.

    Field names are OURS (snake_case). The translation from GitHub's JSON
    happens in the infrastructure layer.
    """
    login:            str
    id:               int
    avatar_url:       str | None
    html_url:         str | None
    name:             str | None
    company:          str | None
    blog:             str | None
    location:         str | None
    email:            str | None
    hireable:         bool | None
    bio:              str | None
    twitter_username: str | None
    public_repos:     int
    followers:        int
    following:        int
    created_at:       datetime
    updated_at:       datetime | None


@dataclass(frozen=True)
class Organization:
    """
    Immutable enriched record: a profile plus the totals aggregated from
    the organization's repositories. Never updated once recorded.
    """
    login:                          str
    id:                             int
    avatar_url:                     str | None
    html_url:                       str | None
    name:                           str | None
    company:                        str | None
    blog:                           str | None
    location:                       str | None
    email:                          str | None
    hireable:                       bool | None
    bio:                            str | None
    twitter_username:               str | None
    public_repos:                   int
    followers:                      int
    following:                      int
    created_at:                     datetime
    updated_at:                     datetime | None
    total_repo_stars:               int = 0
    total_repo_watchers:            int = 0
    total_repo_forks:               int = 0
    total_repo_open_issues:         int = 0
    total_repo_last_90_days_events: int = 0


@dataclass(frozen=True)
class SearchPage:
    """One page of GET /search/users: the overall match count and the logins."""
    total_count: int
    logins:      list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ApiResponse(Generic[T]):
    """
    Payload of a remote call together with its (lower-cased) headers.
    The headers carry the rate-limit metadata the governor reads.
    """
    data:    T
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class DateWindow:
    """
    A week of account creation dates used to split a search that would
    otherwise hit GitHub's 1,000-result cap. GitHub treats `start..end` as
    inclusive on both ends, so consecutive windows share their boundary day;
    accounts created that day come back twice and login dedup drops the repeat.
    """
    start: date
    end:   date

    @classmethod
    def ending_at(cls, end: date) -> DateWindow:
        return cls(start=end - timedelta(weeks=1), end=end)

    def previous(self) -> DateWindow:
        return DateWindow.ending_at(self.start)

    def query(self, base_query: str) -> str:
        return f"{base_query} created:{self.start.isoformat()}..{self.end.isoformat()}".strip()


@dataclass
class Checkpoint:
    """
    The persisted crawl position (page cursor + window end date) and every
    organization recorded so far.

    The cursor and date always describe the window the NEXT page fetch
    will be issued from.
    """
    next_page_to_scrape: int
    searching_date:      date
    organizations:       list[Organization] = field(default_factory=list)

    @classmethod
    def starting_at(cls, today: date) -> Checkpoint:
        return cls(next_page_to_scrape=1, searching_date=today, organizations=[])

    @property
    def window(self) -> DateWindow:
        return DateWindow.ending_at(self.searching_date)

    def advance_window(self) -> None:
        """Move one week back in time and restart at the first page."""
        self.searching_date = self.window.previous().end
        self.next_page_to_scrape = 1

    def logins(self) -> list[str]:
        return [o.login for o in self.organizations]


@dataclass(frozen=True)
class CrawlBounds:
    """Computed once at startup: how many accounts match and how old the oldest is."""
    total_count:       int
    oldest_created_at: datetime


@dataclass(frozen=True)
class CrawlResult:
    """
    Immutable value object summarising a crawl run.
    Returned by the application service when crawling stops.
    """
    status:              str
    total_organizations: int
    new_organizations:   int
    elapsed_secs:        float
    error_message:       str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

