"""
Domain Layer — Interfaces (Abstract Contracts)
-----------------------------------------------
The application layer (governor, orchestrator, crawl service) depends on
these abstractions only. The infrastructure layer provides the concrete
GitHub client, JSON checkpoint file and system clock.

In tests the same contracts are fulfilled by in-memory fakes, so the whole
crawl state machine runs without network, disk or real sleeping.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Iterable

from .entities import ApiResponse, Checkpoint, PublicUser, Repository, SearchPage


class IDirectoryApi(ABC):
    """
    Contract for the remote account directory (GitHub's REST API).

    Every method performs exactly ONE request and returns the payload
    together with the response headers. Non-2xx responses must raise
    `ApiError`, carrying the same headers.
    """

    @abstractmethod
    async def search_users(
        self,
        query: str,
        *,
        sort: str | None = None,
        order: str | None = None,
        page: int = 1,
        per_page: int = 100,
    ) -> ApiResponse[SearchPage]:
        """One page of account search results."""
        ...

    @abstractmethod
    async def get_user(self, login: str) -> ApiResponse[PublicUser]:
        """Full public profile of one account."""
        ...

    @abstractmethod
    async def list_repos(self, login: str) -> ApiResponse[list[Repository]]:
        """Repositories owned by an account."""
        ...

    @abstractmethod
    async def list_repo_events(self, owner: str, repo: str) -> ApiResponse[list[dict[str, Any]]]:
        """Recent activity events of one repository."""
        ...


class ICheckpointStore(ABC):
    """
    Contract for the single persisted crawl document.
    Saves are whole-document overwrites, never incremental patches.
    """

    @abstractmethod
    def load(self) -> Checkpoint | None:
        """Return the saved checkpoint, or None when there is nothing usable."""
        ...

    @abstractmethod
    def save(self, checkpoint: Checkpoint) -> None:
        """Persist the checkpoint before returning."""
        ...


class IClock(ABC):
    """Wall clock and sleeping, injected so rate-limit waits can be simulated."""

    @abstractmethod
    def time(self) -> float:
        """Current time in epoch seconds."""
        ...

    @abstractmethod
    def today(self) -> date:
        ...

    @abstractmethod
    async def sleep(self, seconds: float) -> None:
        ...

    @abstractmethod
    def formatted_time(self, epoch: float | None = None) -> str:
        """HH:MM:SS of `epoch` (default: now) for progress notices."""
        ...


class IDeduplicator(ABC):
    """
    Contract for the deduplication service.
    Separated from the orchestrator so each class has one job.
    """

    @abstractmethod
    def filter_fresh(self, logins: Iterable[str]) -> list[str]:
        """Return only logins not seen before, in order. Remembers what it has seen."""
        ...

    @abstractmethod
    def total_seen(self) -> int:
        """Return how many unique logins have been seen so far."""
        ...
