from __future__ import annotations
from typing import Iterable
from orgscraper.domain.interfaces import IDeduplicator


class InMemoryDeduplicator(IDeduplicator):
    """
    In-memory deduplication using a set of seen logins.

    Seeded with the logins already stored in the checkpoint, so a resumed
    crawl never enriches the same organization twice.
    """

    def __init__(self, seen: Iterable[str] = ()) -> None:
        self._seen: set[str] = set(seen)

    def filter_fresh(self, logins: Iterable[str]) -> list[str]:
        fresh: list[str] = []
        for login in logins:
            if login in self._seen:
                continue
            self._seen.add(login)
            fresh.append(login)
        return fresh

    def total_seen(self) -> int:
        return len(self._seen)
