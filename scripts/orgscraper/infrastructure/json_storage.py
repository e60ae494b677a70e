from __future__ import annotations
import json
import logging
import os
from datetime import date, datetime
from pathlib import Path
from typing import Any

from orgscraper.domain.entities import Checkpoint, Organization
from orgscraper.domain.interfaces import ICheckpointStore

log = logging.getLogger(__name__)

# Our field name → key in the persisted document
ORGANIZATION_KEYS = {
    "login":                          "login",
    "id":                             "id",
    "avatar_url":                     "avatarUrl",
    "html_url":                       "htmlUrl",
    "name":                           "name",
    "company":                        "company",
    "blog":                           "blog",
    "location":                       "location",
    "email":                          "email",
    "hireable":                       "hireable",
    "bio":                            "bio",
    "twitter_username":               "twitterUsername",
    "public_repos":                   "publicRepos",
    "followers":                      "followers",
    "following":                      "following",
    "created_at":                     "createdAt",
    "updated_at":                     "updatedAt",
    "total_repo_stars":               "totalRepoStars",
    "total_repo_watchers":            "totalRepoWatchers",
    "total_repo_forks":               "totalRepoForks",
    "total_repo_open_issues":         "totalRepoOpenIssues",
    "total_repo_last_90_days_events": "totalRepoLast90DaysEvents",
}
DATETIME_FIELDS = ("created_at", "updated_at")
COUNTER_FIELDS  = tuple(a for a in ORGANIZATION_KEYS if a in ("public_repos", "followers", "following") or a.startswith("total_"))


def _format_datetime(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat().replace("+00:00", "Z")


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def organization_to_json(org: Organization) -> dict[str, Any]:
    doc = {}
    for attr, key in ORGANIZATION_KEYS.items():
        value = getattr(org, attr)
        doc[key] = _format_datetime(value) if attr in DATETIME_FIELDS else value
    return doc


def organization_from_json(doc: dict[str, Any]) -> Organization:
    if not doc.get("login") or doc.get("id") is None:
        raise ValueError(f"organization without login or id: {doc!r}")
    values = {}
    for attr, key in ORGANIZATION_KEYS.items():
        value = doc.get(key)
        values[attr] = _parse_datetime(value) if attr in DATETIME_FIELDS else value
    for attr in COUNTER_FIELDS:
        values[attr] = values[attr] or 0
    return Organization(**values)


def checkpoint_to_json(checkpoint: Checkpoint) -> dict[str, Any]:
    return {
        "nextPageToScrape": checkpoint.next_page_to_scrape,
        "searchingDate":    checkpoint.searching_date.isoformat(),
        "organizations":    [organization_to_json(o) for o in checkpoint.organizations],
    }


def checkpoint_from_json(doc: dict[str, Any]) -> Checkpoint:
    """Raises ValueError for a document the crawler cannot resume from."""
    page = int(doc["nextPageToScrape"])
    if page < 1:
        raise ValueError(f"nextPageToScrape must be >= 1, got {page}")
    return Checkpoint(
        next_page_to_scrape = page,
        searching_date      = date.fromisoformat(doc["searchingDate"]),
        organizations       = [organization_from_json(o) for o in doc.get("organizations", [])],
    )


class JsonCheckpointStore(ICheckpointStore):
    """
    Concrete implementation of ICheckpointStore backed by one JSON file.

    Every save rewrites the whole document through a temporary file and
    os.replace, so an interrupted write never leaves a truncated checkpoint.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    def load(self) -> Checkpoint | None:
        if not self._path.exists():
            log.debug("No checkpoint at %s", self._path)
            return None
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                return checkpoint_from_json(json.load(f))
        except (OSError, ValueError, KeyError, TypeError) as exc:
            log.warning("Ignoring unreadable checkpoint %s: %s", self._path, exc)
            return None

    def save(self, checkpoint: Checkpoint) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(self._path.name + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(checkpoint_to_json(checkpoint), f, ensure_ascii=False, indent=2)
            f.write("\n")
        os.replace(tmp, self._path)
        log.debug(
            "Saved checkpoint | page %d | %s | %d organizations",
            checkpoint.next_page_to_scrape,
            checkpoint.searching_date.isoformat(),
            len(checkpoint.organizations),
        )
