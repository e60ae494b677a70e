"""Tests for the JSON checkpoint file."""

import json
from datetime import date

import pytest

from conftest import make_user, utc
from orgscraper.application.orchestrator import CrawlerOrchestrator
from orgscraper.domain.entities import Checkpoint, Repository, RepoWithEvents
from orgscraper.infrastructure.json_storage import JsonCheckpointStore


def sample_checkpoint():
    org = CrawlerOrchestrator._assemble(
        make_user("octo-org", utc(2015, 5, 4, 12)),
        [RepoWithEvents(Repository("r", stargazers_count=8, watchers_count=3), last_90_days_events_count=17)],
    )
    return Checkpoint(next_page_to_scrape=4, searching_date=date(2024, 2, 23), organizations=[org])


def test_missing_file_loads_nothing(tmp_path):
    assert JsonCheckpointStore(tmp_path / "result.json").load() is None


def test_unreadable_file_loads_nothing(tmp_path):
    path = tmp_path / "result.json"
    path.write_text("{not json", encoding="utf-8")
    assert JsonCheckpointStore(path).load() is None


def test_incomplete_document_loads_nothing(tmp_path):
    path = tmp_path / "result.json"
    path.write_text(json.dumps({"organizations": []}), encoding="utf-8")
    assert JsonCheckpointStore(path).load() is None


def test_document_layout(tmp_path):
    path = tmp_path / "nested" / "result.json"
    JsonCheckpointStore(path).save(sample_checkpoint())

    doc = json.loads(path.read_text(encoding="utf-8"))
    assert set(doc) == {"nextPageToScrape", "searchingDate", "organizations"}
    assert doc["nextPageToScrape"] == 4
    assert doc["searchingDate"] == "2024-02-23"

    [org] = doc["organizations"]
    assert org["login"] == "octo-org"
    assert org["htmlUrl"] == "https://github.com/octo-org"
    assert org["createdAt"] == "2015-05-04T12:00:00Z"
    assert org["totalRepoStars"] == 8
    assert org["totalRepoWatchers"] == 3
    assert org["totalRepoLast90DaysEvents"] == 17
    assert not (path.parent / "result.json.tmp").exists()


def test_saved_checkpoint_loads_back(tmp_path):
    store    = JsonCheckpointStore(tmp_path / "result.json")
    original = sample_checkpoint()

    store.save(original)

    assert store.load() == original


def test_save_overwrites_whole_document(tmp_path):
    store = JsonCheckpointStore(tmp_path / "result.json")
    store.save(sample_checkpoint())

    store.save(Checkpoint.starting_at(date(2024, 3, 1)))

    loaded = store.load()
    assert loaded.organizations == []
    assert loaded.next_page_to_scrape == 1


def test_missing_counters_load_as_zero(tmp_path):
    path = tmp_path / "result.json"
    path.write_text(json.dumps({
        "nextPageToScrape": 1,
        "searchingDate": "2024-03-01",
        "organizations": [{"login": "old", "id": 1, "createdAt": "2010-01-01T00:00:00Z"}],
    }), encoding="utf-8")

    [org] = JsonCheckpointStore(path).load().organizations
    assert org.total_repo_stars == 0
    assert org.followers == 0
    assert org.updated_at is None


def write_checkpoint(path, page=1, organizations=()):
    path.write_text(json.dumps({
        "nextPageToScrape": page,
        "searchingDate":    "2024-03-01",
        "organizations":    list(organizations),
    }), encoding="utf-8")


@pytest.mark.parametrize("page", [0, -3])
def test_page_cursor_below_one_loads_nothing(tmp_path, page):
    path = tmp_path / "result.json"
    write_checkpoint(path, page=page)
    assert JsonCheckpointStore(path).load() is None


@pytest.mark.parametrize("org", [
    {"id": 1, "createdAt": "2010-01-01T00:00:00Z"},
    {"login": "", "id": 1},
    {"login": "nameless-id"},
])
def test_organization_without_identity_loads_nothing(tmp_path, org):
    path = tmp_path / "result.json"
    write_checkpoint(path, organizations=[org])
    assert JsonCheckpointStore(path).load() is None
