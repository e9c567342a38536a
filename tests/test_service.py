"""Unit tests for the project data access operations."""

import pytest

from dashboard_module import service
from errors import PersistenceError
from repositories import JsonFileProjectStore


class FailingNodesStore(JsonFileProjectStore):
    """Project inserts succeed, node inserts fail."""

    def insert(self, table, rows):
        if table == "nodes":
            raise PersistenceError("nodes unavailable")
        return super().insert(table, rows)


def test_fetch_all_returns_seeded_project(store):
    projects = service.fetch_all(store)
    assert [p["name"] for p in projects] == ["Seed"]


def test_fetch_all_empty_store_returns_list(tmp_path):
    assert service.fetch_all(JsonFileProjectStore(tmp_path / "empty.json")) == []


def test_fetch_all_propagates_persistence_error(data_file):
    data_file.write_text("{ broken")
    with pytest.raises(PersistenceError):
        service.fetch_all(JsonFileProjectStore(data_file))


@pytest.mark.parametrize("name", ["Demo", "x", "Ünïcode ✓", "  padded  "])
def test_create_project_adds_planning_project_with_default_nodes(store, name):
    before = service.fetch_all(store)
    created = service.create_project(store, name)

    assert created["name"] == name
    assert created["column_type"] == "planning"
    assert created["position"] == 999
    assert "nodes" not in created

    after = service.fetch_all(store)
    assert len(after) == len(before) + 1
    new = next(p for p in after if p["id"] == created["id"])
    assert new["column_type"] == "planning"
    assert sorted((n["node_type"], n["value"], n["icon"]) for n in new["nodes"]) == [
        ("status", "planning", "📊"),
        ("time", "0h", "⏰"),
        ("type", "personal", "🏷️"),
    ]


def test_create_project_node_failure_leaves_project_without_nodes(data_file):
    store = FailingNodesStore(data_file)
    with pytest.raises(PersistenceError):
        service.create_project(store, "Orphan")
    orphan = next(p for p in service.fetch_all(store) if p["name"] == "Orphan")
    assert orphan["nodes"] == []


@pytest.mark.parametrize(
    "source,target",
    [("planning", "progress"), ("progress", "planning"), ("progress", "completed"), ("completed", "progress")],
)
def test_update_column_changes_only_column(store, source, target):
    service.update_column(store, 1, source)
    before = service.fetch_all(store)[0]
    service.update_column(store, 1, target)
    after = service.fetch_all(store)[0]
    assert after["column_type"] == target
    assert {k: v for k, v in after.items() if k != "column_type"} == {
        k: v for k, v in before.items() if k != "column_type"
    }


def test_update_column_passes_unknown_values_through(store):
    service.update_column(store, 1, "archived")
    assert service.fetch_all(store)[0]["column_type"] == "archived"


def test_create_subtask_appends_to_project(store):
    subtask = service.create_subtask(store, 1, "Write docs")
    assert subtask["text"] == "Write docs"
    assert subtask["project_id"] == 1
    assert subtask["position"] == 999
    assert [s["text"] for s in service.fetch_all(store)[0]["subtasks"]] == ["Write docs"]


def test_create_subtask_for_missing_project_fails(store):
    with pytest.raises(PersistenceError):
        service.create_subtask(store, 404, "Nowhere")
