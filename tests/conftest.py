"""Shared pytest fixtures for dashboard tests."""

import json

import pytest
from fastapi.testclient import TestClient

from repositories import JsonFileProjectStore

SEED_DATA = {
    "projects": [
        {"id": 1, "name": "Seed", "column_type": "planning", "position": 1, "created_at": "2026-01-01T00:00:00+00:00"},
    ],
    "nodes": [
        {"id": 1, "project_id": 1, "node_type": "time", "value": "0h", "icon": "⏰"},
        {"id": 2, "project_id": 1, "node_type": "type", "value": "personal", "icon": "🏷️"},
        {"id": 3, "project_id": 1, "node_type": "status", "value": "planning", "icon": "📊"},
    ],
    "subtasks": [],
}


@pytest.fixture
def data_file(tmp_path):
    """Temp data.json seeded with one planning project."""
    path = tmp_path / "data.json"
    path.write_text(json.dumps(SEED_DATA, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def store(data_file):
    return JsonFileProjectStore(data_file, key="test-anon-key", poll_interval=0)


@pytest.fixture
def store_env(data_file, monkeypatch):
    """Point the app at the temp store."""
    monkeypatch.setenv("DASH_STORE_URL", data_file.as_uri())
    monkeypatch.setenv("DASH_STORE_ANON_KEY", "test-anon-key")
    monkeypatch.setenv("DASH_STORE_POLL_SECONDS", "0")
    return data_file


@pytest.fixture
def client(store_env):
    from main import app

    with TestClient(app) as test_client:
        yield test_client
