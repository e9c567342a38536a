"""JSON table file backing the local store."""

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from filelock import FileLock

from constants import NODES_TABLE, PROJECTS_TABLE, SUBTASKS_TABLE
from errors import PersistenceError

TABLES = (PROJECTS_TABLE, NODES_TABLE, SUBTASKS_TABLE)

logger = logging.getLogger(__name__)


def default_data() -> dict:
    return {table: [] for table in TABLES}


def _normalize_data(data: dict) -> dict:
    """Ensure every table key exists in data dict."""
    for table in TABLES:
        if table not in data:
            data[table] = []
    return data


def _lock_for(path: Path) -> FileLock:
    return FileLock(str(path.with_suffix(".lock")))


def _read_data(path: Path) -> dict:
    """Read path without locking. Missing file means an empty store."""
    if not path.exists():
        return default_data()
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error("Corrupt data file %s: %s", path, e)
        raise PersistenceError(f"Corrupt data file {path.name}") from e
    except OSError as e:
        logger.error("Failed to read data file %s: %s", path, e)
        raise PersistenceError(f"Failed to read {path.name}") from e
    if not isinstance(data, dict):
        raise PersistenceError(f"Unexpected layout in {path.name}")
    return _normalize_data(data)


def _write_data(path: Path, data: dict) -> None:
    """Write data to path. Caller must hold the lock."""
    tmp = path.with_suffix(".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        tmp.replace(path)
    except OSError as e:
        logger.error("Failed to save data file %s: %s", path, e)
        raise PersistenceError(f"Failed to write {path.name}") from e


def load_data(path: Path) -> dict:
    with _lock_for(path):
        return _read_data(path)


def save_data(path: Path, data: dict) -> None:
    with _lock_for(path):
        _write_data(path, data)


@contextmanager
def locked_data(path: Path) -> Iterator[dict]:
    """Read-modify-write under one lock; the data is saved when the block exits cleanly."""
    with _lock_for(path):
        data = _read_data(path)
        yield data
        _write_data(path, data)


def next_id(container_key: str, data: dict) -> int:
    items = data.get(container_key, [])
    if not items:
        return 1
    ids: list[int] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            i = item.get("id")
            if i is not None:
                ids.append(int(i))
        except (TypeError, ValueError):
            continue
    return max(ids, default=0) + 1
