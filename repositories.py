"""Store interface, change feed, and the JSON-file and REST store implementations."""

import asyncio
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Protocol
from urllib.parse import unquote, urlparse

import requests

from constants import NODES_TABLE, PROJECTS_TABLE, SUBTASKS_TABLE
from data_access import TABLES, load_data, locked_data, next_id
from errors import ConfigurationError, PersistenceError

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"

# Seconds between reads of the projects table while someone is subscribed.
POLL_INTERVAL = 5.0

PROJECT_SELECT = f"*,{NODES_TABLE}(*),{SUBTASKS_TABLE}(*)"

_CLOSED = object()


@dataclass(frozen=True)
class ChangeEvent:
    """A row-level change. Consumers treat it as a bare trigger."""

    table: str
    event: str
    record_id: int | None = None


class Subscription:
    """Async iterator of change events for one table.

    The sequence is unbounded and ends only after cancel(). A cancelled
    subscription cannot be restarted; subscribe again instead.
    """

    def __init__(self, feed: "ChangeFeed", table: str):
        self.table = table
        self._feed = feed
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue = asyncio.Queue()
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def _deliver(self, item: object) -> None:
        # Publishers run in worker threads; hand the event to the subscriber's loop.
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, item)
        except RuntimeError:
            logger.warning("Dropping change event for %s: event loop is closed", self.table)

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._feed._remove(self)
        self._deliver(_CLOSED)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> ChangeEvent:
        if self._cancelled:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED or self._cancelled:
            raise StopAsyncIteration
        return item


class ChangeFeed:
    """Fan-out of change events to table subscriptions. Thread-safe."""

    def __init__(self):
        self._lock = threading.Lock()
        self._subscriptions: list[Subscription] = []

    def subscribe(self, table: str) -> Subscription:
        """Must be called from inside a running event loop."""
        sub = Subscription(self, table)
        with self._lock:
            self._subscriptions.append(sub)
        logger.debug("Subscribed to %s changes", table)
        return sub

    def publish(self, event: ChangeEvent) -> None:
        with self._lock:
            targets = [s for s in self._subscriptions if s.table == event.table]
        for sub in targets:
            sub._deliver(event)

    def close(self) -> None:
        with self._lock:
            subs = list(self._subscriptions)
        for sub in subs:
            sub.cancel()

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)


class ProjectPoller:
    """Publishes a projects UPDATE when a periodic read of the table differs from the last one.

    Writes made by other processes never pass through this client's feed; the
    poller is how subscribers hear about them. The first read only records a
    baseline. An interval of zero or less disables the background thread, but
    poll() can still be called directly.
    """

    def __init__(self, read_rows: Callable[[], list[dict]], feed: ChangeFeed, interval: float = POLL_INTERVAL):
        self.interval = interval
        self._read_rows = read_rows
        self._feed = feed
        self._snapshot: list[dict] | None = None
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self.interval <= 0 or self._thread is not None or self._stop.is_set():
            return
        self._thread = threading.Thread(target=self._run, name="project-poller", daemon=True)
        self._thread.start()

    def poll(self) -> bool:
        """Read the table once; return True if an UPDATE was published."""
        rows = self._read_rows()
        changed = self._snapshot is not None and rows != self._snapshot
        self._snapshot = rows
        if changed:
            self._feed.publish(ChangeEvent(PROJECTS_TABLE, UPDATE))
        return changed

    def stop(self) -> None:
        self._stop.set()

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.poll()
            except PersistenceError as e:
                logger.warning("Polling %s failed: %s", PROJECTS_TABLE, e)


class ProjectStore(Protocol):
    """Interface for the hosted projects/nodes/subtasks store."""

    feed: ChangeFeed

    def select_projects(self) -> list[dict]:
        """All projects ordered by position ascending, with nodes and subtasks embedded."""
        ...

    def insert(self, table: str, rows: list[dict]) -> list[dict]:
        """Insert rows and return them with store-assigned ids."""
        ...

    def update(self, table: str, values: dict, record_id: int) -> None:
        """Patch one row by id."""
        ...

    def subscribe(self, table: str) -> Subscription:
        """Notify on any change to table."""
        ...

    def close(self) -> None:
        """Release subscriptions and connections."""
        ...


# --- JSON file implementation ---


def _now() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


def _check_table(table: str) -> None:
    if table not in TABLES:
        raise PersistenceError(f'relation "{table}" does not exist')


class JsonFileProjectStore:
    """Store backed by a local JSON file. The key is accepted but not enforced."""

    def __init__(self, path: Path, key: str = "", feed: ChangeFeed | None = None, poll_interval: float = POLL_INTERVAL):
        self.path = Path(path)
        self.key = key
        self.feed = feed or ChangeFeed()
        self.poller = ProjectPoller(self._project_rows, self.feed, poll_interval)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _project_rows(self) -> list[dict]:
        return load_data(self.path)[PROJECTS_TABLE]

    def select_projects(self) -> list[dict]:
        data = load_data(self.path)
        nodes: dict[int, list[dict]] = {}
        for n in data[NODES_TABLE]:
            nodes.setdefault(n.get("project_id"), []).append(dict(n))
        subtasks: dict[int, list[dict]] = {}
        for s in data[SUBTASKS_TABLE]:
            subtasks.setdefault(s.get("project_id"), []).append(dict(s))
        projects = sorted(data[PROJECTS_TABLE], key=lambda p: p.get("position", 0))
        return [
            {**p, NODES_TABLE: nodes.get(p["id"], []), SUBTASKS_TABLE: subtasks.get(p["id"], [])}
            for p in projects
        ]

    def insert(self, table: str, rows: list[dict]) -> list[dict]:
        _check_table(table)
        inserted: list[dict] = []
        with locked_data(self.path) as data:
            if table != PROJECTS_TABLE:
                project_ids = {p["id"] for p in data[PROJECTS_TABLE]}
                missing = [r.get("project_id") for r in rows if r.get("project_id") not in project_ids]
                if missing:
                    raise PersistenceError(
                        f'insert on "{table}" violates foreign key: project {missing[0]} not found'
                    )
            for row in rows:
                record = {k: v for k, v in row.items() if k not in (NODES_TABLE, SUBTASKS_TABLE)}
                record["id"] = next_id(table, data)
                if table != NODES_TABLE:
                    record.setdefault("created_at", _now())
                data[table].append(record)
                inserted.append(dict(record))
        for record in inserted:
            self.feed.publish(ChangeEvent(table, INSERT, record["id"]))
        return inserted

    def update(self, table: str, values: dict, record_id: int) -> None:
        _check_table(table)
        changed = False
        with locked_data(self.path) as data:
            row = next((r for r in data[table] if r.get("id") == record_id), None)
            if row is not None:
                row.update({k: v for k, v in values.items() if k != "id"})
                changed = True
        if changed:
            self.feed.publish(ChangeEvent(table, UPDATE, record_id))

    def subscribe(self, table: str) -> Subscription:
        sub = self.feed.subscribe(table)
        if table == PROJECTS_TABLE:
            self.poller.start()
        return sub

    def close(self) -> None:
        self.poller.stop()
        self.feed.close()


# --- REST implementation ---


class RestProjectStore:
    """Store reached over a PostgREST-style HTTP API."""

    def __init__(
        self,
        base_url: str,
        key: str,
        feed: ChangeFeed | None = None,
        session: requests.Session | None = None,
        poll_interval: float = POLL_INTERVAL,
    ):
        self.base_url = base_url.rstrip("/")
        self.key = key
        self.feed = feed or ChangeFeed()
        self.poller = ProjectPoller(self._project_rows, self.feed, poll_interval)
        self._session = session or requests.Session()
        self._session.headers.update({
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        })

    def _request(self, method: str, table: str, params: dict | None = None, body=None, prefer: str | None = None):
        url = f"{self.base_url}/rest/v1/{table}"
        headers = {"Prefer": prefer} if prefer else None
        try:
            response = self._session.request(method, url, params=params, json=body, headers=headers)
        except requests.RequestException as e:
            logger.error("%s %s failed: %s", method, url, e)
            raise PersistenceError(f"{method} {table} failed: {e}") from e
        if not response.ok:
            raise PersistenceError(f"{method} {table} returned {response.status_code}: {response.text}")
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise PersistenceError(f"{method} {table} returned invalid JSON") from e

    def _project_rows(self) -> list[dict]:
        return self._request("GET", PROJECTS_TABLE, params={"select": "*", "order": "id.asc"}) or []

    def select_projects(self) -> list[dict]:
        rows = self._request(
            "GET",
            PROJECTS_TABLE,
            params={"select": PROJECT_SELECT, "order": "position.asc"},
        )
        return rows or []

    def insert(self, table: str, rows: list[dict]) -> list[dict]:
        inserted = self._request("POST", table, body=rows, prefer="return=representation") or []
        for record in inserted:
            self.feed.publish(ChangeEvent(table, INSERT, record.get("id")))
        return inserted

    def update(self, table: str, values: dict, record_id: int) -> None:
        self._request("PATCH", table, params={"id": f"eq.{record_id}"}, body=values)
        self.feed.publish(ChangeEvent(table, UPDATE, record_id))

    def subscribe(self, table: str) -> Subscription:
        sub = self.feed.subscribe(table)
        if table == PROJECTS_TABLE:
            self.poller.start()
        return sub

    def close(self) -> None:
        self.poller.stop()
        self.feed.close()
        self._session.close()


# --- Factory ---


def create_client(url: str, key: str, poll_interval: float = POLL_INTERVAL) -> ProjectStore:
    """Build the store for url: file:// for a local JSON file, http(s):// for a REST service."""
    if not url or not key:
        raise ConfigurationError("Missing store environment variables")
    parsed = urlparse(url)
    if parsed.scheme == "file":
        path = Path(unquote(parsed.netloc + parsed.path))
        logger.info("Using JSON file store at %s", path)
        return JsonFileProjectStore(path, key=key, poll_interval=poll_interval)
    if parsed.scheme in ("http", "https"):
        logger.info("Using REST store at %s", url)
        return RestProjectStore(url, key, poll_interval=poll_interval)
    raise ConfigurationError(f"Unsupported store URL: {url}")
