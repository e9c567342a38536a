"""Per-session dashboard state: loaded projects, current view, expanded cards."""

import asyncio
import contextlib
import logging
from typing import Awaitable, Callable

from constants import COLUMNS, NODES, PROJECTS_TABLE, TRANSITION_LABELS, TRANSITIONS, VIEWS
from dashboard_module import service
from errors import PersistenceError
from repositories import ProjectStore, Subscription

logger = logging.getLogger(__name__)

LOAD_ERROR = "Failed to load. Check your store connection."
CREATE_PROJECT_FAILED = "Failed to create project"
MOVE_PROJECT_FAILED = "Failed to move project"
ADD_SUBTASK_FAILED = "Failed to add subtask"

ChangeCallback = Callable[["DashboardState"], Awaitable[None]]


def _is_blank(value: str | None) -> bool:
    return not value or not value.strip()


class DashboardState:
    """
    State behind one mounted dashboard.

    Every mutation is followed by a full reload, and so is every change
    notification, so duplicate or out-of-order notifications converge on the
    same project list.
    """

    def __init__(self, client: ProjectStore, on_change: ChangeCallback | None = None):
        self.client = client
        self.on_change = on_change
        self.projects: list[dict] = []
        self.active_view = NODES
        self.expanded: set[int] = set()
        self.loading = True
        self.error: str | None = None
        self.alerts: list[str] = []
        self._subscription: Subscription | None = None
        self._listener: asyncio.Task | None = None

    # -------------------- lifecycle --------------------

    async def mount(self) -> None:
        """Subscribe to project changes and load the board."""
        self._subscription = self.client.subscribe(PROJECTS_TABLE)
        self._listener = asyncio.create_task(self._listen(self._subscription))
        await self.load()

    async def unmount(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
        if self._listener is not None:
            self._listener.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._listener
            self._listener = None

    async def _listen(self, subscription: Subscription) -> None:
        try:
            async for _event in subscription:
                await self.handle_change()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Dashboard change listener stopped")

    async def handle_change(self) -> None:
        """React to a change notification: reload, then tell the view."""
        await self.load()
        if self.on_change is not None:
            await self.on_change(self)

    async def load(self) -> None:
        try:
            projects = await asyncio.to_thread(service.fetch_all, self.client)
        except PersistenceError as e:
            logger.warning("Failed to load projects: %s", e)
            self.error = LOAD_ERROR
        else:
            self.projects = projects
            self.error = None
        finally:
            self.loading = False

    # -------------------- ui-only state --------------------

    def set_view(self, view: str) -> None:
        if view not in VIEWS:
            raise ValueError(f"Unknown view: {view}")
        self.active_view = view

    def toggle(self, project_id: int) -> None:
        if project_id in self.expanded:
            self.expanded.discard(project_id)
        else:
            self.expanded.add(project_id)

    def is_expanded(self, project_id: int) -> bool:
        return project_id in self.expanded

    def pop_alerts(self) -> list[str]:
        alerts, self.alerts = self.alerts, []
        return alerts

    # -------------------- mutations --------------------

    async def add_project(self, name: str | None) -> bool:
        """Create a project. Blank names are ignored."""
        if _is_blank(name):
            return False
        try:
            await asyncio.to_thread(service.create_project, self.client, name)
        except PersistenceError as e:
            logger.warning("Create project failed: %s", e)
            self.alerts.append(CREATE_PROJECT_FAILED)
            return False
        await self.load()
        return True

    async def move_project(self, project_id: int, new_column: str) -> bool:
        try:
            await asyncio.to_thread(service.update_column, self.client, project_id, new_column)
        except PersistenceError as e:
            logger.warning("Move project %s failed: %s", project_id, e)
            self.alerts.append(MOVE_PROJECT_FAILED)
            return False
        await self.load()
        return True

    async def add_subtask(self, project_id: int, text: str | None) -> bool:
        """Create a subtask. Blank text is ignored."""
        if _is_blank(text):
            return False
        try:
            await asyncio.to_thread(service.create_subtask, self.client, project_id, text)
        except PersistenceError as e:
            logger.warning("Add subtask to %s failed: %s", project_id, e)
            self.alerts.append(ADD_SUBTASK_FAILED)
            return False
        await self.load()
        return True

    async def transition(self, project_id: int, action: str) -> bool:
        """Apply a board action (advance, retreat, complete, reopen) to a project."""
        if action not in TRANSITIONS:
            raise ValueError(f"Unknown action: {action}")
        project = self.get_project(project_id)
        if project is None:
            raise ValueError(f"Unknown project: {project_id}")
        source, target = TRANSITIONS[action]
        if project.get("column_type") != source:
            raise ValueError(f"Cannot {action} a project in {project.get('column_type')}")
        return await self.move_project(project_id, target)

    # -------------------- queries for rendering --------------------

    def get_project(self, project_id: int) -> dict | None:
        return next((p for p in self.projects if p.get("id") == project_id), None)

    def columns(self) -> dict[str, list[dict]]:
        """Projects per column, in collection order."""
        board: dict[str, list[dict]] = {column: [] for column in COLUMNS}
        for project in self.projects:
            column = project.get("column_type")
            if column in board:
                board[column].append(project)
        return board


def node_for(project: dict, node_type: str) -> dict | None:
    """First node of node_type on a project."""
    return next((n for n in project.get("nodes") or [] if n.get("node_type") == node_type), None)


def actions_for(project: dict) -> list[tuple[str, str]]:
    """(action, label) pairs allowed from the project's current column."""
    column = project.get("column_type")
    return [
        (action, TRANSITION_LABELS[action])
        for action, (source, _target) in TRANSITIONS.items()
        if source == column
    ]
