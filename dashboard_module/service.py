"""Project data access: fetch the board, create projects and subtasks, move projects."""

import logging

from constants import DEFAULT_NODES, NODES_TABLE, PLANNING, PROJECTS_TABLE, SENTINEL_POSITION, SUBTASKS_TABLE
from errors import PersistenceError
from repositories import ProjectStore

logger = logging.getLogger(__name__)


def fetch_all(client: ProjectStore) -> list[dict]:
    """All projects ordered by position, each with nested nodes and subtasks. Never None."""
    return client.select_projects() or []


def create_project(client: ProjectStore, name: str) -> dict:
    """
    Insert a planning project at the sentinel position, then its three default nodes.
    The two inserts are separate calls: if the node insert fails the project stays
    behind without nodes. Returns the project row without nested children.
    """
    rows = client.insert(
        PROJECTS_TABLE,
        [{"name": name, "column_type": PLANNING, "position": SENTINEL_POSITION}],
    )
    if not rows:
        raise PersistenceError("Project insert returned no row")
    project = rows[0]
    try:
        client.insert(NODES_TABLE, [{"project_id": project["id"], **node} for node in DEFAULT_NODES])
    except PersistenceError:
        logger.warning("Project %s was created without its default nodes", project["id"])
        raise
    return project


def update_column(client: ProjectStore, project_id: int, new_column: str) -> None:
    """Set a project's column. The value is passed through as given."""
    client.update(PROJECTS_TABLE, {"column_type": new_column}, project_id)


def create_subtask(client: ProjectStore, project_id: int, text: str) -> dict:
    """Append a subtask to a project at the sentinel position."""
    rows = client.insert(
        SUBTASKS_TABLE,
        [{"project_id": project_id, "text": text, "position": SENTINEL_POSITION}],
    )
    if not rows:
        raise PersistenceError("Subtask insert returned no row")
    return rows[0]
