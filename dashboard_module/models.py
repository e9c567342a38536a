"""Pydantic models for dashboard websocket messages."""

from typing import Literal

from pydantic import BaseModel


class DashboardMessage(BaseModel):
    """One user action sent by the dashboard page."""

    op: Literal[
        "view",
        "toggle",
        "add_project",
        "add_subtask",
        "advance",
        "retreat",
        "complete",
        "reopen",
    ]
    project_id: int | None = None
    view: str | None = None
    name: str | None = None
    text: str | None = None

    def require_project_id(self) -> int:
        if self.project_id is None:
            raise ValueError(f"{self.op} requires project_id")
        return self.project_id
