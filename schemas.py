"""Pydantic record and request models for the dashboard API."""

from pydantic import BaseModel, Field, field_validator


class Node(BaseModel):
    id: int
    project_id: int
    node_type: str
    value: str = ""
    icon: str = ""


class Subtask(BaseModel):
    id: int
    project_id: int
    text: str
    position: int = 0
    created_at: str | None = None


class Project(BaseModel):
    """A board card with its embedded nodes and subtasks."""

    id: int
    name: str
    column_type: str
    position: int = 0
    created_at: str | None = None
    nodes: list[Node] = Field(default_factory=list)
    subtasks: list[Subtask] = Field(default_factory=list)


def _not_blank(v: str) -> str:
    if not v or not v.strip():
        raise ValueError("must not be empty")
    return v


class ProjectCreate(BaseModel):
    name: str = Field(..., max_length=500)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return _not_blank(v)


class ColumnUpdate(BaseModel):
    # Passed through unvalidated; the store accepts whatever the caller sends.
    column_type: str = Field(..., max_length=100)


class SubtaskCreate(BaseModel):
    text: str = Field(..., max_length=500)

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        return _not_blank(v)
