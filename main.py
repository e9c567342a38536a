"""FastAPI project dashboard: three-column project board, JSON project API, agent gateway."""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException

from config import Settings
from dashboard_module import service
from dashboard_module.deps import get_client
from dashboard_module.routes import router as dashboard_router
from errors import PersistenceError
from gateway_module.routes import router as gateway_router
from repositories import ProjectStore, create_client
from schemas import ColumnUpdate, Project, ProjectCreate, Subtask, SubtaskCreate

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Missing store settings stop startup here.
    settings = Settings.from_env()
    client = create_client(settings.store_url, settings.store_anon_key, poll_interval=settings.poll_seconds)
    app.state.client = client
    try:
        yield
    finally:
        client.close()


app = FastAPI(title="Project Dashboard", lifespan=lifespan)

app.include_router(dashboard_router)
app.include_router(gateway_router, prefix="/api")


@app.get("/api/projects")
async def get_projects(client: ProjectStore = Depends(get_client)):
    try:
        projects = await asyncio.to_thread(service.fetch_all, client)
    except PersistenceError as e:
        logger.error("Fetch projects failed: %s", e)
        raise HTTPException(status_code=500, detail="Failed to load projects")
    return {"projects": [Project.model_validate(p).model_dump() for p in projects]}


@app.post("/api/projects")
async def create_project(body: ProjectCreate, client: ProjectStore = Depends(get_client)):
    try:
        project = await asyncio.to_thread(service.create_project, client, body.name)
    except PersistenceError as e:
        logger.error("Create project failed: %s", e)
        raise HTTPException(status_code=500, detail="Failed to create project")
    return Project.model_validate(project).model_dump()


@app.patch("/api/projects/{project_id}/column")
async def update_project_column(
    project_id: int,
    body: ColumnUpdate,
    client: ProjectStore = Depends(get_client),
):
    try:
        await asyncio.to_thread(service.update_column, client, project_id, body.column_type)
    except PersistenceError as e:
        logger.error("Move project %s failed: %s", project_id, e)
        raise HTTPException(status_code=500, detail="Failed to move project")
    return {"ok": True}


@app.post("/api/projects/{project_id}/subtasks")
async def create_subtask(
    project_id: int,
    body: SubtaskCreate,
    client: ProjectStore = Depends(get_client),
):
    try:
        subtask = await asyncio.to_thread(service.create_subtask, client, project_id, body.text)
    except PersistenceError as e:
        logger.error("Add subtask to %s failed: %s", project_id, e)
        raise HTTPException(status_code=500, detail="Failed to add subtask")
    return Subtask.model_validate(subtask).model_dump()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
