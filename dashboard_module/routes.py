"""Dashboard page and its live websocket session."""

import asyncio
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from fastapi.responses import HTMLResponse
from pydantic import ValidationError

from constants import TRANSITIONS
from dashboard_module.deps import get_client
from dashboard_module.models import DashboardMessage
from dashboard_module.render import render_dashboard, render_page
from dashboard_module.state import DashboardState
from repositories import ProjectStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["dashboard"])

WS_PATH = "/ws/dashboard"


async def apply_message(state: DashboardState, msg: DashboardMessage) -> None:
    """Dispatch one page action to the dashboard state."""
    if msg.op == "view":
        state.set_view(msg.view or "")
    elif msg.op == "toggle":
        state.toggle(msg.require_project_id())
    elif msg.op == "add_project":
        await state.add_project(msg.name)
    elif msg.op == "add_subtask":
        await state.add_subtask(msg.require_project_id(), msg.text)
    elif msg.op in TRANSITIONS:
        await state.transition(msg.require_project_id(), msg.op)


@router.get("/", response_class=HTMLResponse)
async def index(client: ProjectStore = Depends(get_client)):
    # Unloaded, so this renders the loading screen; the socket replaces it once mounted.
    placeholder = DashboardState(client)
    return render_page(initial_html=render_dashboard(placeholder), ws_path=WS_PATH)


@router.websocket(WS_PATH)
async def dashboard_socket(websocket: WebSocket, client: ProjectStore = Depends(get_client)):
    """One socket is one mounted dashboard: mount on connect, unmount on disconnect."""
    await websocket.accept()
    send_lock = asyncio.Lock()

    async def push(state: DashboardState) -> None:
        async with send_lock:
            await websocket.send_json({"type": "render", "html": render_dashboard(state)})
            for message in state.pop_alerts():
                await websocket.send_json({"type": "alert", "message": message})

    state = DashboardState(client, on_change=push)
    try:
        await state.mount()
        await push(state)
        while True:
            raw = await websocket.receive_text()
            try:
                msg = DashboardMessage.model_validate_json(raw)
                await apply_message(state, msg)
            except (ValidationError, ValueError) as e:
                logger.warning("Rejected dashboard message %r: %s", raw, e)
                async with send_lock:
                    await websocket.send_json({"type": "error", "message": str(e)})
                continue
            await push(state)
    except WebSocketDisconnect:
        logger.info("Dashboard socket disconnected")
    finally:
        await state.unmount()
