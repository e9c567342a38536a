"""Agent gateway: routes {agent, action, params} requests to remote functions."""

import asyncio
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response

from constants import DASHBOARD_AGENT
from errors import RoutingError
from gateway_module import service
from gateway_module.models import AgentRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["gateway"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

AGENT_HANDLERS = {
    DASHBOARD_AGENT: service.handle_dashboard_agent,
}


def _json(content, status_code: int) -> JSONResponse:
    return JSONResponse(content=content, status_code=status_code, headers=CORS_HEADERS)


async def agent_gateway(request: Request):
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)
    try:
        if request.method != "POST":
            raise RoutingError("Method not allowed", status_code=405)
        body = AgentRequest.model_validate(await request.json())
        handler = AGENT_HANDLERS.get(body.agent) if isinstance(body.agent, str) else None
        if handler is None:
            raise RoutingError(f"Unknown agent: {body.agent_label()}")
        result = await asyncio.to_thread(handler, body.action, body.params)
    except RoutingError as e:
        return _json({"error": str(e)}, e.status_code)
    except Exception as e:
        logger.exception("API gateway error")
        return _json({"error": "Internal server error", "message": str(e)}, 500)
    return _json(result, 200)


# Registered without a method list so every verb reaches the handler and gets the JSON 405.
router.add_route("/agent", agent_gateway)
