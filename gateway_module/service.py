"""Forwarding of agent actions to remote functions."""

import logging
from typing import Any

import requests

from config import GatewaySettings
from errors import RemoteAgentError

logger = logging.getLogger(__name__)

DASHBOARD_AGENT_PATH = "/functions/v1/dashboard-agent"


def handle_dashboard_agent(action: str | None, params: dict[str, Any] | None) -> Any:
    """
    POST {action, **params} to the dashboard-agent function and return its JSON.
    Settings are read on every call and checked before any network traffic.
    """
    settings = GatewaySettings.from_env()
    url = f"{settings.service_url}{DASHBOARD_AGENT_PATH}"
    response = requests.post(
        url,
        headers={
            "Content-Type": "application/json",
            "Authorization": f"Bearer {settings.service_role_key}",
            "apikey": settings.service_role_key,
        },
        json={"action": action, **(params or {})},
    )
    if not response.ok:
        logger.warning("Dashboard agent returned %s for action %r", response.status_code, action)
        raise RemoteAgentError(f"Dashboard agent error: {response.text}")
    return response.json()
