"""Pydantic models for the agent gateway."""

import json
from typing import Any

from pydantic import BaseModel


class AgentRequest(BaseModel):
    # Any JSON value; only known agent names route anywhere.
    agent: Any = None
    action: str | None = None
    params: dict[str, Any] | None = None

    def agent_label(self) -> str:
        """The agent as a caller would spell it in JSON, or "undefined" when absent."""
        if "agent" not in self.model_fields_set:
            return "undefined"
        if isinstance(self.agent, str):
            return self.agent
        return json.dumps(self.agent)
