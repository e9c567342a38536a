"""Environment-backed settings."""

import os
from dataclasses import dataclass

from errors import ConfigurationError

DEFAULT_POLL_SECONDS = 5.0


@dataclass(frozen=True)
class Settings:
    store_url: str
    store_anon_key: str
    poll_seconds: float = DEFAULT_POLL_SECONDS

    @classmethod
    def from_env(cls) -> "Settings":
        url = os.environ.get("DASH_STORE_URL", "").strip()
        key = os.environ.get("DASH_STORE_ANON_KEY", "").strip()
        if not url or not key:
            raise ConfigurationError("Missing store environment variables")
        raw_poll = os.environ.get("DASH_STORE_POLL_SECONDS", "").strip()
        try:
            poll_seconds = float(raw_poll) if raw_poll else DEFAULT_POLL_SECONDS
        except ValueError:
            raise ConfigurationError(f"DASH_STORE_POLL_SECONDS is not a number: {raw_poll!r}") from None
        return cls(store_url=url, store_anon_key=key, poll_seconds=poll_seconds)


@dataclass(frozen=True)
class GatewaySettings:
    """Server-side only; read per request so nothing is cached between calls."""

    service_url: str
    service_role_key: str

    @classmethod
    def from_env(cls) -> "GatewaySettings":
        url = os.environ.get("DASH_SERVICE_URL", "").strip()
        key = os.environ.get("DASH_SERVICE_ROLE_KEY", "").strip()
        if not url:
            raise ConfigurationError("DASH_SERVICE_URL is not set")
        if not key:
            raise ConfigurationError("DASH_SERVICE_ROLE_KEY is not set")
        return cls(service_url=url.rstrip("/"), service_role_key=key)
