"""Exception types shared by the dashboard and the agent gateway."""


class PersistenceError(Exception):
    """The store failed to read or write."""


class RemoteAgentError(Exception):
    """A forwarded agent call came back with a non-success status."""


class RoutingError(Exception):
    """The gateway could not route a request."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(Exception):
    """A required setting is missing or unusable."""
