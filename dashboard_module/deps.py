"""FastAPI dependencies for the dashboard."""

from fastapi.requests import HTTPConnection

from repositories import ProjectStore


def get_client(conn: HTTPConnection) -> ProjectStore:
    """Return the store client created at application startup."""
    return conn.app.state.client
