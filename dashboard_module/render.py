"""Jinja rendering of the dashboard views."""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from constants import COLUMN_TITLES, DEFAULT_NODES, NODE_LABELS, NODE_TYPES, VIEWS
from dashboard_module.state import DashboardState, actions_for, node_for

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

OVERVIEW_METRICS = (
    ("Today", "0.0h"),
    ("Commercial", "0.0h"),
    ("Value", "£0"),
    ("Target", "○ £400"),
)

_JINJA_ENV: Environment | None = None


def get_jinja_env() -> Environment:
    global _JINJA_ENV
    if _JINJA_ENV is None:
        _JINJA_ENV = Environment(
            loader=FileSystemLoader(str(TEMPLATES_DIR)),
            autoescape=select_autoescape(["html"]),
        )
        _JINJA_ENV.globals.update(
            node_for=node_for,
            actions_for=actions_for,
            column_titles=COLUMN_TITLES,
            node_types=NODE_TYPES,
            node_labels=NODE_LABELS,
            legend=DEFAULT_NODES,
            views=VIEWS,
            overview_metrics=OVERVIEW_METRICS,
        )
    return _JINJA_ENV


def render_dashboard(state: DashboardState) -> str:
    """HTML for the current state: loading, error, or the active view."""
    template = get_jinja_env().get_template("_dashboard.html")
    return template.render(state=state, board=state.columns())


def render_page(**kwargs) -> str:
    template = get_jinja_env().get_template("index.html")
    return template.render(**kwargs)
