"""Shared constants for the dashboard."""

PLANNING = "planning"
PROGRESS = "progress"
COMPLETED = "completed"

COLUMNS = (PLANNING, PROGRESS, COMPLETED)
COLUMN_TITLES = {PLANNING: "In Planning", PROGRESS: "In Progress", COMPLETED: "Completed"}

OVERVIEW = "overview"
CALENDAR = "calendar"
NODES = "nodes"

VIEWS = (OVERVIEW, CALENDAR, NODES)

PROJECTS_TABLE = "projects"
NODES_TABLE = "nodes"
SUBTASKS_TABLE = "subtasks"

# New rows are appended behind everything until reordering exists.
SENTINEL_POSITION = 999

NODE_TIME = "time"
NODE_TYPE = "type"
NODE_STATUS = "status"

NODE_TYPES = (NODE_TIME, NODE_TYPE, NODE_STATUS)
NODE_LABELS = {NODE_TIME: "Time", NODE_TYPE: "Type", NODE_STATUS: "Status"}

DEFAULT_NODES = (
    {"node_type": NODE_TIME, "value": "0h", "icon": "⏰"},
    {"node_type": NODE_TYPE, "value": "personal", "icon": "🏷️"},
    {"node_type": NODE_STATUS, "value": "planning", "icon": "📊"},
)

# action -> (from column, to column)
TRANSITIONS = {
    "advance": (PLANNING, PROGRESS),
    "retreat": (PROGRESS, PLANNING),
    "complete": (PROGRESS, COMPLETED),
    "reopen": (COMPLETED, PROGRESS),
}

TRANSITION_LABELS = {
    "advance": "→ In Progress",
    "retreat": "← Planning",
    "complete": "✓ Complete",
    "reopen": "↩ Reopen",
}

DASHBOARD_AGENT = "dashboard"
