from datetime import datetime, timezone

from sqlalchemy import Column, JSON
from sqlmodel import Field

STATUS_TODO = "To Do"
STATUS_IN_PROGRESS = "In Progress"
STATUS_COMPLETED = "Completed"
STATUS_BLOCKED = "Blocked"

VALID_STATUSES = (STATUS_TODO, STATUS_IN_PROGRESS, STATUS_COMPLETED, STATUS_BLOCKED)

ROLE_STAFF = "staff"
ROLE_MANAGER = "manager"
ROLE_ADMIN = "admin"

MAX_ASSIGNEES = 5
DEFAULT_PRIORITY = 5


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how the columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def json_list_field():
    """A list column stored as JSON (user ids, tags)."""
    return Field(default_factory=list, sa_column=Column(JSON, nullable=False))
