import uuid
from datetime import date, datetime
from sqlmodel import SQLModel, Field

from taskgate.models.common import DEFAULT_PRIORITY, STATUS_TODO, json_list_field, utcnow


class Task(SQLModel, table=True):
    """
    Task model.

    Key fields:
    - owner_id: the single responsible user, reassignable but never null
    - assignee_ids: ordered, distinct, at most five user ids
    - project_id: fixed at creation; tasks outlive a deleted project, so
      there is no foreign key constraint
    - recurrence_interval: days between occurrences, set iff is_recurring
    - time_taken: duration string in 15-minute increments, or ""
    """

    __tablename__ = "tasks"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    title: str = Field(index=True)
    description: str = Field(default="")
    status: str = Field(default=STATUS_TODO, index=True)
    priority: int = Field(default=DEFAULT_PRIORITY)
    due_date: date | None = Field(default=None)
    tags: list[str] = json_list_field()

    owner_id: str = Field(foreign_key="users.id", index=True)
    assignee_ids: list[str] = json_list_field()
    project_id: uuid.UUID = Field(index=True)

    is_recurring: bool = Field(default=False)
    recurrence_interval: int | None = Field(default=None)
    time_taken: str = Field(default="")

    archived: bool = Field(default=False, index=True)
    archived_at: datetime | None = Field(default=None)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
