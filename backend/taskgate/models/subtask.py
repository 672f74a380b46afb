import uuid
from datetime import date, datetime
from sqlmodel import SQLModel, Field

from taskgate.models.common import DEFAULT_PRIORITY, STATUS_TODO, json_list_field, utcnow


class Subtask(SQLModel, table=True):
    """Subtask model - one level below a task, same rules for recurrence and time."""

    __tablename__ = "subtasks"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    title: str = Field(max_length=200)
    description: str = Field(default="", max_length=1000)
    parent_task_id: uuid.UUID = Field(index=True)
    project_id: uuid.UUID = Field(index=True)

    owner_id: str = Field(foreign_key="users.id", index=True)
    assignee_ids: list[str] = json_list_field()

    status: str = Field(default=STATUS_TODO)
    priority: int = Field(default=DEFAULT_PRIORITY)
    due_date: date | None = Field(default=None)
    tags: list[str] = json_list_field()

    is_recurring: bool = Field(default=False)
    recurrence_interval: int | None = Field(default=None)
    time_taken: str = Field(default="")

    archived: bool = Field(default=False, index=True)
    archived_at: datetime | None = Field(default=None)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
