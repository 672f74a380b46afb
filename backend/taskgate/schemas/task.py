import uuid
from datetime import date, datetime
from pydantic import BaseModel


class TaskCreate(BaseModel):
    """Schema for creating a new task. The creator becomes owner and first assignee."""
    title: str
    project_id: uuid.UUID
    description: str | None = None
    status: str | None = None
    priority: int | None = None
    due_date: date | None = None
    tags: list[str] | None = None
    assignee_ids: list[str] | None = None
    is_recurring: bool = False
    recurrence_interval: int | None = None
    time_taken: str | None = None


class TaskUpdate(BaseModel):
    """
    Schema for updating a task.

    project_id and owner_id are accepted only so that attempts to change
    them can be rejected explicitly.
    """
    title: str | None = None
    description: str | None = None
    status: str | None = None
    priority: int | None = None
    due_date: date | None = None
    tags: list[str] | None = None
    assignee_ids: list[str] | None = None
    is_recurring: bool | None = None
    recurrence_interval: int | None = None
    time_taken: str | None = None
    project_id: uuid.UUID | None = None
    owner_id: str | None = None


class AssignOwnerRequest(BaseModel):
    """New owner, by user id or username."""
    assignee: str


class AssigneeRequest(BaseModel):
    user_id: str


class TaskRead(BaseModel):
    """Schema for reading a task."""
    id: uuid.UUID
    title: str
    description: str
    status: str
    priority: int
    due_date: date | None
    tags: list[str]
    owner_id: str
    assignee_ids: list[str]
    project_id: uuid.UUID
    is_recurring: bool
    recurrence_interval: int | None
    time_taken: str
    archived: bool
    archived_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TaskTimeRead(BaseModel):
    task_id: uuid.UUID
    total_time: str
