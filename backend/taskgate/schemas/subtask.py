import uuid
from datetime import date, datetime
from pydantic import BaseModel


class SubtaskCreate(BaseModel):
    """Schema for creating a subtask. The caller becomes the owner; project_id defaults to the parent task's project."""
    title: str
    parent_task_id: uuid.UUID
    project_id: uuid.UUID | None = None
    description: str | None = None
    assignee_ids: list[str] | None = None
    status: str | None = None
    priority: int | None = None
    due_date: date | None = None
    tags: list[str] | None = None
    is_recurring: bool = False
    recurrence_interval: int | None = None
    time_taken: str | None = None


class SubtaskUpdate(BaseModel):
    """owner_id, parent_task_id and project_id are accepted only so that changes can be rejected."""
    title: str | None = None
    description: str | None = None
    owner_id: str | None = None
    assignee_ids: list[str] | None = None
    status: str | None = None
    priority: int | None = None
    due_date: date | None = None
    tags: list[str] | None = None
    is_recurring: bool | None = None
    recurrence_interval: int | None = None
    time_taken: str | None = None
    parent_task_id: uuid.UUID | None = None
    project_id: uuid.UUID | None = None


class SubtaskRead(BaseModel):
    """Schema for reading a subtask."""
    id: uuid.UUID
    title: str
    description: str
    parent_task_id: uuid.UUID
    project_id: uuid.UUID
    owner_id: str
    assignee_ids: list[str]
    status: str
    priority: int
    due_date: date | None
    tags: list[str]
    is_recurring: bool
    recurrence_interval: int | None
    time_taken: str
    archived: bool
    archived_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
