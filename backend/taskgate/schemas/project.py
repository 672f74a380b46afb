import uuid
from datetime import date, datetime
from pydantic import BaseModel


class ProjectCreate(BaseModel):
    """Schema for creating a new project."""
    name: str
    description: str | None = None
    member_ids: list[str] | None = None
    status: str | None = None
    priority: int | None = None
    due_date: date | None = None
    tags: list[str] | None = None
    archived: bool = False


class ProjectUpdate(BaseModel):
    """Schema for updating a project. Only fields that are sent are applied."""
    name: str | None = None
    description: str | None = None
    member_ids: list[str] | None = None
    status: str | None = None
    priority: int | None = None
    due_date: date | None = None
    tags: list[str] | None = None
    archived: bool | None = None


class ProjectRead(BaseModel):
    """Schema for reading a project."""
    id: uuid.UUID
    name: str
    description: str
    owner_id: str
    member_ids: list[str]
    status: str
    priority: int | None
    due_date: date | None
    tags: list[str]
    archived: bool
    archived_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProjectWithAccessRead(ProjectRead):
    """Project listing entry annotated with task visibility for the caller."""
    can_view_tasks: bool
