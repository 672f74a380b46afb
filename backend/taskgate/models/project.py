import uuid
from datetime import date, datetime
from sqlmodel import SQLModel, Field

from taskgate.models.common import STATUS_TODO, json_list_field, utcnow


class Project(SQLModel, table=True):
    """
    Project model - groups tasks together.

    archived and archived_at always agree: archived_at is set exactly when
    archived flips to True and cleared when it flips back.
    """

    __tablename__ = "projects"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(index=True)
    description: str = Field(default="")
    owner_id: str = Field(foreign_key="users.id", index=True)
    member_ids: list[str] = json_list_field()
    status: str = Field(default=STATUS_TODO)
    priority: int | None = Field(default=None)
    due_date: date | None = Field(default=None)
    tags: list[str] = json_list_field()

    archived: bool = Field(default=False, index=True)
    archived_at: datetime | None = Field(default=None)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
