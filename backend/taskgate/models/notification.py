import uuid
from datetime import date, datetime
from sqlmodel import SQLModel, Field

from taskgate.models.common import utcnow


class Notification(SQLModel, table=True):
    """In-app notification addressed to a single user."""

    __tablename__ = "notifications"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    recipient_id: str = Field(index=True)
    message: str
    acting_user_id: str | None = Field(default=None)
    task_id: uuid.UUID | None = Field(default=None)
    deadline: date | None = Field(default=None)
    read: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)
