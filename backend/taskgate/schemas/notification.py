import uuid
from datetime import date, datetime
from pydantic import BaseModel


class NotificationRead(BaseModel):
    id: uuid.UUID
    recipient_id: str
    message: str
    acting_user_id: str | None
    task_id: uuid.UUID | None
    deadline: date | None
    read: bool
    created_at: datetime

    model_config = {"from_attributes": True}
