from datetime import datetime
from sqlmodel import SQLModel, Field

from taskgate.models.common import json_list_field, utcnow


class User(SQLModel, table=True):
    """
    Organisation member.

    The id is the identity provider's uid. Roles and department drive
    every authorization decision.
    """

    __tablename__ = "users"

    id: str = Field(primary_key=True)
    username: str = Field(index=True, unique=True)
    roles: list[str] = json_list_field()
    department: str | None = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=utcnow)
