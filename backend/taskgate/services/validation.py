"""
Field-level validation shared by the lifecycle managers.

Each validator either returns the normalised value or raises
ValidationError with a message fit for the end user.
"""

import uuid
from datetime import date, datetime
from typing import Any

from taskgate.exceptions import ValidationError
from taskgate.models.common import VALID_STATUSES
from taskgate.services.time_accounting import TIME_FORMAT_MESSAGE, is_valid_time_format


def validate_title(value: Any, message: str, max_length: int | None = None, field: str = "title") -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message, field=field)
    title = value.strip()
    if max_length is not None and len(title) > max_length:
        raise ValidationError(f"Title cannot exceed {max_length} characters", field=field)
    return title


def validate_due_date(value: Any, today: date) -> date | None:
    """Due dates are compared against today at day granularity."""
    if value is None or value == "":
        return None
    due = _coerce_date(value)
    if due < today:
        raise ValidationError("Due date cannot be in the past", field="due_date")
    return due


def _coerce_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value).date()
        except ValueError:
            pass
    raise ValidationError("Due date must be a valid date", field="due_date")


def validate_priority(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 10:
        raise ValidationError("Priority must be a number between 1 and 10", field="priority")
    return value


def validate_status(value: Any) -> str:
    if value not in VALID_STATUSES:
        raise ValidationError(
            f"Status must be one of: {', '.join(VALID_STATUSES)}",
            field="status",
        )
    return value


def validate_tags(value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)) or not all(isinstance(tag, str) for tag in value):
        raise ValidationError("Tags must be a list of strings", field="tags")
    return list(value)


def validate_time_taken(value: Any) -> str:
    """Empty means no time logged; anything else must be a 15-minute increment."""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(TIME_FORMAT_MESSAGE, field="time_taken")
    if value.strip() == "":
        return ""
    if not is_valid_time_format(value):
        raise ValidationError(TIME_FORMAT_MESSAGE, field="time_taken")
    return value.strip()


def validate_description(value: Any, max_length: int | None = None) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError("Description must be a string", field="description")
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"Description cannot exceed {max_length} characters", field="description")
    return value


def normalize_user_ids(value: Any, field: str = "assignee_ids") -> list[str]:
    """Order-preserving de-duplication of a list of user ids."""
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ValidationError("Assignee must be an array", field=field)

    seen: list[str] = []
    for user_id in value:
        user_id = str(user_id)
        if user_id not in seen:
            seen.append(user_id)
    return seen


def coerce_uuid(value: Any, field: str) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise ValidationError(f"Invalid {field.replace('_', ' ')} format", field=field)
