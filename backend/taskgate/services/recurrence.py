"""
Recurrence scheduling for tasks and subtasks.

A successor is anchored to its predecessor's due date, never to the time
the completion was recorded: next_due = due_date + interval days.
"""

from datetime import date, timedelta
from typing import Any

from taskgate.exceptions import ValidationError
from taskgate.models.common import STATUS_TODO

# Fields that never carry over to the next occurrence
_RESET_FIELDS = ("id", "status", "time_taken", "archived", "archived_at", "created_at", "updated_at")


def next_due_date(due_date: date, interval_days: int) -> date:
    return due_date + timedelta(days=interval_days)


def validate_recurrence(
    is_recurring: bool,
    interval: Any,
    due_date: date | None,
    kind: str = "tasks",
) -> None:
    """
    Recurring items need a positive whole-day interval and a due date.

    Raises:
        ValidationError: naming the first missing requirement
    """
    if not is_recurring:
        return
    if not _is_positive_int(interval):
        raise ValidationError(
            f"Recurrence interval must be a positive number for recurring {kind}",
            field="recurrence_interval",
        )
    if due_date is None:
        raise ValidationError(f"Due date is required for recurring {kind}", field="due_date")


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def successor_fields(original: Any) -> dict[str, Any] | None:
    """
    Field values for the next occurrence of a recurring item.

    Returns None when the item does not recur. The caller builds the new
    entity from the returned mapping.
    """
    if not original.is_recurring:
        return None
    if original.due_date is None:
        raise ValidationError("Due date is required for recurring items", field="due_date")

    data = original.model_dump(exclude=set(_RESET_FIELDS))
    data["status"] = STATUS_TODO
    data["due_date"] = next_due_date(original.due_date, original.recurrence_interval)
    # Copy list columns so the two rows never share a list object
    for key, value in data.items():
        if isinstance(value, list):
            data[key] = list(value)
    return data
