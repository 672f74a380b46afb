"""
Elapsed-time strings in 15-minute increments.

Accepted forms:
- "45 minutes"
- "1 hour" / "3 hours"
- "1 hour 15 minutes" / "2 hours 30 minutes"
"""

import re
from typing import Iterable

TIME_INCREMENT_MINUTES = 15
NOT_SPECIFIED = "Not specified"

TIME_FORMAT_MESSAGE = (
    'Time must be in 15-minute increments (e.g., "15 minutes", "1 hour", "1 hour 15 minutes")'
)

_MINUTES_PATTERN = re.compile(r"^(\d+)\s+minutes$")
_HOURS_PATTERN = re.compile(r"^(\d+)\s+hours?$")
_HOURS_MINUTES_PATTERN = re.compile(r"^(\d+)\s+hours?\s+(\d+)\s+minutes$")


def _match_minutes(time_string: str) -> int | None:
    """Total minutes for a well-formed string, None when no form matches."""
    trimmed = time_string.strip()

    match = _MINUTES_PATTERN.match(trimmed)
    if match:
        return int(match.group(1))

    match = _HOURS_PATTERN.match(trimmed)
    if match:
        return int(match.group(1)) * 60

    match = _HOURS_MINUTES_PATTERN.match(trimmed)
    if match:
        return int(match.group(1)) * 60 + int(match.group(2))

    return None


def is_valid_time_format(time_string) -> bool:
    if not time_string or not isinstance(time_string, str):
        return False

    total = _match_minutes(time_string)
    return total is not None and total % TIME_INCREMENT_MINUTES == 0


def parse_time_to_minutes(time_string) -> int:
    """
    Parse a duration string into minutes.

    Returns 0 for anything unparseable; call is_valid_time_format first
    when strict validation is needed.
    """
    if not time_string or not isinstance(time_string, str):
        return 0
    return _match_minutes(time_string) or 0


def format_time(minutes: int) -> str:
    """Inverse of parse_time_to_minutes. Zero minutes formats as ""."""
    if not minutes:
        return ""

    hours, remaining = divmod(minutes, 60)
    if hours == 0:
        return f"{remaining} minutes"

    hour_text = "hour" if hours == 1 else "hours"
    if remaining == 0:
        return f"{hours} {hour_text}"
    return f"{hours} {hour_text} {remaining} minutes"


def calculate_total_time(task_time: str | None, subtask_times: Iterable[str | None] = ()) -> str:
    """
    Total logged time for a task and its subtasks.

    Callers pass only non-archived subtasks. A zero total renders as
    "Not specified".
    """
    total = parse_time_to_minutes(task_time)
    total += sum(parse_time_to_minutes(t) for t in subtask_times)

    if total == 0:
        return NOT_SPECIFIED
    return format_time(total)
