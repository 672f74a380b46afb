"""
Subtask lifecycle, one level below tasks.

Recurrence and time-format rules are the same as for tasks. Archived
subtasks are filtered out in the listing queries themselves.
"""

import uuid
from datetime import datetime
from typing import Any, Callable

from taskgate.exceptions import (
    CapacityError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from taskgate.models import Project, Subtask, Task
from taskgate.models.common import DEFAULT_PRIORITY, MAX_ASSIGNEES, STATUS_COMPLETED, STATUS_TODO, utcnow
from taskgate.services.authorization import Actor, can_mutate_subtask, can_mutate_task
from taskgate.services.recurrence import successor_fields, validate_recurrence
from taskgate.services.users import department_map
from taskgate.services.validation import (
    coerce_uuid,
    normalize_user_ids,
    validate_description,
    validate_due_date,
    validate_priority,
    validate_status,
    validate_tags,
    validate_time_taken,
    validate_title,
)
from taskgate.store import EntityStore
from taskgate.logging_config import get_logger

logger = get_logger(__name__)

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000


def _validate_assignees(value: Any) -> list[str]:
    assignee_ids = normalize_user_ids(value)
    if len(assignee_ids) > MAX_ASSIGNEES:
        raise CapacityError(f"A subtask can have a maximum of {MAX_ASSIGNEES} assignees", count=len(assignee_ids))
    return assignee_ids


class SubtaskService:
    def __init__(self, store: EntityStore, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    async def create(self, data: dict[str, Any], actor: Actor) -> Subtask:
        today = self.clock().date()

        title = validate_title(
            data.get("title"), "Subtask title is required", max_length=TITLE_MAX_LENGTH
        )
        description = validate_description(data.get("description"), DESCRIPTION_MAX_LENGTH)
        due_date = validate_due_date(data.get("due_date"), today)

        is_recurring = bool(data.get("is_recurring", False))
        interval = data.get("recurrence_interval")
        validate_recurrence(is_recurring, interval, due_date, "subtasks")

        time_taken = validate_time_taken(data.get("time_taken"))

        priority = data.get("priority")
        priority = validate_priority(priority) if priority is not None else DEFAULT_PRIORITY
        status = data.get("status")
        status = validate_status(status) if status is not None else STATUS_TODO
        tags = validate_tags(data.get("tags"))
        assignee_ids = _validate_assignees(data.get("assignee_ids"))

        if not data.get("parent_task_id"):
            raise ValidationError("Parent task ID is required", field="parent_task_id")
        parent_task_id = coerce_uuid(data["parent_task_id"], "parent_task_id")

        parent_task = await self.store.find_by_id(Task, parent_task_id)
        if not parent_task:
            raise NotFoundError("Task", parent_task_id, message="Parent task not found")

        departments = await department_map(self.store, parent_task.assignee_ids)
        if not can_mutate_task(actor, parent_task, departments):
            raise PermissionDeniedError("You do not have permission to add subtasks to this task")

        project_id = coerce_uuid(data.get("project_id") or parent_task.project_id, "project_id")
        project = await self.store.find_by_id(Project, project_id)
        if not project:
            raise NotFoundError("Project", project_id, message="Project not found")
        if project.id != parent_task.project_id:
            raise ValidationError("Subtask project must match its parent task's project", field="project_id")

        now = self.clock()
        subtask = Subtask(
            title=title,
            description=description,
            parent_task_id=parent_task.id,
            project_id=project.id,
            owner_id=actor.id,
            assignee_ids=assignee_ids,
            status=status,
            priority=priority,
            due_date=due_date,
            tags=tags,
            is_recurring=is_recurring,
            recurrence_interval=interval if is_recurring else None,
            time_taken=time_taken,
            created_at=now,
            updated_at=now,
        )
        subtask = await self.store.create(subtask)

        logger.info(f"Created subtask: id={subtask.id} parent={parent_task.id}")
        return subtask

    async def get(self, subtask_id: uuid.UUID) -> Subtask:
        subtask = await self.store.find_by_id(Subtask, subtask_id)
        if not subtask:
            raise NotFoundError("Subtask", subtask_id, message="Subtask not found")
        return subtask

    async def list_by_parent_task(self, parent_task_id: uuid.UUID) -> list[Subtask]:
        return await self.store.find(
            Subtask,
            Subtask.parent_task_id == parent_task_id,
            Subtask.archived == False,  # noqa: E712
            order_by=[Subtask.created_at.desc()],
        )

    async def list_by_project(self, project_id: uuid.UUID) -> list[Subtask]:
        return await self.store.find(
            Subtask,
            Subtask.project_id == project_id,
            Subtask.archived == False,  # noqa: E712
            order_by=[Subtask.created_at.desc()],
        )

    async def list_archived_by_parent_task(self, parent_task_id: uuid.UUID) -> list[Subtask]:
        return await self.store.find(
            Subtask,
            Subtask.parent_task_id == parent_task_id,
            Subtask.archived == True,  # noqa: E712
            order_by=[Subtask.archived_at.desc()],
        )

    async def _check_permission(self, subtask: Subtask, actor: Actor) -> None:
        parent_task = await self.store.find_by_id(Task, subtask.parent_task_id)
        user_ids = [*subtask.assignee_ids, *(parent_task.assignee_ids if parent_task else [])]
        departments = await department_map(self.store, user_ids)
        if not can_mutate_subtask(actor, subtask, parent_task, departments):
            raise PermissionDeniedError("You do not have permission to modify this subtask")

    async def update(self, subtask_id: uuid.UUID, patch: dict[str, Any], actor: Actor) -> Subtask:
        """
        Apply a partial update; validation runs before the lookup.

        Completing a recurring subtask creates its next occurrence.
        """
        for field in ("parent_task_id", "project_id", "owner_id"):
            if field in patch:
                raise ConflictError(f"{field.replace('_', ' ').capitalize()} cannot be changed after subtask creation")

        today = self.clock().date()
        changes: dict[str, Any] = {}

        if "title" in patch:
            changes["title"] = validate_title(
                patch["title"], "Subtask title cannot be empty", max_length=TITLE_MAX_LENGTH
            )
        if "description" in patch:
            changes["description"] = validate_description(patch["description"], DESCRIPTION_MAX_LENGTH)
        if "due_date" in patch:
            changes["due_date"] = validate_due_date(patch["due_date"], today)
        if "status" in patch:
            changes["status"] = validate_status(patch["status"])
        if "priority" in patch:
            changes["priority"] = validate_priority(patch["priority"])
        if "tags" in patch:
            changes["tags"] = validate_tags(patch["tags"])
        if "time_taken" in patch:
            changes["time_taken"] = validate_time_taken(patch["time_taken"])
        if "assignee_ids" in patch:
            changes["assignee_ids"] = _validate_assignees(patch["assignee_ids"])

        if "is_recurring" in patch and not isinstance(patch["is_recurring"], bool):
            raise ValidationError("is_recurring must be a boolean", field="is_recurring")

        interval = patch.get("recurrence_interval")
        if interval is not None and (isinstance(interval, bool) or not isinstance(interval, int) or interval <= 0):
            raise ValidationError("Recurrence interval must be a positive number", field="recurrence_interval")

        subtask = await self.get(subtask_id)
        await self._check_permission(subtask, actor)

        is_recurring = patch.get("is_recurring", subtask.is_recurring)
        # Depends on the stored due date, so it can only run after the lookup
        interval = patch.get("recurrence_interval", subtask.recurrence_interval) if is_recurring else None
        due_date = changes["due_date"] if "due_date" in changes else subtask.due_date
        validate_recurrence(is_recurring, interval, due_date, "subtasks")

        previous_status = subtask.status
        for field, value in changes.items():
            setattr(subtask, field, value)
        subtask.is_recurring = is_recurring
        subtask.recurrence_interval = interval
        subtask.updated_at = self.clock()

        subtask = await self.store.save(subtask)

        if previous_status != STATUS_COMPLETED and subtask.status == STATUS_COMPLETED and subtask.is_recurring:
            successor = await self.create_recurring_subtask(subtask)
            logger.info(f"Recurring subtask {subtask.id} completed; next occurrence {successor.id}")

        return subtask

    async def archive(self, subtask_id: uuid.UUID, actor: Actor) -> Subtask:
        subtask = await self.get(subtask_id)
        await self._check_permission(subtask, actor)
        if subtask.archived:
            return subtask

        now = self.clock()
        subtask.archived = True
        subtask.archived_at = now
        subtask.updated_at = now
        return await self.store.save(subtask)

    async def unarchive(self, subtask_id: uuid.UUID, actor: Actor) -> Subtask:
        subtask = await self.get(subtask_id)
        await self._check_permission(subtask, actor)

        project = await self.store.find_by_id(Project, subtask.project_id)
        if project and project.archived:
            raise ConflictError("Cannot unarchive subtask while its project is archived")
        if not subtask.archived:
            return subtask

        subtask.archived = False
        subtask.archived_at = None
        subtask.updated_at = self.clock()
        return await self.store.save(subtask)

    async def create_recurring_subtask(self, original: Subtask) -> Subtask | None:
        """Next occurrence of a recurring subtask, or None when it does not recur."""
        fields = successor_fields(original)
        if fields is None:
            return None

        now = self.clock()
        successor = Subtask(**fields, created_at=now, updated_at=now)
        return await self.store.create(successor)
