"""
Task lifecycle: create, update, ownership and assignee management,
archival and recurrence.

Update ordering matters and is fixed:
1. field validation (so invalid payloads fail the same way for everyone)
2. existence
3. mutate permission
4. assignee-removal role check
5. apply and save
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
from taskgate.models import Project, Subtask, Task, User
from taskgate.models.common import (
    DEFAULT_PRIORITY,
    MAX_ASSIGNEES,
    STATUS_COMPLETED,
    STATUS_TODO,
    utcnow,
)
from taskgate.services import authorization as authz
from taskgate.services.authorization import Actor
from taskgate.services.notifications import NotificationSink
from taskgate.services.recurrence import successor_fields, validate_recurrence
from taskgate.services.time_accounting import calculate_total_time
from taskgate.services.users import department_map, resolve_user
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

MAX_ASSIGNEES_MESSAGE = f"A task can have a maximum of {MAX_ASSIGNEES} assignees"
MIN_ASSIGNEES_MESSAGE = "At least one assignee is required"


class TaskService:
    def __init__(
        self,
        store: EntityStore,
        notifications: NotificationSink | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.notifications = notifications
        self.clock = clock

    # -------------------------------------------------------------------------
    # Create / read / delete
    # -------------------------------------------------------------------------

    async def create(self, data: dict[str, Any], actor: Actor) -> Task:
        """
        Create a task owned by the actor.

        The creator is always the first assignee. Everything that can be
        checked without the database is checked before the project lookup.
        """
        today = self.clock().date()

        title = validate_title(data.get("title"), "Task title is required")

        project_id = data.get("project_id")
        if not project_id:
            raise ValidationError("Project is required", field="project_id")
        project_id = coerce_uuid(project_id, "project_id")

        due_date = validate_due_date(data.get("due_date"), today)

        priority = data.get("priority")
        priority = validate_priority(priority) if priority is not None else DEFAULT_PRIORITY

        status = data.get("status")
        status = validate_status(status) if status is not None else STATUS_TODO

        tags = validate_tags(data.get("tags"))
        description = validate_description(data.get("description"))
        time_taken = validate_time_taken(data.get("time_taken"))

        is_recurring = bool(data.get("is_recurring", False))
        interval = data.get("recurrence_interval")
        validate_recurrence(is_recurring, interval, due_date, "tasks")

        assignee_ids = normalize_user_ids([actor.id, *normalize_user_ids(data.get("assignee_ids"))])
        if len(assignee_ids) > MAX_ASSIGNEES:
            raise CapacityError(MAX_ASSIGNEES_MESSAGE, count=len(assignee_ids))

        project = await self.store.find_by_id(Project, project_id)
        if not project:
            raise NotFoundError("Project", project_id, message="Selected project does not exist")
        if project.archived:
            raise ConflictError("Cannot add tasks to an archived project")
        if project.status == STATUS_COMPLETED:
            raise ConflictError("Cannot add tasks to a completed project")

        now = self.clock()
        task = Task(
            title=title,
            description=description,
            status=status,
            priority=priority,
            due_date=due_date,
            tags=tags,
            owner_id=actor.id,
            assignee_ids=assignee_ids,
            project_id=project.id,
            is_recurring=is_recurring,
            recurrence_interval=interval if is_recurring else None,
            time_taken=time_taken,
            created_at=now,
            updated_at=now,
        )
        task = await self.store.create(task)

        logger.info(f"Created task: id={task.id} title='{task.title}' project={task.project_id}")
        return task

    async def get(self, task_id: uuid.UUID) -> Task:
        task = await self.store.find_by_id(Task, task_id)
        if not task:
            raise NotFoundError("Task", task_id, message="Task not found")
        return task

    async def list_tasks(
        self,
        owner_id: str | None = None,
        assignee_id: str | None = None,
        project_id: uuid.UUID | None = None,
        status: str | None = None,
        include_archived: bool = False,
    ) -> list[Task]:
        """Filtered task listing, newest first."""
        where = []
        if owner_id:
            where.append(Task.owner_id == owner_id)
        if project_id:
            where.append(Task.project_id == project_id)
        if status:
            where.append(Task.status == status)
        if not include_archived:
            where.append(Task.archived == False)  # noqa: E712

        tasks = await self.store.find(Task, *where, order_by=[Task.created_at.desc()])
        if assignee_id:
            tasks = [t for t in tasks if assignee_id in t.assignee_ids]

        logger.debug(f"Listed {len(tasks)} tasks")
        return tasks

    async def list_project_tasks(self, project_id: uuid.UUID, actor: Actor) -> list[Task]:
        """Active tasks of one project, if the actor may view them."""
        project = await self.store.find_by_id(Project, project_id)
        if not project:
            raise NotFoundError("Project", project_id, message="Project not found")

        tasks = await self.store.find(Task, Task.project_id == project_id, order_by=[Task.created_at.desc()])
        departments = await department_map(self.store, (a for t in tasks for a in t.assignee_ids))
        if not authz.can_view_tasks(actor, tasks, departments):
            raise PermissionDeniedError("Access denied to view tasks in this project")

        return [t for t in tasks if not t.archived]

    async def list_archived(self, actor: Actor) -> list[Task]:
        """Archived tasks the actor owns or is assigned to; all of them for admins."""
        tasks = await self.store.find(Task, Task.archived == True, order_by=[Task.archived_at.desc()])  # noqa: E712
        if actor.is_admin:
            return tasks
        return [t for t in tasks if t.owner_id == actor.id or actor.id in t.assignee_ids]

    async def total_time(self, task_id: uuid.UUID) -> str:
        """Task time plus the time of its non-archived subtasks, formatted."""
        task = await self.get(task_id)
        subtasks = await self.store.find(
            Subtask,
            Subtask.parent_task_id == task_id,
            Subtask.archived == False,  # noqa: E712
        )
        return calculate_total_time(task.time_taken, [s.time_taken for s in subtasks])

    async def delete(self, task_id: uuid.UUID, actor: Actor) -> None:
        task = await self.get(task_id)

        if task.owner_id != actor.id:
            raise PermissionDeniedError("You do not have permission to delete this task")

        logger.info(f"Deleting task {task_id}: '{task.title}'")
        await self.store.delete_by_id(Task, task_id)

    # -------------------------------------------------------------------------
    # Update
    # -------------------------------------------------------------------------

    def _validate_patch(self, patch: dict[str, Any]) -> dict[str, Any]:
        """Validate every patched field without touching the database."""
        if "project_id" in patch:
            raise ConflictError("Project cannot be changed after task creation")
        if "owner_id" in patch:
            raise ConflictError("Task owner can only be changed by reassigning ownership")

        today = self.clock().date()
        changes: dict[str, Any] = {}

        if "title" in patch:
            changes["title"] = validate_title(patch["title"], "Task title cannot be empty")
        if "due_date" in patch:
            changes["due_date"] = validate_due_date(patch["due_date"], today)
        if "description" in patch:
            changes["description"] = validate_description(patch["description"])
        if "status" in patch:
            changes["status"] = validate_status(patch["status"])
        if "priority" in patch:
            changes["priority"] = validate_priority(patch["priority"])
        if "tags" in patch:
            changes["tags"] = validate_tags(patch["tags"])
        if "time_taken" in patch:
            changes["time_taken"] = validate_time_taken(patch["time_taken"])

        if "assignee_ids" in patch:
            assignee_ids = normalize_user_ids(patch["assignee_ids"])
            if not assignee_ids:
                raise CapacityError(MIN_ASSIGNEES_MESSAGE, count=0)
            if len(assignee_ids) > MAX_ASSIGNEES:
                raise CapacityError(MAX_ASSIGNEES_MESSAGE, count=len(assignee_ids))
            changes["assignee_ids"] = assignee_ids

        if "is_recurring" in patch and not isinstance(patch["is_recurring"], bool):
            raise ValidationError("is_recurring must be a boolean", field="is_recurring")

        interval = patch.get("recurrence_interval")
        if interval is not None:
            if isinstance(interval, bool) or not isinstance(interval, int) or interval <= 0:
                raise ValidationError("Recurrence interval must be a positive number", field="recurrence_interval")

        return changes

    async def update(self, task_id: uuid.UUID, patch: dict[str, Any], actor: Actor) -> Task:
        """
        Apply a partial update.

        Anyone allowed to mutate the task may add assignees; removing any
        existing assignee needs the manager or admin role. A transition into
        Completed on a recurring task creates its next occurrence.
        """
        changes = self._validate_patch(patch)

        task = await self.get(task_id)

        departments = await department_map(self.store, task.assignee_ids)
        if not authz.can_mutate_task(actor, task, departments):
            logger.info(f"Denied task update: task={task_id} actor={actor.id}")
            raise PermissionDeniedError("You do not have permission to modify this task")

        if "assignee_ids" in changes:
            removed = [a for a in task.assignee_ids if a not in changes["assignee_ids"]]
            if removed and not authz.can_remove_assignees(actor):
                raise PermissionDeniedError("Only managers can remove assignees from a task")

        # Needs the stored due date and flag, so this runs after the permission check
        is_recurring = task.is_recurring
        interval = task.recurrence_interval
        if "is_recurring" in patch:
            is_recurring = patch["is_recurring"]
            interval = (patch.get("recurrence_interval") or task.recurrence_interval) if is_recurring else None
        elif patch.get("recurrence_interval") is not None and task.is_recurring:
            interval = patch["recurrence_interval"]

        due_date = changes["due_date"] if "due_date" in changes else task.due_date
        validate_recurrence(is_recurring, interval, due_date, "tasks")

        logger.info(f"Updating task {task_id}: {patch}")

        previous_status = task.status
        for field, value in changes.items():
            setattr(task, field, value)
        task.is_recurring = is_recurring
        task.recurrence_interval = interval
        task.updated_at = self.clock()

        task = await self.store.save(task)

        if previous_status != STATUS_COMPLETED and task.status == STATUS_COMPLETED and task.is_recurring:
            successor = await self.create_recurring_task(task)
            logger.info(f"Recurring task {task.id} completed; next occurrence {successor.id} due {successor.due_date}")

        return task

    # -------------------------------------------------------------------------
    # Ownership and assignees
    # -------------------------------------------------------------------------

    async def assign_owner(self, task_id: uuid.UUID, assignee_identifier: str, actor: Actor) -> Task:
        """
        Hand ownership of a task to another user.

        Everyone previously involved (assignees and the old owner) stays on
        the task as an assignee, except the new owner. The new owner is
        notified; a failed notification does not undo the reassignment.
        """
        if not assignee_identifier:
            raise ValidationError("A new owner (assignee) is required", field="assignee")

        task = await self.get(task_id)

        if not authz.can_reassign_owner(actor, task):
            raise PermissionDeniedError("Insufficient permissions to reassign this task")

        new_owner = await resolve_user(self.store, assignee_identifier)
        if not new_owner:
            raise NotFoundError("User", assignee_identifier, message="User not found")

        project = await self.store.find_by_id(Project, task.project_id)
        if not project:
            raise NotFoundError("Project", task.project_id, message="Project not found")
        if not authz.has_project_access(new_owner.id, project):
            raise PermissionDeniedError("New owner must be a member of the task's project")

        involved = normalize_user_ids([*task.assignee_ids, task.owner_id])
        assignee_ids = [user_id for user_id in involved if user_id != new_owner.id]
        if 1 + len(assignee_ids) > MAX_ASSIGNEES:
            raise CapacityError(
                f"A task can have at most 1 owner and {MAX_ASSIGNEES - 1} other assignees",
                count=1 + len(assignee_ids),
            )

        previous_owner = task.owner_id
        task.owner_id = new_owner.id
        task.assignee_ids = assignee_ids
        task.updated_at = self.clock()
        task = await self.store.save(task)

        logger.info(f"Task {task.id} ownership: {previous_owner} -> {new_owner.id} (by {actor.id})")

        await self._notify_new_owner(task, new_owner, actor)
        return task

    async def _notify_new_owner(self, task: Task, new_owner: User, actor: Actor) -> None:
        if self.notifications is None:
            return
        try:
            await self.notifications.create(
                recipient_id=new_owner.id,
                message=f"You are now the owner of task '{task.title}'",
                acting_user_id=actor.id,
                deadline=task.due_date,
                task_id=task.id,
            )
        except Exception:
            logger.warning(f"Failed to notify new owner {new_owner.id} of task {task.id}", exc_info=True)

    async def add_assignee(self, task_id: uuid.UUID, user_id: str, actor: Actor) -> Task:
        task = await self.get(task_id)

        if not authz.can_add_assignee(actor, task):
            raise PermissionDeniedError("You do not have permission to add assignees to this task")

        user = await self.store.find_by_id(User, user_id)
        if not user:
            raise NotFoundError("User", user_id, message="User not found")

        project = await self.store.find_by_id(Project, task.project_id)
        if not project or not authz.has_project_access(user.id, project):
            raise PermissionDeniedError("User must be a member of the task's project")

        if user.id in task.assignee_ids:
            return task
        if len(task.assignee_ids) + 1 > MAX_ASSIGNEES:
            raise CapacityError(MAX_ASSIGNEES_MESSAGE, count=len(task.assignee_ids) + 1)

        task.assignee_ids = [*task.assignee_ids, user.id]
        task.updated_at = self.clock()
        logger.info(f"Added assignee {user.id} to task {task.id}")
        return await self.store.save(task)

    async def remove_assignee(self, task_id: uuid.UUID, user_id: str, actor: Actor) -> Task:
        task = await self.get(task_id)

        if not authz.can_remove_assignee(actor, task):
            raise PermissionDeniedError("Only the task owner or a manager can remove assignees")

        if user_id not in task.assignee_ids:
            raise NotFoundError("Assignee", user_id, message="User is not assigned to this task")
        if len(task.assignee_ids) - 1 < 1:
            raise CapacityError(MIN_ASSIGNEES_MESSAGE, count=0)

        task.assignee_ids = [a for a in task.assignee_ids if a != user_id]
        task.updated_at = self.clock()
        logger.info(f"Removed assignee {user_id} from task {task.id}")
        return await self.store.save(task)

    # -------------------------------------------------------------------------
    # Archival
    # -------------------------------------------------------------------------

    async def archive_task(self, task_id: uuid.UUID, actor: Actor) -> Task:
        task = await self.get(task_id)

        if not authz.can_archive_task(actor, task):
            raise PermissionDeniedError("You do not have permission to archive this task")
        if task.archived:
            return task

        now = self.clock()
        task.archived = True
        task.archived_at = now
        task.updated_at = now
        logger.info(f"Archived task {task.id}")
        return await self.store.save(task)

    async def unarchive_task(self, task_id: uuid.UUID, actor: Actor) -> Task:
        task = await self.get(task_id)

        if not authz.can_unarchive_task(actor, task):
            raise PermissionDeniedError("You do not have permission to unarchive this task")

        project = await self.store.find_by_id(Project, task.project_id)
        if project and project.archived:
            raise ConflictError("Cannot unarchive task while its project is archived")
        if not task.archived:
            return task

        task.archived = False
        task.archived_at = None
        task.updated_at = self.clock()
        logger.info(f"Unarchived task {task.id}")
        return await self.store.save(task)

    # -------------------------------------------------------------------------
    # Recurrence
    # -------------------------------------------------------------------------

    async def create_recurring_task(self, original: Task) -> Task | None:
        """
        Create the next occurrence of a recurring task.

        Returns None for non-recurring tasks. The new due date is the
        original due date plus the interval in whole days.
        """
        fields = successor_fields(original)
        if fields is None:
            return None

        now = self.clock()
        successor = Task(**fields, created_at=now, updated_at=now)
        return await self.store.create(successor)
