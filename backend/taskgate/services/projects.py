"""
Project lifecycle: create, update, archive cascade, delete.

Archiving a project archives every task and subtask in it with one bulk
UPDATE per table; unarchiving reverses it for all of them.
"""

import uuid
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from taskgate.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from taskgate.models import Project, Subtask, Task
from taskgate.models.common import STATUS_TODO, utcnow
from taskgate.services.authorization import Actor, can_modify_project, can_view_tasks
from taskgate.services.users import department_map
from taskgate.services.validation import (
    normalize_user_ids,
    validate_description,
    validate_due_date,
    validate_priority,
    validate_status,
    validate_tags,
    validate_title,
)
from taskgate.store import EntityStore
from taskgate.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class ProjectAccess:
    """A project plus whether the requesting actor may view its tasks."""
    project: Project
    can_view_tasks: bool


class ProjectService:
    def __init__(self, store: EntityStore, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    async def create(self, data: dict[str, Any], actor: Actor) -> Project:
        """
        Create a project owned by the actor.

        Rules are checked in order (name, due date, priority, status, tags)
        and the first failure is raised.
        """
        today = self.clock().date()

        name = validate_title(data.get("name"), "Project name is required", field="name")
        due_date = validate_due_date(data.get("due_date"), today)

        priority = data.get("priority")
        if priority is not None:
            priority = validate_priority(priority)

        status = data.get("status")
        status = validate_status(status) if status is not None else STATUS_TODO

        tags = validate_tags(data.get("tags"))
        description = validate_description(data.get("description"))

        member_ids = data.get("member_ids")
        member_ids = normalize_user_ids(member_ids, "member_ids") if member_ids is not None else [actor.id]

        archived = data.get("archived", False)
        if not isinstance(archived, bool):
            raise ValidationError("Archived must be a boolean", field="archived")

        now = self.clock()
        project = Project(
            name=name,
            description=description,
            owner_id=actor.id,
            member_ids=member_ids,
            status=status,
            priority=priority,
            due_date=due_date,
            tags=tags,
            archived=archived,
            archived_at=now if archived else None,
            created_at=now,
            updated_at=now,
        )
        project = await self.store.create(project)

        logger.info(f"Created project: id={project.id} name='{project.name}' owner={actor.id}")
        return project

    async def get(self, project_id: uuid.UUID) -> Project:
        project = await self.store.find_by_id(Project, project_id)
        if not project:
            raise NotFoundError("Project", project_id)
        return project

    async def list_for_member(self, actor: Actor) -> list[Project]:
        """Projects the actor owns or is a member of, newest first."""
        projects = await self.store.find(Project, order_by=[Project.created_at.desc()])
        return [p for p in projects if p.owner_id == actor.id or actor.id in p.member_ids]

    async def list_with_access(self, actor: Actor) -> list[ProjectAccess]:
        """
        Every project, each annotated with whether the actor can view its tasks.

        Projects are never hidden; visibility only affects the flag.
        """
        projects = await self.store.find(Project, order_by=[Project.created_at.desc()])
        if actor.is_admin:
            return [ProjectAccess(project=p, can_view_tasks=True) for p in projects]

        tasks_by_project: dict[uuid.UUID, list[Task]] = defaultdict(list)
        if projects:
            tasks = await self.store.find(Task, Task.project_id.in_([p.id for p in projects]))
            for task in tasks:
                tasks_by_project[task.project_id].append(task)

        assignee_ids = {a for tasks in tasks_by_project.values() for t in tasks for a in t.assignee_ids}
        departments = await department_map(self.store, assignee_ids)

        return [
            ProjectAccess(
                project=p,
                can_view_tasks=can_view_tasks(actor, tasks_by_project.get(p.id, []), departments),
            )
            for p in projects
        ]

    async def update(self, project_id: uuid.UUID, patch: dict[str, Any], actor: Actor) -> Project:
        """
        Update a project (owner only).

        Every patched field is validated before anything is written. A change
        of ``archived`` cascades to the project's tasks and subtasks.
        """
        project = await self.get(project_id)

        if not can_modify_project(actor, project):
            logger.info(f"Denied project update: project={project_id} actor={actor.id}")
            raise PermissionDeniedError("Only project owner can update the project")

        if "owner_id" in patch and patch["owner_id"] != project.owner_id:
            raise ConflictError("Project owner cannot be changed")

        today = self.clock().date()
        changes: dict[str, Any] = {}

        if "name" in patch:
            changes["name"] = validate_title(patch["name"], "Project name cannot be empty", field="name")
        if "description" in patch:
            changes["description"] = validate_description(patch["description"])
        if "status" in patch:
            changes["status"] = validate_status(patch["status"])
        if "priority" in patch:
            # Project priority is optional; null clears it
            changes["priority"] = validate_priority(patch["priority"]) if patch["priority"] is not None else None
        if "due_date" in patch:
            changes["due_date"] = validate_due_date(patch["due_date"], today)
        if "tags" in patch:
            changes["tags"] = validate_tags(patch["tags"])
        if "member_ids" in patch:
            changes["member_ids"] = normalize_user_ids(patch["member_ids"], "member_ids")

        archived = patch.get("archived")
        if archived is not None and not isinstance(archived, bool):
            raise ValidationError("Archived must be a boolean", field="archived")

        logger.info(f"Updating project {project_id}: {patch}")

        for field, value in changes.items():
            setattr(project, field, value)

        now = self.clock()
        if archived is True and not project.archived:
            project.archived = True
            project.archived_at = now
            await self._cascade_archive(project.id, True, now)
        elif archived is False and project.archived:
            project.archived = False
            project.archived_at = None
            await self._cascade_archive(project.id, False, None)

        project.updated_at = now
        return await self.store.save(project)

    async def _cascade_archive(self, project_id: uuid.UUID, archived: bool, archived_at: datetime | None) -> None:
        values = {"archived": archived, "archived_at": archived_at}
        task_count = await self.store.update_many(Task, Task.project_id == project_id, values=values)
        subtask_count = await self.store.update_many(Subtask, Subtask.project_id == project_id, values=values)

        action = "Archived" if archived else "Unarchived"
        logger.info(f"{action} project {project_id}: cascaded to {task_count} tasks, {subtask_count} subtasks")

    async def delete(self, project_id: uuid.UUID, actor: Actor) -> None:
        """Hard delete. Tasks of the project are left in place."""
        project = await self.get(project_id)

        if not can_modify_project(actor, project):
            raise PermissionDeniedError("Only project owner can delete the project")

        logger.info(f"Deleting project {project_id}: '{project.name}'")
        await self.store.delete_by_id(Project, project_id)
