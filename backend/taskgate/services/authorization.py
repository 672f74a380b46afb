"""
Authorization rules for projects, tasks and subtasks.

Everything here is a pure function over an Actor and entity snapshots
the caller has already loaded. Department lookups are passed in as a
mapping of user id -> department.
"""

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from taskgate.models import Project, Subtask, Task, User
from taskgate.models.common import ROLE_ADMIN, ROLE_MANAGER


@dataclass(frozen=True)
class Actor:
    """The authenticated user a request acts on behalf of."""
    id: str
    roles: frozenset[str] = field(default_factory=frozenset)
    department: str | None = None

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(id=user.id, roles=frozenset(user.roles or ()), department=user.department)

    @property
    def is_admin(self) -> bool:
        return ROLE_ADMIN in self.roles

    @property
    def is_manager(self) -> bool:
        return ROLE_MANAGER in self.roles

    @property
    def is_manager_or_admin(self) -> bool:
        return self.is_manager or self.is_admin


def _shares_department(actor: Actor, user_ids: Iterable[str], departments: Mapping[str, str | None]) -> bool:
    if not actor.department:
        return False
    return any(departments.get(user_id) == actor.department for user_id in user_ids)


def can_view_tasks(actor: Actor, tasks: Iterable[Task], departments: Mapping[str, str | None]) -> bool:
    """
    Whether the actor may view the tasks of one project.

    Admins always can. Anyone else needs at least one task in the project
    assigned to themselves or to someone in their department. A project
    without tasks yields False.
    """
    if actor.is_admin:
        return True

    for task in tasks:
        if actor.id in task.assignee_ids:
            return True
        if _shares_department(actor, task.assignee_ids, departments):
            return True
    return False


def can_mutate_task(actor: Actor, task: Task, departments: Mapping[str, str | None]) -> bool:
    if actor.is_admin:
        return True
    if task.owner_id == actor.id or actor.id in task.assignee_ids:
        return True
    return actor.is_manager and _shares_department(actor, task.assignee_ids, departments)


def can_archive_task(actor: Actor, task: Task) -> bool:
    if actor.is_manager_or_admin:
        return True
    return task.owner_id == actor.id or actor.id in task.assignee_ids


def can_unarchive_task(actor: Actor, task: Task) -> bool:
    return task.owner_id == actor.id or actor.id in task.assignee_ids


def can_modify_project(actor: Actor, project: Project) -> bool:
    """Only the owner may update or delete a project."""
    return project.owner_id == actor.id


def can_remove_assignees(actor: Actor) -> bool:
    return actor.is_manager_or_admin


def can_add_assignee(actor: Actor, task: Task) -> bool:
    if actor.is_manager_or_admin:
        return True
    return task.owner_id == actor.id or actor.id in task.assignee_ids


def can_remove_assignee(actor: Actor, task: Task) -> bool:
    return actor.is_manager_or_admin or task.owner_id == actor.id


def can_reassign_owner(actor: Actor, task: Task) -> bool:
    return actor.is_manager_or_admin or task.owner_id == actor.id


def can_mutate_subtask(
    actor: Actor,
    subtask: Subtask,
    parent_task: Task | None,
    departments: Mapping[str, str | None],
) -> bool:
    """Subtask owner or assignee, or anyone allowed to mutate the parent task."""
    if subtask.owner_id == actor.id or actor.id in subtask.assignee_ids:
        return True
    if parent_task is None:
        return actor.is_admin
    return can_mutate_task(actor, parent_task, departments)


def has_project_access(user_id: str, project: Project) -> bool:
    """Owner or member of the project."""
    return project.owner_id == user_id or user_id in project.member_ids
