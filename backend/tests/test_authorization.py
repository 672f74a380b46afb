"""
Tests for the pure authorization rules.
"""

import uuid

from taskgate.models import Project, Subtask, Task
from taskgate.models.common import ROLE_ADMIN, ROLE_MANAGER, ROLE_STAFF
from taskgate.services.authorization import (
    Actor,
    can_archive_task,
    can_mutate_subtask,
    can_mutate_task,
    can_reassign_owner,
    can_remove_assignee,
    can_remove_assignees,
    can_unarchive_task,
    can_view_tasks,
    has_project_access,
)


def make_task(owner_id="owner", assignee_ids=None) -> Task:
    return Task(
        title="Task",
        owner_id=owner_id,
        assignee_ids=list(assignee_ids or []),
        project_id=uuid.uuid4(),
    )


DEPARTMENTS = {"eng-1": "eng", "eng-2": "eng", "sales-1": "sales", "owner": "eng"}

staff_eng = Actor(id="eng-9", roles=frozenset({ROLE_STAFF}), department="eng")
manager_eng = Actor(id="mgr", roles=frozenset({ROLE_MANAGER}), department="eng")
manager_sales = Actor(id="smgr", roles=frozenset({ROLE_MANAGER}), department="sales")
admin = Actor(id="admin", roles=frozenset({ROLE_ADMIN}))


class TestViewTasks:

    def test_staff_cannot_see_other_department_project(self):
        tasks = [make_task(assignee_ids=["sales-1"])]
        assert can_view_tasks(staff_eng, tasks, DEPARTMENTS) is False

    def test_shared_department_grants_visibility(self):
        tasks = [make_task(assignee_ids=["sales-1"]), make_task(assignee_ids=["eng-1"])]
        assert can_view_tasks(staff_eng, tasks, DEPARTMENTS) is True

    def test_own_assignment_grants_visibility(self):
        actor = Actor(id="sales-1", roles=frozenset({ROLE_STAFF}), department=None)
        assert can_view_tasks(actor, [make_task(assignee_ids=["sales-1"])], DEPARTMENTS) is True

    def test_admin_sees_everything(self):
        assert can_view_tasks(admin, [], DEPARTMENTS) is True

    def test_project_without_tasks_is_hidden_from_non_admins(self):
        assert can_view_tasks(manager_eng, [], DEPARTMENTS) is False


class TestMutateTask:

    def test_owner_and_assignees_can_mutate(self):
        task = make_task(owner_id="eng-9", assignee_ids=["sales-1"])
        assert can_mutate_task(staff_eng, task, DEPARTMENTS)

        task = make_task(assignee_ids=["eng-9"])
        assert can_mutate_task(staff_eng, task, DEPARTMENTS)

    def test_staff_in_same_department_cannot_mutate(self):
        task = make_task(assignee_ids=["eng-1"])
        assert not can_mutate_task(staff_eng, task, DEPARTMENTS)

    def test_manager_needs_an_assignee_in_their_department(self):
        task = make_task(assignee_ids=["eng-1"])
        assert can_mutate_task(manager_eng, task, DEPARTMENTS)
        assert not can_mutate_task(manager_sales, task, DEPARTMENTS)

    def test_admin_can_mutate_anything(self):
        assert can_mutate_task(admin, make_task(assignee_ids=["sales-1"]), DEPARTMENTS)


class TestArchiveRules:

    def test_managers_archive_any_task(self):
        task = make_task(assignee_ids=["sales-1"])
        assert can_archive_task(manager_eng, task)
        assert not can_archive_task(staff_eng, task)

    def test_unarchive_is_for_owner_and_assignees_only(self):
        task = make_task(owner_id="owner", assignee_ids=["eng-1"])
        assert can_unarchive_task(Actor(id="owner"), task)
        assert can_unarchive_task(Actor(id="eng-1"), task)
        assert not can_unarchive_task(manager_eng, task)
        assert not can_unarchive_task(admin, task)


class TestAssigneeRules:

    def test_bulk_removal_needs_manager_or_admin(self):
        assert can_remove_assignees(manager_eng)
        assert can_remove_assignees(admin)
        assert not can_remove_assignees(staff_eng)

    def test_single_removal_also_allowed_for_owner(self):
        task = make_task(owner_id="eng-9")
        assert can_remove_assignee(staff_eng, task)
        assert not can_remove_assignee(Actor(id="eng-1"), task)

    def test_reassign_owner(self):
        task = make_task(owner_id="eng-9", assignee_ids=["eng-1"])
        assert can_reassign_owner(staff_eng, task)
        assert can_reassign_owner(manager_sales, task)
        assert not can_reassign_owner(Actor(id="eng-1"), task)


class TestSubtaskRules:

    def test_subtask_assignee_can_mutate(self):
        parent = make_task(assignee_ids=["sales-1"])
        subtask = Subtask(title="s", parent_task_id=uuid.uuid4(), project_id=uuid.uuid4(),
                          owner_id="owner", assignee_ids=["eng-9"])
        assert can_mutate_subtask(staff_eng, subtask, parent, DEPARTMENTS)

    def test_falls_back_to_parent_task_rules(self):
        parent = make_task(assignee_ids=["eng-1"])
        subtask = Subtask(title="s", parent_task_id=uuid.uuid4(), project_id=uuid.uuid4(),
                          owner_id="owner", assignee_ids=[])
        assert can_mutate_subtask(manager_eng, subtask, parent, DEPARTMENTS)
        assert not can_mutate_subtask(staff_eng, subtask, parent, DEPARTMENTS)


def test_project_access_is_owner_or_member():
    project = Project(name="P", owner_id="owner", member_ids=["eng-1"])
    assert has_project_access("owner", project)
    assert has_project_access("eng-1", project)
    assert not has_project_access("sales-1", project)
