"""
Tests for owner reassignment and single-member assignee changes.

The single-member paths (add_assignee / remove_assignee) must end in the
same state as the equivalent bulk update.
"""

import logging

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from taskgate.exceptions import CapacityError, NotFoundError, PermissionDeniedError
from taskgate.models import Notification
from taskgate.services.notifications import NotificationSink
from taskgate.services.tasks import TaskService

from conftest import FailingSink, fixed_clock, future


@pytest_asyncio.fixture
async def task(tasks, project, actors):
    return await tasks.create(
        {"title": "Release", "project_id": project.id, "assignee_ids": ["u2"], "due_date": future(5)},
        actors["u1"],
    )


class TestSingleVersusBulk:

    @pytest.mark.asyncio
    async def test_adding_one_assignee_matches_bulk_update(self, tasks, project, actors):
        single = await tasks.create({"title": "A", "project_id": project.id}, actors["u1"])
        bulk = await tasks.create({"title": "B", "project_id": project.id}, actors["u1"])

        single = await tasks.add_assignee(single.id, "u2", actors["u1"])
        bulk = await tasks.update(bulk.id, {"assignee_ids": [*bulk.assignee_ids, "u2"]}, actors["u1"])

        assert single.assignee_ids == bulk.assignee_ids == ["u1", "u2"]

    @pytest.mark.asyncio
    async def test_removing_one_assignee_matches_bulk_update(self, tasks, project, actors):
        single = await tasks.create({"title": "A", "project_id": project.id, "assignee_ids": ["u2"]}, actors["u1"])
        bulk = await tasks.create({"title": "B", "project_id": project.id, "assignee_ids": ["u2"]}, actors["u1"])

        single = await tasks.remove_assignee(single.id, "u2", actors["mgr"])
        bulk = await tasks.update(bulk.id, {"assignee_ids": ["u1"]}, actors["mgr"])

        assert single.assignee_ids == bulk.assignee_ids == ["u1"]

    @pytest.mark.asyncio
    async def test_sixth_assignee_rejected_on_both_paths(self, tasks, project, actors):
        task = await tasks.create(
            {"title": "Full", "project_id": project.id, "assignee_ids": ["u2", "u4", "u5", "u6"]},
            actors["u1"],
        )

        with pytest.raises(CapacityError):
            await tasks.add_assignee(task.id, "mgr", actors["u1"])
        with pytest.raises(CapacityError):
            await tasks.update(task.id, {"assignee_ids": [*task.assignee_ids, "mgr"]}, actors["u1"])


class TestMinimumAssignees:

    @pytest.mark.asyncio
    async def test_bulk_update_cannot_empty_the_list(self, tasks, task, actors):
        with pytest.raises(CapacityError, match="At least one assignee is required"):
            await tasks.update(task.id, {"assignee_ids": []}, actors["mgr"])

    @pytest.mark.asyncio
    async def test_single_removal_cannot_remove_the_last_assignee(self, tasks, project, actors):
        task = await tasks.create({"title": "Solo", "project_id": project.id}, actors["u1"])
        with pytest.raises(CapacityError, match="At least one assignee is required"):
            await tasks.remove_assignee(task.id, "u1", actors["u1"])

    @pytest.mark.asyncio
    async def test_reassigning_to_sole_assignee_leaves_no_other_assignees(self, tasks, project, actors):
        task = await tasks.create({"title": "Solo", "project_id": project.id}, actors["u1"])

        task = await tasks.assign_owner(task.id, "u1", actors["mgr"])

        assert task.owner_id == "u1"
        assert task.assignee_ids == []


class TestAddRemoveAssignee:

    @pytest.mark.asyncio
    async def test_add_requires_project_membership(self, tasks, task, actors):
        with pytest.raises(PermissionDeniedError, match="User must be a member of the task's project"):
            await tasks.add_assignee(task.id, "u3", actors["u1"])

    @pytest.mark.asyncio
    async def test_add_unknown_user(self, tasks, task, actors):
        with pytest.raises(NotFoundError, match="User not found"):
            await tasks.add_assignee(task.id, "ghost", actors["u1"])

    @pytest.mark.asyncio
    async def test_add_existing_assignee_is_a_no_op(self, tasks, task, actors):
        task = await tasks.add_assignee(task.id, "u2", actors["u1"])
        assert task.assignee_ids == ["u1", "u2"]

    @pytest.mark.asyncio
    async def test_outsider_cannot_add(self, tasks, task, actors):
        with pytest.raises(PermissionDeniedError):
            await tasks.add_assignee(task.id, "u4", actors["u5"])

    @pytest.mark.asyncio
    async def test_owner_can_remove(self, tasks, task, actors):
        task = await tasks.remove_assignee(task.id, "u2", actors["u1"])
        assert task.assignee_ids == ["u1"]

    @pytest.mark.asyncio
    async def test_plain_assignee_cannot_remove(self, tasks, task, actors):
        with pytest.raises(PermissionDeniedError, match="Only the task owner or a manager can remove assignees"):
            await tasks.remove_assignee(task.id, "u1", actors["u2"])

    @pytest.mark.asyncio
    async def test_remove_someone_not_assigned(self, tasks, task, actors):
        with pytest.raises(NotFoundError, match="User is not assigned to this task"):
            await tasks.remove_assignee(task.id, "u4", actors["u1"])


class TestAssignOwner:

    @pytest.mark.asyncio
    async def test_previous_owner_stays_assigned(self, tasks, task, actors, sink):
        task = await tasks.assign_owner(task.id, "u2", actors["u1"])

        assert task.owner_id == "u2"
        assert task.assignee_ids == ["u1"]

        assert len(sink.sent) == 1
        notification = sink.sent[0]
        assert notification["recipient_id"] == "u2"
        assert notification["acting_user_id"] == "u1"
        assert notification["deadline"] == future(5)
        assert notification["task_id"] == task.id

    @pytest.mark.asyncio
    async def test_new_owner_by_username(self, tasks, task, actors):
        task = await tasks.assign_owner(task.id, "dave", actors["u1"])
        assert task.owner_id == "u4"
        assert task.assignee_ids == ["u1", "u2"]

    @pytest.mark.asyncio
    async def test_plain_assignee_cannot_reassign(self, tasks, task, actors):
        with pytest.raises(PermissionDeniedError, match="Insufficient permissions to reassign this task"):
            await tasks.assign_owner(task.id, "u4", actors["u2"])

    @pytest.mark.asyncio
    async def test_unknown_new_owner(self, tasks, task, actors):
        with pytest.raises(NotFoundError, match="User not found"):
            await tasks.assign_owner(task.id, "nobody", actors["u1"])

    @pytest.mark.asyncio
    async def test_new_owner_must_be_project_member(self, tasks, task, actors):
        with pytest.raises(PermissionDeniedError, match="New owner must be a member of the task's project"):
            await tasks.assign_owner(task.id, "u3", actors["u1"])

    @pytest.mark.asyncio
    async def test_capacity_counts_owner_and_everyone_kept(self, tasks, project, actors):
        task = await tasks.create(
            {"title": "Full", "project_id": project.id, "assignee_ids": ["u2", "u4", "u5", "u6"]},
            actors["u1"],
        )
        with pytest.raises(CapacityError):
            await tasks.assign_owner(task.id, "mgr", actors["u1"])

    @pytest.mark.asyncio
    async def test_notification_failure_keeps_reassignment(self, store, task, actors, caplog):
        service = TaskService(store, notifications=FailingSink(), clock=fixed_clock)

        with caplog.at_level(logging.WARNING, logger="taskgate.services.tasks"):
            updated = await service.assign_owner(task.id, "u2", actors["u1"])

        assert updated.owner_id == "u2"
        reloaded = await service.get(task.id)
        assert reloaded.owner_id == "u2"
        assert any("Failed to notify new owner" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_notification_sink_persists_rows(test_engine):
    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    sink = NotificationSink(session_factory)

    created = await sink.create("u2", "You are now the owner of task 'Release'", acting_user_id="u1")

    async with session_factory() as session:
        result = await session.execute(select(Notification))
        rows = list(result.scalars().all())

    assert [n.id for n in rows] == [created.id]
    assert rows[0].recipient_id == "u2"
    assert rows[0].read is False
