#!/usr/bin/env python3
"""
Seed script for a local Taskgate database.

Creates users across departments and roles, then projects, tasks and
subtasks through the lifecycle services so every seeded row passes the
same validation as API traffic.

Usage:
    python -m scripts.seed [--departments 3] [--projects 4] [--tasks 10] [--clear]

Options:
    --departments N  Number of departments (default: 3)
    --users N        Staff users per department (default: 4)
    --projects N     Number of projects to create (default: 4)
    --tasks N        Tasks per project (default: 10)
    --clear          Clear existing data before seeding
"""

import argparse
import asyncio
import random
import time
from datetime import timedelta

from sqlalchemy import text

from taskgate.database import async_session_maker, get_session_context, init_db
from taskgate.models import User
from taskgate.models.common import ROLE_ADMIN, ROLE_MANAGER, ROLE_STAFF, VALID_STATUSES, utcnow
from taskgate.services.authorization import Actor
from taskgate.services.projects import ProjectService
from taskgate.services.subtasks import SubtaskService
from taskgate.services.tasks import TaskService
from taskgate.store import EntityStore

DEPARTMENT_NAMES = ["Engineering", "Finance", "Operations", "Sales", "HR", "Marketing"]
TIME_CHOICES = ["", "15 minutes", "30 minutes", "1 hour", "1 hour 30 minutes", "2 hours", "3 hours 45 minutes"]


async def clear_data():
    """Clear all existing data."""
    print("Clearing existing data...")
    async with async_session_maker() as session:
        await session.execute(text("TRUNCATE notifications, subtasks, tasks, projects, users CASCADE"))
        await session.commit()
    print("Data cleared.")


def build_users(num_departments: int, staff_per_department: int) -> list[User]:
    """One manager and N staff per department, plus a single admin."""
    users = [User(id="admin", username="admin", roles=[ROLE_ADMIN], department=None)]
    for department in DEPARTMENT_NAMES[:num_departments]:
        slug = department.lower()
        users.append(User(id=f"{slug}-manager", username=f"{slug}.manager", roles=[ROLE_MANAGER], department=department))
        for i in range(staff_per_department):
            users.append(User(id=f"{slug}-{i:02d}", username=f"{slug}.staff{i:02d}", roles=[ROLE_STAFF], department=department))
    return users


async def seed(users: list[User], num_projects: int, tasks_per_project: int) -> dict[str, int]:
    counts = {"projects": 0, "tasks": 0, "subtasks": 0}
    today = utcnow().date()

    async with get_session_context() as session:
        store = EntityStore(session)
        for user in users:
            await store.create(user)

        actors = [Actor.from_user(u) for u in users]
        staff = [a for a in actors if not a.is_admin]

        projects = ProjectService(store)
        tasks = TaskService(store)
        subtasks = SubtaskService(store)

        for p in range(num_projects):
            owner = random.choice(staff)
            members = random.sample([a.id for a in staff], k=min(6, len(staff)))
            project = await projects.create(
                {
                    "name": f"Project {p + 1:02d}",
                    "description": f"Seeded project {p + 1}",
                    "member_ids": list(dict.fromkeys([owner.id, *members])),
                    "priority": random.randint(1, 10),
                    "due_date": today + timedelta(days=random.randint(30, 120)),
                },
                owner,
            )
            counts["projects"] += 1

            for t in range(tasks_per_project):
                creator_id = random.choice(project.member_ids)
                creator = next(a for a in staff if a.id == creator_id)
                recurring = random.random() < 0.2
                others = [m for m in project.member_ids if m != creator.id]
                task = await tasks.create(
                    {
                        "title": f"P{p + 1:02d} Task {t + 1:03d}",
                        "project_id": project.id,
                        "status": random.choice(VALID_STATUSES),
                        "priority": random.randint(1, 10),
                        "due_date": today + timedelta(days=random.randint(1, 60)),
                        "assignee_ids": random.sample(others, k=min(len(others), random.randint(0, 3))),
                        "is_recurring": recurring,
                        "recurrence_interval": random.choice([1, 7, 14]) if recurring else None,
                        "time_taken": random.choice(TIME_CHOICES),
                    },
                    creator,
                )
                counts["tasks"] += 1

                for s in range(random.randint(0, 3)):
                    await subtasks.create(
                        {
                            "title": f"{task.title} / step {s + 1}",
                            "parent_task_id": task.id,
                            "assignee_ids": task.assignee_ids[:2],
                            "time_taken": random.choice(TIME_CHOICES),
                        },
                        creator,
                    )
                    counts["subtasks"] += 1


    return counts


async def main():
    parser = argparse.ArgumentParser(description="Seed the database with users, projects, tasks and subtasks")
    parser.add_argument("--departments", type=int, default=3, help="Number of departments")
    parser.add_argument("--users", type=int, default=4, help="Staff users per department")
    parser.add_argument("--projects", type=int, default=4, help="Number of projects to create")
    parser.add_argument("--tasks", type=int, default=10, help="Tasks per project")
    parser.add_argument("--clear", action="store_true", help="Clear existing data first")

    args = parser.parse_args()

    print("=== Taskgate Seed Script ===")

    # Initialize database
    await init_db()

    if args.clear:
        await clear_data()

    users = build_users(min(args.departments, len(DEPARTMENT_NAMES)), args.users)

    start_time = time.time()
    counts = await seed(users, args.projects, args.tasks)
    print(f"Insert time: {time.time() - start_time:.2f}s")

    print("\n=== Seeding Complete ===")
    print(f"Users:    {len(users)}")
    print(f"Projects: {counts['projects']}")
    print(f"Tasks:    {counts['tasks']}")
    print(f"Subtasks: {counts['subtasks']}")


if __name__ == "__main__":
    asyncio.run(main())
