"""
Project routes for the Taskgate API.
"""

import uuid
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskgate.auth import get_current_actor
from taskgate.database import get_session
from taskgate.exceptions import ErrorResponse
from taskgate.models import Project, Task
from taskgate.schemas import ProjectCreate, ProjectUpdate, ProjectRead, ProjectWithAccessRead, TaskRead
from taskgate.services.authorization import Actor
from taskgate.services.projects import ProjectService
from taskgate.services.tasks import TaskService
from taskgate.store import EntityStore

router = APIRouter(
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    }
)


def get_project_service(session: AsyncSession = Depends(get_session)) -> ProjectService:
    return ProjectService(EntityStore(session))


@router.post("/", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_in: ProjectCreate,
    service: ProjectService = Depends(get_project_service),
    actor: Actor = Depends(get_current_actor),
) -> Project:
    """Create a new project owned by the caller."""
    return await service.create(project_in.model_dump(exclude_unset=True), actor)


@router.get("/", response_model=list[ProjectWithAccessRead])
async def list_projects(
    service: ProjectService = Depends(get_project_service),
    actor: Actor = Depends(get_current_actor),
) -> list[ProjectWithAccessRead]:
    """
    List all projects.

    Each entry carries ``can_view_tasks`` for the caller.
    """
    entries = await service.list_with_access(actor)
    return [
        ProjectWithAccessRead(
            **ProjectRead.model_validate(entry.project).model_dump(),
            can_view_tasks=entry.can_view_tasks,
        )
        for entry in entries
    ]


@router.get("/mine", response_model=list[ProjectRead])
async def list_my_projects(
    service: ProjectService = Depends(get_project_service),
    actor: Actor = Depends(get_current_actor),
) -> list[Project]:
    """Projects the caller owns or is a member of."""
    return await service.list_for_member(actor)


@router.get("/{project_id}", response_model=ProjectRead)
async def get_project(
    project_id: uuid.UUID,
    service: ProjectService = Depends(get_project_service),
    actor: Actor = Depends(get_current_actor),
) -> Project:
    """Get a project by ID."""
    return await service.get(project_id)


@router.get("/{project_id}/tasks", response_model=list[TaskRead])
async def list_project_tasks(
    project_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
) -> list[Task]:
    """Active tasks of a project, if the caller may view them."""
    return await TaskService(EntityStore(session)).list_project_tasks(project_id, actor)


@router.patch("/{project_id}", response_model=ProjectRead)
async def update_project(
    project_id: uuid.UUID,
    project_in: ProjectUpdate,
    service: ProjectService = Depends(get_project_service),
    actor: Actor = Depends(get_current_actor),
) -> Project:
    """
    Update a project.

    Setting ``archived`` archives or unarchives every task and subtask in it.
    """
    return await service.update(project_id, project_in.model_dump(exclude_unset=True), actor)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: uuid.UUID,
    service: ProjectService = Depends(get_project_service),
    actor: Actor = Depends(get_current_actor),
) -> None:
    """Delete a project. Its tasks are kept."""
    await service.delete(project_id, actor)
