from taskgate.schemas.project import ProjectCreate, ProjectUpdate, ProjectRead, ProjectWithAccessRead
from taskgate.schemas.task import (
    TaskCreate,
    TaskUpdate,
    TaskRead,
    TaskTimeRead,
    AssignOwnerRequest,
    AssigneeRequest,
)
from taskgate.schemas.subtask import SubtaskCreate, SubtaskUpdate, SubtaskRead
from taskgate.schemas.notification import NotificationRead

__all__ = [
    "ProjectCreate",
    "ProjectUpdate",
    "ProjectRead",
    "ProjectWithAccessRead",
    "TaskCreate",
    "TaskUpdate",
    "TaskRead",
    "TaskTimeRead",
    "AssignOwnerRequest",
    "AssigneeRequest",
    "SubtaskCreate",
    "SubtaskUpdate",
    "SubtaskRead",
    "NotificationRead",
]
