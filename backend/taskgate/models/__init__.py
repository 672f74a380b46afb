from taskgate.models.user import User
from taskgate.models.project import Project
from taskgate.models.task import Task
from taskgate.models.subtask import Subtask
from taskgate.models.notification import Notification

__all__ = [
    "User",
    "Project",
    "Task",
    "Subtask",
    "Notification",
]
