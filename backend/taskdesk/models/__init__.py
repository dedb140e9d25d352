"""Model exports for SQLAlchemy/SQLModel metadata discovery."""

from taskdesk.models.archived_tasks import ArchivedTask
from taskdesk.models.notes import Note
from taskdesk.models.projects import Project
from taskdesk.models.tasks import Task
from taskdesk.models.users import User

__all__ = [
    "ArchivedTask",
    "Note",
    "Project",
    "Task",
    "User",
]
