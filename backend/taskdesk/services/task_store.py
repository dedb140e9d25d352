"""Record operations the archive engine needs from persistence.

``TaskStore`` is the narrow contract the archive engine runs against; it does
not care how records are transported. ``SqlTaskStore`` implements it on an
``AsyncSession``. Every write commits on its own and rolls back on failure, so
a failed insert never leaves a partial archive row behind.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, select

from taskdesk.core.logging import get_logger
from taskdesk.models.archived_tasks import ArchivedTask
from taskdesk.models.projects import Project
from taskdesk.models.tasks import Task

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)


class StoreError(RuntimeError):
    """A store operation failed and its effects were rolled back."""


class TaskStore(Protocol):
    async def list_active_tasks(self, owner_id: UUID) -> list[Task]: ...

    async def list_projects(
        self,
        owner_id: UUID,
        *,
        include_inactive: bool,
    ) -> list[Project]: ...

    async def insert_archived_task(self, record: ArchivedTask) -> ArchivedTask: ...

    async def delete_task(self, owner_id: UUID, task_id: UUID) -> bool: ...

    async def delete_archived_task(self, owner_id: UUID, archived_id: UUID) -> bool: ...

    async def delete_all_archived_tasks(self, owner_id: UUID) -> int: ...

    async def list_archived_tasks(self, owner_id: UUID) -> list[ArchivedTask]: ...


class SqlTaskStore:
    """``TaskStore`` backed by a SQLModel async session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _read(self, statement, *, operation: str) -> list:
        try:
            return list(await self.session.exec(statement))
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.warning("store.read_failed", extra={"operation": operation})
            raise StoreError(f"{operation} failed") from exc

    async def _delete(self, statement, *, operation: str) -> int:
        try:
            result = await self.session.exec(statement)
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.warning("store.write_failed", extra={"operation": operation})
            raise StoreError(f"{operation} failed") from exc
        return int(result.rowcount or 0)

    async def list_active_tasks(self, owner_id: UUID) -> list[Task]:
        statement = (
            select(Task)
            .where(col(Task.owner_id) == owner_id)
            .order_by(col(Task.created_at).desc())
        )
        return await self._read(statement, operation="list_active_tasks")

    async def list_projects(
        self,
        owner_id: UUID,
        *,
        include_inactive: bool,
    ) -> list[Project]:
        statement = select(Project).where(col(Project.owner_id) == owner_id)
        if not include_inactive:
            statement = statement.where(col(Project.active).is_(True))
        statement = statement.order_by(col(Project.created_at).desc())
        return await self._read(statement, operation="list_projects")

    async def insert_archived_task(self, record: ArchivedTask) -> ArchivedTask:
        task_id = str(record.original_task_id)
        self.session.add(record)
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.warning(
                "store.write_failed",
                extra={"operation": "insert_archived_task", "task_id": task_id},
            )
            raise StoreError("insert_archived_task failed") from exc
        return record

    async def delete_task(self, owner_id: UUID, task_id: UUID) -> bool:
        statement = delete(Task).where(
            col(Task.id) == task_id,
            col(Task.owner_id) == owner_id,
        )
        return await self._delete(statement, operation="delete_task") > 0

    async def delete_archived_task(self, owner_id: UUID, archived_id: UUID) -> bool:
        statement = delete(ArchivedTask).where(
            col(ArchivedTask.id) == archived_id,
            col(ArchivedTask.owner_id) == owner_id,
        )
        return await self._delete(statement, operation="delete_archived_task") > 0

    async def delete_all_archived_tasks(self, owner_id: UUID) -> int:
        statement = delete(ArchivedTask).where(col(ArchivedTask.owner_id) == owner_id)
        return await self._delete(statement, operation="delete_all_archived_tasks")

    async def list_archived_tasks(self, owner_id: UUID) -> list[ArchivedTask]:
        statement = (
            select(ArchivedTask)
            .where(col(ArchivedTask.owner_id) == owner_id)
            .order_by(col(ArchivedTask.moved_at).desc())
        )
        return await self._read(statement, operation="list_archived_tasks")
