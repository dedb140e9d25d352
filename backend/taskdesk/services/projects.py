"""Project CRUD with soft deletion."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import HTTPException, status
from sqlmodel import col, select

from taskdesk.core.time import utcnow
from taskdesk.models.projects import DEFAULT_PROJECT_COLOR, Project

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from taskdesk.schemas.projects import ProjectCreate, ProjectUpdate


async def list_projects(
    session: AsyncSession,
    *,
    owner_id: UUID,
    include_inactive: bool = False,
) -> list[Project]:
    """List the owner's projects, newest first."""
    statement = select(Project).where(col(Project.owner_id) == owner_id)
    if not include_inactive:
        statement = statement.where(col(Project.active).is_(True))
    statement = statement.order_by(col(Project.created_at).desc())
    return list(await session.exec(statement))


async def get_project_or_404(
    session: AsyncSession,
    *,
    owner_id: UUID,
    project_id: UUID,
    include_inactive: bool = False,
) -> Project:
    project = await session.get(Project, project_id)
    if project is None or project.owner_id != owner_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    if not project.active and not include_inactive:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return project


async def create_project(
    session: AsyncSession,
    *,
    owner_id: UUID,
    payload: ProjectCreate,
) -> Project:
    project = Project(
        owner_id=owner_id,
        name=payload.name,
        color=payload.color or DEFAULT_PROJECT_COLOR,
    )
    session.add(project)
    await session.commit()
    await session.refresh(project)
    return project


async def update_project(
    session: AsyncSession,
    *,
    project: Project,
    payload: ProjectUpdate,
) -> Project:
    """Rename or recolor a project.

    Archived tasks keep the name they were archived with; a rename only affects
    active views.
    """
    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    for key, value in updates.items():
        setattr(project, key, value)
    project.updated_at = utcnow()
    session.add(project)
    await session.commit()
    await session.refresh(project)
    return project


async def deactivate_project(session: AsyncSession, *, project: Project) -> Project:
    """Soft-delete: hide from active views but keep the name resolvable."""
    if not project.active:
        return project
    project.active = False
    project.updated_at = utcnow()
    session.add(project)
    await session.commit()
    await session.refresh(project)
    return project
