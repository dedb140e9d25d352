"""Project endpoints: list, create, rename/recolor, soft delete."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, Query

from taskdesk.api.deps import OWNER_DEP, SESSION_DEP
from taskdesk.schemas.projects import ProjectCreate, ProjectRead, ProjectUpdate
from taskdesk.services import projects as project_service

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from taskdesk.models.users import User

router = APIRouter(prefix="/projects", tags=["projects"])
INCLUDE_INACTIVE_QUERY = Query(default=False)


@router.get("", response_model=list[ProjectRead])
async def list_projects(
    include_inactive: bool = INCLUDE_INACTIVE_QUERY,
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> list[ProjectRead]:
    """List projects, hiding soft-deleted ones unless asked."""
    projects = await project_service.list_projects(
        session,
        owner_id=owner.id,
        include_inactive=include_inactive,
    )
    return [ProjectRead.model_validate(p, from_attributes=True) for p in projects]


@router.post("", response_model=ProjectRead)
async def create_project(
    payload: ProjectCreate,
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> ProjectRead:
    project = await project_service.create_project(session, owner_id=owner.id, payload=payload)
    return ProjectRead.model_validate(project, from_attributes=True)


@router.patch("/{project_id}", response_model=ProjectRead)
async def update_project(
    project_id: UUID,
    payload: ProjectUpdate,
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> ProjectRead:
    project = await project_service.get_project_or_404(
        session,
        owner_id=owner.id,
        project_id=project_id,
    )
    project = await project_service.update_project(session, project=project, payload=payload)
    return ProjectRead.model_validate(project, from_attributes=True)


@router.delete("/{project_id}", response_model=ProjectRead)
async def delete_project(
    project_id: UUID,
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> ProjectRead:
    """Soft-delete a project; its name stays resolvable for archived tasks."""
    project = await project_service.get_project_or_404(
        session,
        owner_id=owner.id,
        project_id=project_id,
        include_inactive=True,
    )
    project = await project_service.deactivate_project(session, project=project)
    return ProjectRead.model_validate(project, from_attributes=True)
