"""Small generic persistence helpers shared across services."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlmodel import SQLModel, col, select

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

ModelT = TypeVar("ModelT", bound=SQLModel)


async def get_one_by(session: AsyncSession, model: type[ModelT], **filters: Any) -> ModelT | None:
    statement = select(model)
    for key, value in filters.items():
        statement = statement.where(col(getattr(model, key)) == value)
    result = await session.exec(statement)
    return result.first()


async def get_or_create(
    session: AsyncSession,
    model: type[ModelT],
    *,
    defaults: dict[str, Any] | None = None,
    **lookup: Any,
) -> tuple[ModelT, bool]:
    """Fetch the row matching *lookup*, creating it with *defaults* if absent.

    Losing a concurrent insert race on a unique lookup column falls back to
    re-reading the row the other writer created.
    """
    existing = await get_one_by(session, model, **lookup)
    if existing is not None:
        return existing, False

    instance = model(**lookup, **(defaults or {}))
    session.add(instance)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        existing = await get_one_by(session, model, **lookup)
        if existing is None:
            raise
        return existing, False
    await session.refresh(instance)
    return instance, True
