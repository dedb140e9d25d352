"""Owner authentication from a shared local bearer token."""

from __future__ import annotations

from dataclasses import dataclass
from hmac import compare_digest
from typing import TYPE_CHECKING, Literal

from fastapi import Depends, HTTPException, Request, status

from taskdesk.core.config import settings
from taskdesk.core.logging import get_logger
from taskdesk.db import crud
from taskdesk.db.session import get_session
from taskdesk.models.users import User

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)
SESSION_DEP = Depends(get_session)
LOCAL_AUTH_SUBJECT = "local-auth-user"
LOCAL_AUTH_EMAIL = "owner@home.local"
LOCAL_AUTH_NAME = "Local Owner"


@dataclass
class AuthContext:
    """Authenticated owner context resolved from inbound auth headers."""

    actor_type: Literal["user"]
    user: User | None = None


def _extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    value = authorization.strip()
    if not value.lower().startswith("bearer "):
        return None
    token = value.split(" ", maxsplit=1)[1].strip()
    return token or None


async def _get_or_create_local_user(session: AsyncSession) -> User:
    user, created = await crud.get_or_create(
        session,
        User,
        auth_subject=LOCAL_AUTH_SUBJECT,
        defaults={"email": LOCAL_AUTH_EMAIL, "name": LOCAL_AUTH_NAME},
    )
    if created:
        logger.info("auth.local.user_created", extra={"user_id": str(user.id)})
    return user


async def _resolve_auth_context(
    *,
    request: Request,
    session: AsyncSession,
    required: bool,
) -> AuthContext | None:
    token = _extract_bearer_token(request.headers.get("Authorization"))
    expected = settings.local_auth_token.strip()
    if token is None or not expected or not compare_digest(token, expected):
        if required:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
        return None
    user = await _get_or_create_local_user(session)
    return AuthContext(actor_type="user", user=user)


async def get_auth_context(
    request: Request,
    session: AsyncSession = SESSION_DEP,
) -> AuthContext:
    """Resolve the owner or fail with 401."""
    context = await _resolve_auth_context(request=request, session=session, required=True)
    if context is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return context


async def get_auth_context_optional(
    request: Request,
    session: AsyncSession = SESSION_DEP,
) -> AuthContext | None:
    return await _resolve_auth_context(request=request, session=session, required=False)
