"""Reusable FastAPI dependencies for owner resolution and store access.

Routers compose these instead of re-checking auth themselves: every endpoint
acts for exactly one owner, the user behind the bearer token.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Depends, HTTPException, status

from taskdesk.core.auth import AuthContext, get_auth_context
from taskdesk.db.session import get_session
from taskdesk.services.task_store import SqlTaskStore

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from taskdesk.models.users import User

AUTH_DEP = Depends(get_auth_context)
SESSION_DEP = Depends(get_session)


def require_owner(auth: AuthContext = AUTH_DEP) -> User:
    """Return the authenticated owner or fail with 401."""
    if auth.user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return auth.user


def get_task_store(session: AsyncSession = SESSION_DEP) -> SqlTaskStore:
    return SqlTaskStore(session)


OWNER_DEP = Depends(require_owner)
TASK_STORE_DEP = Depends(get_task_store)
