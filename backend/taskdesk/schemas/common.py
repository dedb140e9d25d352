"""Shared response payloads."""

from __future__ import annotations

from sqlmodel import SQLModel


class OkResponse(SQLModel):
    """Acknowledgement for mutations with nothing else to return."""

    ok: bool = True
