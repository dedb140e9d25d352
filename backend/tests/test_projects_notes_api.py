# ruff: noqa: INP001
"""Integration tests for project and scoped-note endpoints."""

from __future__ import annotations

from collections.abc import AsyncIterator
from uuid import uuid4

import pytest
import pytest_asyncio
from fastapi import APIRouter, FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from taskdesk.api.notes import router as notes_router
from taskdesk.api.projects import router as projects_router
from taskdesk.core.config import settings
from taskdesk.core.error_handling import install_error_handling
from taskdesk.db.session import get_session
from taskdesk.models.projects import DEFAULT_PROJECT_COLOR
from taskdesk.services.notes import build_note_scope_key

AUTH_HEADERS = {"Authorization": f"Bearer {settings.local_auth_token}"}


async def _make_engine() -> AsyncEngine:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.connect() as conn, conn.begin():
        await conn.run_sync(SQLModel.metadata.create_all)
    return engine


def _build_test_app(session_maker: async_sessionmaker[AsyncSession]) -> FastAPI:
    app = FastAPI()
    install_error_handling(app)
    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(projects_router)
    api_v1.include_router(notes_router)
    app.include_router(api_v1)

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_session] = _override_get_session
    return app


@pytest_asyncio.fixture
async def client() -> AsyncIterator[AsyncClient]:
    engine = await _make_engine()
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with AsyncClient(
            transport=ASGITransport(app=_build_test_app(session_maker)),
            base_url="http://testserver",
            headers=AUTH_HEADERS,
        ) as http_client:
            yield http_client
    finally:
        await engine.dispose()


def test_scope_key_normalizes_project_and_fills_blanks() -> None:
    assert build_note_scope_key("  Work ", "2025-01-10") == "work::2025-01-10"
    assert build_note_scope_key(None, "2025-01-10") == "__null__::2025-01-10"
    assert build_note_scope_key("Work", None) == "work::__null__"
    assert build_note_scope_key("   ", None) == "__null__::__null__"


@pytest.mark.asyncio
async def test_project_lifecycle(client: AsyncClient) -> None:
    created = await client.post("/api/v1/projects", json={"name": "  Work  "})
    assert created.status_code == 200
    project = created.json()
    assert project["name"] == "Work"
    assert project["color"] == DEFAULT_PROJECT_COLOR
    assert project["active"] is True

    updated = await client.patch(
        f"/api/v1/projects/{project['id']}",
        json={"color": "#ff0000"},
    )
    assert updated.json()["name"] == "Work"
    assert updated.json()["color"] == "#ff0000"

    await client.delete(f"/api/v1/projects/{project['id']}")

    active = (await client.get("/api/v1/projects")).json()
    everything = (await client.get("/api/v1/projects", params={"include_inactive": True})).json()
    assert active == []
    assert [item["id"] for item in everything] == [project["id"]]

    # Soft-deleted projects cannot be edited any more.
    gone = await client.patch(f"/api/v1/projects/{project['id']}", json={"name": "Again"})
    assert gone.status_code == 404


@pytest.mark.asyncio
async def test_project_name_must_not_be_blank(client: AsyncClient) -> None:
    assert (await client.post("/api/v1/projects", json={"name": "  "})).status_code == 422


@pytest.mark.asyncio
async def test_unknown_project_is_404(client: AsyncClient) -> None:
    resp = await client.delete(f"/api/v1/projects/{uuid4()}")

    assert resp.status_code == 404
    assert resp.json()["detail"] == "Project not found"


@pytest.mark.asyncio
async def test_note_upsert_replaces_text_for_same_scope(client: AsyncClient) -> None:
    first = await client.put(
        "/api/v1/notes",
        json={"project_name": "Work", "note_date": "2025-01-10", "note_text": "draft"},
    )
    second = await client.put(
        "/api/v1/notes",
        json={"project_name": " work ", "note_date": "2025-01-10T08:00:00Z", "note_text": "final"},
    )

    assert first.status_code == 200
    assert second.status_code == 200
    assert second.json()["id"] == first.json()["id"]
    assert second.json()["note_text"] == "final"
    assert second.json()["scope_key"] == "work::2025-01-10"


@pytest.mark.asyncio
async def test_note_scope_lookup(client: AsyncClient) -> None:
    await client.put("/api/v1/notes", json={"note_text": "global"})

    found = await client.get("/api/v1/notes/scope")
    missing = await client.get("/api/v1/notes/scope", params={"note_date": "2025-01-10"})

    assert found.json()["note_text"] == "global"
    assert found.json()["scope_key"] == "__null__::__null__"
    assert missing.status_code == 200
    assert missing.json() is None


@pytest.mark.asyncio
async def test_note_resolves_project_name_from_id(client: AsyncClient) -> None:
    project = (await client.post("/api/v1/projects", json={"name": "Garden"})).json()

    note = await client.put(
        "/api/v1/notes",
        json={"project_id": project["id"], "note_text": "plant tulips"},
    )

    assert note.status_code == 200
    assert note.json()["project_name"] == "Garden"
    assert note.json()["scope_key"] == "garden::__null__"

    by_project = await client.get("/api/v1/notes", params={"project_id": project["id"]})
    assert [item["note_text"] for item in by_project.json()] == ["plant tulips"]


@pytest.mark.asyncio
async def test_note_for_unknown_project_is_404(client: AsyncClient) -> None:
    resp = await client.put(
        "/api/v1/notes",
        json={"project_id": str(uuid4()), "note_text": "x"},
    )

    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_list_notes_by_date(client: AsyncClient) -> None:
    await client.put("/api/v1/notes", json={"note_date": "2025-01-10", "note_text": "a"})
    await client.put(
        "/api/v1/notes",
        json={"project_name": "Work", "note_date": "2025-01-10", "note_text": "b"},
    )
    await client.put("/api/v1/notes", json={"note_date": "2025-01-11", "note_text": "c"})

    resp = await client.get("/api/v1/notes", params={"note_date": "2025-01-10"})

    assert resp.status_code == 200
    assert {item["note_text"] for item in resp.json()} == {"a", "b"}


@pytest.mark.asyncio
async def test_list_notes_needs_a_filter(client: AsyncClient) -> None:
    resp = await client.get("/api/v1/notes")

    assert resp.status_code == 422
    assert resp.json()["detail"] == "Provide project_id or note_date"


@pytest.mark.asyncio
async def test_scope_lookup_reads_each_query_parameter(client: AsyncClient) -> None:
    await client.put("/api/v1/notes", json={"note_text": "global"})
    await client.put("/api/v1/notes", json={"note_date": "2025-01-10", "note_text": "dated"})
    await client.put(
        "/api/v1/notes",
        json={"project_name": "Work", "note_date": "2025-01-10", "note_text": "work day"},
    )

    dated = await client.get("/api/v1/notes/scope", params={"note_date": "2025-01-10"})
    work_day = await client.get(
        "/api/v1/notes/scope",
        params={"project_name": "Work", "note_date": "2025-01-10"},
    )
    work_any = await client.get("/api/v1/notes/scope", params={"project_name": "Work"})

    assert dated.json()["note_text"] == "dated"
    assert work_day.json()["note_text"] == "work day"
    assert work_any.json() is None


def test_note_routes_declare_every_query_parameter() -> None:
    app = FastAPI()
    app.include_router(notes_router)
    paths = app.openapi()["paths"]

    def _query_names(path: str) -> set[str]:
        parameters = paths[path]["get"].get("parameters", [])
        return {param["name"] for param in parameters if param["in"] == "query"}

    assert _query_names("/notes/scope") == {"project_name", "note_date"}
    assert _query_names("/notes") == {"project_id", "note_date"}
