# ruff: noqa: INP001
"""Error bodies, request ids, and request logging on the task and archive routes."""

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

from taskdesk.api.archive import router as archive_router
from taskdesk.api.tasks import router as tasks_router
from taskdesk.core import error_handling
from taskdesk.core.config import settings
from taskdesk.core.error_handling import REQUEST_ID_HEADER, install_error_handling
from taskdesk.db.session import get_session
from taskdesk.services import tasks as task_service
from taskdesk.services.task_store import SqlTaskStore, StoreError

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
    api_v1.include_router(tasks_router)
    api_v1.include_router(archive_router)
    app.include_router(api_v1)

    @app.get("/healthz")
    def healthz() -> dict[str, bool]:
        return {"ok": True}

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_session] = _override_get_session
    return app


@pytest_asyncio.fixture
async def client() -> AsyncIterator[AsyncClient]:
    engine = await _make_engine()
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    transport = ASGITransport(app=_build_test_app(session_maker), raise_app_exceptions=False)
    try:
        async with AsyncClient(
            transport=transport,
            base_url="http://testserver",
            headers=AUTH_HEADERS,
        ) as http_client:
            yield http_client
    finally:
        await engine.dispose()


def _request_id(resp) -> str:
    body = resp.json()
    assert isinstance(body.get("request_id"), str) and body["request_id"]
    assert resp.headers.get(REQUEST_ID_HEADER) == body["request_id"]
    return body["request_id"]


@pytest.mark.asyncio
async def test_blank_task_title_is_422_with_field_errors(client: AsyncClient) -> None:
    resp = await client.post("/api/v1/tasks", json={"title": "   "})

    assert resp.status_code == 422
    errors = resp.json()["detail"]
    assert isinstance(errors, list)
    assert errors[0]["loc"][-1] == "title"
    _request_id(resp)


@pytest.mark.asyncio
async def test_non_json_task_body_is_422_not_500(client: AsyncClient) -> None:
    resp = await client.post(
        "/api/v1/tasks",
        content=b"\xffnot json",
        headers={"content-type": "text/plain"},
    )

    assert resp.status_code == 422
    _request_id(resp)


@pytest.mark.asyncio
async def test_archive_read_failure_is_503(
    client: AsyncClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def _unreadable(self: SqlTaskStore, owner_id: object) -> list:
        _ = (self, owner_id)
        raise StoreError("list_active_tasks failed")

    monkeypatch.setattr(SqlTaskStore, "list_active_tasks", _unreadable)

    resp = await client.post("/api/v1/archive/run")

    assert resp.status_code == 503
    assert resp.json()["detail"] == "Could not read tasks; nothing was archived"
    _request_id(resp)


@pytest.mark.asyncio
async def test_missing_archive_entry_keeps_client_request_id(client: AsyncClient) -> None:
    resp = await client.delete(
        f"/api/v1/archive/{uuid4()}",
        headers={REQUEST_ID_HEADER: "  req-123  "},
    )

    assert resp.status_code == 404
    assert resp.json()["detail"] == "Archived task not found"
    assert _request_id(resp) == "req-123"


@pytest.mark.asyncio
async def test_oversized_client_request_id_is_replaced(client: AsyncClient) -> None:
    resp = await client.delete(
        f"/api/v1/archive/{uuid4()}",
        headers={REQUEST_ID_HEADER: "x" * 500},
    )

    assert resp.status_code == 404
    assert _request_id(resp) != "x" * 500


@pytest.mark.asyncio
async def test_bad_token_is_401_with_request_id(client: AsyncClient) -> None:
    resp = await client.get("/api/v1/tasks", headers={"Authorization": "Bearer nope"})

    assert resp.status_code == 401
    _request_id(resp)


@pytest.mark.asyncio
async def test_unexpected_failure_is_opaque_500(
    client: AsyncClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def _broken(*args: object, **kwargs: object) -> list:
        _ = (args, kwargs)
        raise RuntimeError("connection reset while listing tasks")

    monkeypatch.setattr(task_service, "list_tasks", _broken)

    resp = await client.get("/api/v1/tasks/dashboard")

    assert resp.status_code == 500
    assert resp.json()["detail"] == "Internal Server Error"
    assert "connection reset" not in resp.text
    _request_id(resp)


@pytest.mark.asyncio
async def test_slow_dashboard_request_logs_warning(
    client: AsyncClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    warnings: list[tuple[str, dict[str, object]]] = []

    def _fake_warning(message: str, *args: object, **kwargs: object) -> None:
        _ = args
        extra = kwargs.get("extra")
        warnings.append((message, extra if isinstance(extra, dict) else {}))

    perf_ticks = iter((50.0, 52.5))

    monkeypatch.setattr(error_handling.settings, "request_log_slow_ms", 2000)
    monkeypatch.setattr(error_handling, "perf_counter", lambda: next(perf_ticks))
    monkeypatch.setattr(error_handling.logger, "warning", _fake_warning)

    resp = await client.get("/api/v1/tasks/dashboard")

    assert resp.status_code == 200
    slow = [extra for message, extra in warnings if message == "http.request.slow"]
    assert len(slow) == 1
    assert slow[0]["path"] == "/api/v1/tasks/dashboard"
    assert slow[0]["duration_ms"] == 2500.0
    assert slow[0]["slow_threshold_ms"] == 2000


@pytest.mark.asyncio
@pytest.mark.parametrize(("include_health", "expected"), [(False, 0), (True, 1)])
async def test_health_probe_logging_follows_setting(
    client: AsyncClient,
    monkeypatch: pytest.MonkeyPatch,
    include_health: bool,
    expected: int,
) -> None:
    paths: list[object] = []

    def _fake_info(message: str, *args: object, **kwargs: object) -> None:
        _ = args
        extra = kwargs.get("extra")
        if message == "http.request" and isinstance(extra, dict):
            paths.append(extra.get("path"))

    monkeypatch.setattr(error_handling.settings, "request_log_include_health", include_health)
    monkeypatch.setattr(error_handling.logger, "info", _fake_info)

    resp = await client.get("/healthz")

    assert resp.status_code == 200
    assert resp.headers.get(REQUEST_ID_HEADER)
    assert paths.count("/healthz") == expected
