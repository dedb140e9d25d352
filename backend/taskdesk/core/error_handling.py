"""Request-id propagation, request logging, and uniform JSON error responses."""

from __future__ import annotations

from time import perf_counter
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.responses import JSONResponse
from starlette.datastructures import MutableHeaders
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskdesk.core.config import settings
from taskdesk.core.logging import get_logger

if TYPE_CHECKING:
    from fastapi import FastAPI
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

REQUEST_ID_HEADER = "X-Request-Id"
HEALTH_PATHS = frozenset({"/health", "/healthz", "/readyz"})
_MAX_REQUEST_ID_LENGTH = 128

logger = get_logger(__name__)


def _incoming_request_id(scope: Scope) -> str | None:
    wanted = REQUEST_ID_HEADER.lower().encode("latin-1")
    for key, value in scope.get("headers") or []:
        if key.lower() == wanted:
            cleaned = value.decode("latin-1").strip()
            if cleaned and len(cleaned) <= _MAX_REQUEST_ID_LENGTH:
                return cleaned
    return None


def _get_request_id(request: Request) -> str | None:
    state = request.scope.get("state")
    if not isinstance(state, dict):
        return None
    request_id = state.get("request_id")
    if isinstance(request_id, str) and request_id:
        return request_id
    return None


def _error_payload(*, detail: Any, request_id: str | None) -> dict[str, Any]:
    payload: dict[str, Any] = {"detail": detail}
    if request_id is not None:
        payload["request_id"] = request_id
    return payload


def _json_error(
    request: Request,
    *,
    status_code: int,
    detail: Any,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    request_id = _get_request_id(request)
    response_headers = dict(headers or {})
    if request_id is not None:
        response_headers[REQUEST_ID_HEADER] = request_id
    return JSONResponse(
        status_code=status_code,
        content=_error_payload(detail=detail, request_id=request_id),
        headers=response_headers,
    )


def _sanitize_validation_errors(errors: Any) -> Any:
    sanitized: list[Any] = []
    for error in errors:
        if isinstance(error, dict) and isinstance(error.get("input"), (bytes, bytearray)):
            error = {**error, "input": bytes(error["input"]).decode("utf-8", errors="replace")}
        sanitized.append(error)
    return jsonable_encoder(sanitized)


async def _request_validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    return _json_error(
        request,
        status_code=422,
        detail=_sanitize_validation_errors(exc.errors()),
    )


async def _response_validation_exception_handler(
    request: Request,
    exc: ResponseValidationError,
) -> JSONResponse:
    logger.error(
        "http.response.validation_failed",
        extra={"path": request.url.path, "errors": str(exc.errors())[:500]},
    )
    return _json_error(request, status_code=500, detail="Internal Server Error")


async def _http_exception_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    return _json_error(
        request,
        status_code=exc.status_code,
        detail=exc.detail,
        headers=getattr(exc, "headers", None),
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "http.request.unhandled_exception",
        extra={"path": request.url.path, "error_type": exc.__class__.__name__},
        exc_info=exc,
    )
    return _json_error(request, status_code=500, detail="Internal Server Error")


class RequestContextMiddleware:
    """Assign a request id, echo it on the response, and log request timing."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = _incoming_request_id(scope) or uuid4().hex
        scope.setdefault("state", {})["request_id"] = request_id
        status_code = 500
        started = perf_counter()

        async def _send(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                headers = MutableHeaders(scope=message)
                headers[REQUEST_ID_HEADER] = request_id
            await send(message)

        try:
            await self.app(scope, receive, _send)
        finally:
            elapsed_ms = (perf_counter() - started) * 1000
            _log_request(scope, status_code=status_code, elapsed_ms=elapsed_ms, request_id=request_id)


def _log_request(scope: Scope, *, status_code: int, elapsed_ms: float, request_id: str) -> None:
    path = scope.get("path", "")
    if path in HEALTH_PATHS and not settings.request_log_include_health:
        return
    extra = {
        "method": scope.get("method"),
        "path": path,
        "status_code": status_code,
        "duration_ms": round(elapsed_ms, 2),
        "request_id": request_id,
    }
    threshold = settings.request_log_slow_ms
    if threshold and elapsed_ms >= threshold:
        logger.warning("http.request.slow", extra={**extra, "slow_threshold_ms": threshold})
        return
    logger.info("http.request", extra=extra)


def install_error_handling(app: FastAPI) -> None:
    """Attach request-context middleware and JSON error handlers to *app*."""
    app.add_middleware(RequestContextMiddleware)
    app.add_exception_handler(RequestValidationError, _request_validation_exception_handler)
    app.add_exception_handler(ResponseValidationError, _response_validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
