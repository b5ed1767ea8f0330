from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from structlog.contextvars import bound_contextvars

from linkpost.api.routes import router
from linkpost.dependencies import get_settings, get_telemetry
from linkpost.logging_config import configure_application_logging

REQUEST_ID_HEADER = "X-Request-ID"


def health_check() -> dict[str, str]:
    return {"status": "ok"}


@asynccontextmanager
async def app_lifespan(_: FastAPI) -> AsyncIterator[None]:
    configure_application_logging(get_settings())
    yield


async def request_id_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Tag every log record and telemetry event of a request with one request id."""
    request_id = (request.headers.get(REQUEST_ID_HEADER) or "").strip() or str(uuid4())
    telemetry = get_telemetry()
    started_at = perf_counter()
    with bound_contextvars(http_request_id=request_id):
        try:
            response = await call_next(request)
        except Exception as exc:
            telemetry.http_request_failed(
                exc,
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                duration_ms=int((perf_counter() - started_at) * 1000),
            )
            raise
    response.headers[REQUEST_ID_HEADER] = request_id
    telemetry.http_request_finished(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=int((perf_counter() - started_at) * 1000),
    )
    return response


def create_app() -> FastAPI:
    app = FastAPI(title="linkpost", version="0.1.0", lifespan=app_lifespan)
    app.middleware("http")(request_id_middleware)
    app.include_router(router)
    app.add_api_route(
        "/health",
        health_check,
        methods=["GET"],
        tags=["system"],
        operation_id="health_check",
    )
    return app


app = create_app()
