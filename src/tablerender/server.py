from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from starlette.concurrency import run_in_threadpool
from starlette.requests import ClientDisconnect

from .api import CONTENT_JSON, parse_table_html, render_table
from .config import Settings, get_settings
from .errors import BodyReadError, RenderError, TableRendererError
from .logs import RequestLoggingMiddleware
from .model import load_parse_request, load_render_request

logger = logging.getLogger(__name__)

CORS_METHODS = ["GET", "POST", "OPTIONS"]
CORS_HEADERS = [
    "Accept",
    "Content-Type",
    "Access-Control-Allow-Origin",
    "Access-Control-Allow-Methods",
    "X-Requested-With",
]


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings.log()
        logger.info("starting table renderer", extra={"bind_addr": settings.bind_addr})
        yield
        logger.info("table renderer stopped")

    app = FastAPI(title="table-renderer", version=settings.service_version, lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_exception_handler(TableRendererError, table_renderer_error_handler)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "OK", "version": settings.service_version}

    @app.post("/render/{render_type}")
    async def render(render_type: str, request: Request) -> Response:
        body = await _read_body(request)
        table = await _call(load_render_request, body)
        content, content_type = await _call(render_table, table, render_type)
        logger.info("rendered a table", extra={"file_name": table.filename, "response_bytes": len(content)})
        return Response(content=content, media_type=content_type)

    @app.post("/parse/html")
    async def parse(request: Request) -> Response:
        body = await _read_body(request)
        parse_request = await _call(load_parse_request, body)
        content = await _call(parse_table_html, parse_request)
        logger.info("parsed an html table", extra={"file_name": parse_request.filename, "response_bytes": len(content)})
        return Response(content=content, media_type=CONTENT_JSON)

    return app


async def table_renderer_error_handler(request: Request, exc: TableRendererError) -> PlainTextResponse:
    logger.error(
        "request rejected",
        extra={"path": request.url.path, "error_type": type(exc).__name__, "detail": exc.detail},
    )
    return PlainTextResponse(exc.public_message + "\n", status_code=exc.status_code)


async def _read_body(request: Request) -> bytes:
    try:
        return await request.body()
    except ClientDisconnect as exc:
        raise BodyReadError("client disconnected while sending the body") from exc


async def _call(func: Callable[..., Any], *args: Any) -> Any:
    """Run a blocking render/parse step in the threadpool; unexpected failures become ``RenderError``."""
    try:
        return await run_in_threadpool(func, *args)
    except TableRendererError:
        raise
    except Exception as exc:
        logger.exception("failed to process the request", extra={"function": func.__name__})
        raise RenderError(str(exc)) from exc
