"""FastAPI app entry."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from fetchgate.adapters.azure_openai.router import router as openai_router
from fetchgate.adapters.azure_openai.upstream import close_upstream_async_client
from fetchgate.adapters.fetch_proxy.client import close_fetch_async_client
from fetchgate.adapters.fetch_proxy.router import router as fetch_router
from fetchgate.config.settings import settings
from fetchgate.core.cors import apply_cors_headers, preflight_headers
from fetchgate.util.logger import logger

_HEALTH_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info(
        "gateway startup redirect_mode=%s fetch_timeout=%ss",
        settings.fetch_redirect_mode,
        settings.fetch_timeout_seconds,
    )
    yield
    await close_fetch_async_client()
    await close_upstream_async_client()


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.include_router(fetch_router)
app.include_router(openai_router)


def utc_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@app.middleware("http")
async def cors_middleware(request: Request, call_next):
    if request.method.upper() == "OPTIONS":
        logger.debug("cors preflight path=%s", request.url.path)
        return Response(status_code=204, headers=preflight_headers())

    try:
        response = await call_next(request)
    except Exception as exc:
        logger.exception("gateway unhandled exception path=%s", request.url.path)
        response = JSONResponse(status_code=500, content={"error": f"Internal server error: {exc}"})
    apply_cors_headers(response.headers)
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    logger.info("http error status=%s method=%s path=%s", exc.status_code, request.method, request.url.path)
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("request validation failed path=%s errors=%s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "Invalid request"})


@app.api_route("/health", methods=_HEALTH_METHODS)
async def health() -> dict:
    logger.debug("health check")
    return {"status": "ok", "timestamp": utc_timestamp()}

