"""FastAPI application for the Biva marketplace API."""
from __future__ import annotations

import base64
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from sqlalchemy.exc import SQLAlchemyError

from .core.config import settings
from .core.errors import BivaError, InfrastructureError, ValidationError
from .core.logging import setup_logging
from .routers import admin, contracts, notifications, properties, users, visits
from .schemas.common import ErrorResponse

setup_logging(settings.log_level, settings.log_format)

logger = logging.getLogger(__name__)

app = FastAPI(title="Biva Marketplace API", version="0.1.0")

if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(BivaError)
async def handle_biva_error(request: Request, exc: BivaError) -> JSONResponse:
    """Render business errors as ``{kind, message}``."""

    logger.warning("%s %s refused: %s: %s", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    error = ValidationError("; ".join(problems) or "Invalid request")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(SQLAlchemyError)
async def handle_store_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Data store failure on %s %s", request.method, request.url.path)
    error = InfrastructureError("The data store is unavailable; please retry")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


FAVICON_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR4nGMAAQAABQABDQottAAAAABJRU5ErkJggg=="
)


@app.get("/api/health", tags=["meta"])
async def health() -> dict[str, str]:
    """Simple liveness probe."""

    return {"status": "ok"}


@app.head("/api/health", tags=["meta"])
async def health_head() -> Response:
    return Response(status_code=200)


@app.get("/robots.txt", response_class=PlainTextResponse, include_in_schema=False)
async def robots() -> PlainTextResponse:
    return PlainTextResponse("User-agent: *\nDisallow: /api/")


@app.get("/favicon.ico", include_in_schema=False)
async def favicon() -> Response:
    return Response(content=FAVICON_BYTES, media_type="image/png")


ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    code: {"model": ErrorResponse} for code in (403, 404, 409, 412, 422, 503)
}

app.include_router(properties.router, prefix="/api/properties", tags=["properties"], responses=ERROR_RESPONSES)
app.include_router(admin.router, prefix="/api/admin", tags=["admin"], responses=ERROR_RESPONSES)
app.include_router(contracts.router, prefix="/api/contracts", tags=["contracts"], responses=ERROR_RESPONSES)
app.include_router(users.router, prefix="/api/users", tags=["users"], responses=ERROR_RESPONSES)
app.include_router(notifications.router, prefix="/api/notifications", tags=["notifications"], responses=ERROR_RESPONSES)
app.include_router(visits.router, prefix="/api/visits", tags=["visits"], responses=ERROR_RESPONSES)
