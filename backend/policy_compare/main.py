"""
Main FastAPI application for the Policy Comparison backend.
"""
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.datastructures import Headers
import logging
from contextlib import asynccontextmanager

from .config import get_settings
from .services.llm import build_http_client
from .routers.health import router as health_router
from .routers.config import router as config_router
from .routers.compare import router as compare_router


settings = get_settings()
logger = logging.getLogger(__name__)


class PreflightCORSMiddleware(CORSMiddleware):
    """CORSMiddleware whose preflight answer is always 200 with an empty body.

    Disallowed methods or headers are not rejected here; the configured
    allow-lists are still sent for the browser to enforce.
    """

    def preflight_response(self, request_headers: Headers) -> Response:
        headers = dict(self.preflight_headers)
        origin = request_headers["origin"]
        if self.preflight_explicit_allow_origin and self.is_allowed_origin(origin=origin):
            headers["Access-Control-Allow-Origin"] = origin
        return Response(status_code=200, headers=headers)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: one LLM http client for the whole process
    app.state.http_client = build_http_client(settings)
    try:
        yield
    finally:
        # Shutdown
        await app.state.http_client.aclose()


app = FastAPI(
    title="Policy Comparison API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS configuration
app.add_middleware(
    PreflightCORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS],
    allow_credentials=True,
    allow_methods=settings.CORS_METHODS,
    allow_headers=settings.CORS_HEADERS,
)

# Routers
app.include_router(health_router, prefix=settings.API_PREFIX)
app.include_router(config_router, prefix=settings.API_PREFIX)
app.include_router(compare_router, prefix=settings.API_PREFIX)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework errors (404, 405, ...) with the same `{error}` body as the API."""
    message = "Method Not Allowed." if exc.status_code == 405 else str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"error": message}, headers=exc.headers)


@app.get("/", tags=["root"])
async def root() -> dict:
    """Simple root endpoint."""
    return {"name": app.title, "version": app.version}
