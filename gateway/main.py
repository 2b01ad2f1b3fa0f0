from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
import sys
import time
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from gateway.auth import API_KEY_HEADER
from gateway.config import ConfigurationError, Settings, load_settings
from gateway.middleware import install_security_headers
from gateway.routers import proxy
from gateway.services.upstream import UpstreamClient

# 1. Load Environment Variables immediately
load_dotenv()

SERVICE_NAME = "SATLingo LLM Proxy"
VERSION = "1.0.0"

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@asynccontextmanager
async def lifespan(app: FastAPI):
    await app.state.upstream.start()
    try:
        yield
    finally:
        await app.state.upstream.stop()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the gateway. Raises ConfigurationError when the settings would
    leave the /api routes unprotected in the secure variant.
    """
    if settings is None:
        settings = load_settings()
    else:
        settings.ensure_startable()

    app = FastAPI(
        title="LLM Proxy Gateway",
        description="Credential-injecting proxy for the Claude and OpenAI APIs",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.upstream = UpstreamClient(timeout=settings.upstream_timeout)
    app.state.started_at = time.monotonic()

    # Innermost: unhandled errors become a 500 that still passes through
    # the CORS and security header layers registered after it.
    @app.middleware("http")
    async def catch_unhandled(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.exception("!!! Server error on %s %s", request.method, request.url.path)
            return _error(500, "Internal server error")

    # CORS: only the admin tool origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization", API_KEY_HEADER],
    )
    install_security_headers(app)

    # Mount Routers
    app.include_router(proxy.router)

    @app.get("/health")
    async def health_check(request: Request) -> dict:
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "uptime": time.monotonic() - request.app.state.started_at,
        }

    @app.get("/")
    async def root() -> dict:
        info = {
            "service": SERVICE_NAME,
            "version": VERSION,
            "endpoints": {
                "/api/claude": "Proxy to Claude API",
                "/api/openai": "Proxy to OpenAI API",
                "/health": "Health check",
            },
            "usage": "POST to /api/claude or /api/openai with appropriate request body",
        }
        if settings.require_api_key:
            info["auth"] = f"Send the shared secret in the {API_KEY_HEADER} header"
        return info

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # Unknown paths and unsupported methods look the same to callers.
        if exc.status_code in (404, 405):
            return _error(404, "Endpoint not found")
        return _error(exc.status_code, str(exc.detail))

    return app


def run(settings: Optional[Settings] = None) -> None:
    """Validate configuration, then serve. Exits with status 1 before binding on bad config."""
    try:
        if settings is None:
            settings = load_settings()
        else:
            settings.ensure_startable()
    except ConfigurationError as exc:
        configure_logging()
        logger.critical("!!! Refusing to start: %s", exc)
        sys.exit(1)

    configure_logging(settings.log_level)
    app = create_app(settings)

    logger.info("--> [STARTUP] %s running on port %d", SERVICE_NAME, settings.port)
    logger.info("--> [STARTUP] Health check: http://localhost:%d/health", settings.port)
    logger.info("--> [STARTUP] Environment: %s", settings.environment)

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
