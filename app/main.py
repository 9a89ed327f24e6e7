"""FastAPI app factory, request logging middleware and the uvicorn entry point."""
from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from uuid import uuid4

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from app import __version__
from app.api.routes import router as api_router
from app.config import Settings, load_settings
from app.logging_conf import get_logger, setup_logging
from app.service.context import Services

setup_logging()
logger = get_logger("app")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()
    app = FastAPI(title="Flat-file Accounts API", version=__version__)
    app.state.services = Services.from_settings(settings)

    @app.on_event("startup")
    async def _on_startup() -> None:
        logger.info(
            "startup",
            extra={
                "event": "startup",
                "env": settings.env_name,
                "data_dir": str(settings.data_dir),
            },
        )

    @app.on_event("shutdown")
    async def _on_shutdown() -> None:
        logger.info("shutdown", extra={"event": "shutdown"})

    @app.middleware("http")
    async def request_logger(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Start/end JSON log lines tied together by X-Request-ID."""
        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        request.state.request_id = request_id

        start = time.perf_counter()
        logger.info(
            "request.start",
            extra={
                "event": "request_start",
                "method": request.method,
                "path": request.url.path,
                "request_id": request_id,
            },
        )
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request.error",
                extra={
                    "event": "request_error",
                    "path": request.url.path,
                    "method": request.method,
                    "request_id": request_id,
                },
            )
            raise
        elapsed_ms = (time.perf_counter() - start) * 1000.0

        response.headers["X-Request-ID"] = request_id
        logger.info(
            "request.end",
            extra={
                "event": "request_end",
                "status_code": response.status_code,
                "elapsed_ms": round(elapsed_ms, 2),
                "request_id": request_id,
            },
        )
        return response

    @app.get("/health", summary="Liveness check")
    async def health() -> JSONResponse:
        return JSONResponse(content={"ok": True})

    # Catch-all; must be registered after /health.
    app.include_router(api_router)

    return app


def serve() -> None:
    """Console entry point: run the API under uvicorn."""
    settings = load_settings()
    setup_logging(settings.log_level)
    uvicorn.run(
        create_app(settings),
        host=settings.http_host,
        port=settings.http_port,
        log_config=None,  # keep the JSON handler installed above
    )


# ASGI entrypoint for uvicorn: `uvicorn app.main:app --port 3000`
app = create_app()
