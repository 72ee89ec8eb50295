"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from companion.api.v1.router import api_router
from companion.core.config import get_settings
from companion.knowledge.service import create_knowledge_service
from companion.observability import (
    RequestLoggingMiddleware,
    configure_logging,
    get_metrics_backend,
)

settings = get_settings()
configure_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan events."""
    # Startup: the index build runs in the background; chat uses keyword
    # search until it is ready.
    service = await create_knowledge_service(settings)
    app.state.knowledge_service = service
    index_task = service.start_index_build()
    yield
    # Shutdown
    if not index_task.done():
        index_task.cancel()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    openapi_url=f"{settings.api_prefix}/openapi.json",
    docs_url=f"{settings.api_prefix}/docs",
    redoc_url=f"{settings.api_prefix}/redoc",
    lifespan=lifespan,
)

metrics_backend = get_metrics_backend()

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",  # Vite dev server
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware, metrics=metrics_backend)

app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "version": settings.app_version}


@app.get("/metrics", include_in_schema=False)
async def metrics() -> PlainTextResponse:
    """Prometheus-style metrics endpoint."""
    return PlainTextResponse(metrics_backend.render_prometheus())
