# ============================================================================
# EVENT JOB QUEUE - MAIN APPLICATION
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Core - FastAPI application entry point
# PURPOSE: Host the queue workers alongside health and inspection endpoints
# CREATED: 19 OCT 2026
# ============================================================================
"""
Event Job Queue Main Application

FastAPI application that:
1. Builds the queue stores, mail transport and processors
2. Runs the email loop, certificate loop and daily reminder in the background
3. Serves health probes and queue inspection endpoints

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8000
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from __version__ import BUILD_DATE, EPOCH, __version__
from api import router, set_services
from core.logging import configure_logging, get_logger
from health import build_registry, health_router, set_registry
from worker.runtime import build_runtime, close_runtime

configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    json_output=os.environ.get("LOG_FORMAT", "").lower() == "json",
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Starts the worker host on startup; on shutdown waits for in-flight
    cycles, then releases the transport and database pool.
    """
    logger.info(f"Starting Event Job Queue v{__version__} (Epoch {EPOCH}, Build {BUILD_DATE})")

    runtime = await build_runtime()
    app.state.runtime = runtime

    set_services(runtime.email_store, runtime.certificate_store, runtime.host)
    set_registry(build_registry(
        [runtime.email_store, runtime.certificate_store],
        runtime.host,
        runtime.defaults.mail,
    ))

    if runtime.defaults.app.workers_enabled:
        await runtime.host.start()
    else:
        logger.info("WORKERS_ENABLED=false, background loops not started")

    yield

    logger.info("Shutting down Event Job Queue...")
    set_registry(None)
    set_services(None, None, None)
    await close_runtime(runtime)
    logger.info("Event Job Queue stopped")


app = FastAPI(
    title="Event Job Queue",
    description="Queued email, ticket and certificate delivery for the event platform",
    version=__version__,
    lifespan=lifespan,
)

# Health probes (no prefix - /livez, /readyz, /health)
app.include_router(health_router)

# Queue inspection
app.include_router(router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Event Job Queue",
        "version": __version__,
        "epoch": EPOCH,
        "build_date": BUILD_DATE,
        "status": "running",
        "docs": "/docs",
    }


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8000")),
        reload=os.environ.get("RELOAD", "false").lower() == "true",
    )
