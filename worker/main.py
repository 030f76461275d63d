# ============================================================================
# WORKER MAIN ENTRY POINT
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Worker - Standalone worker process
# PURPOSE: Run the queue loops and reminder cron without the HTTP API
# CREATED: 19 OCT 2026
# ============================================================================
"""
Worker Main Entry Point

Runs the email loop, certificate loop, optional stale sweep and the daily
reminder until SIGTERM or SIGINT. A small aiohttp server answers container
probes.

Usage:
    python -m worker.main

Environment Variables:
    QUEUE_BACKEND: "memory" or "postgres"
    DATABASE_URL / POSTGRES_*: PostgreSQL connection (postgres backend)
    MAIL_TRANSPORT: "console" or "smtp"
    PORT: probe server port (default 8000)
    LOG_LEVEL / LOG_FORMAT: logging level, "json" for structured output
"""

import asyncio
import os
import signal
from typing import Optional

from aiohttp import web

from __version__ import BUILD_DATE, __version__
from core.logging import configure_logging, get_logger
from worker.runtime import Runtime, build_runtime, close_runtime

configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    json_output=os.environ.get("LOG_FORMAT", "").lower() == "json",
)
logger = get_logger(__name__)

# Worker state for probes
_worker_status = "starting"
_runtime: Optional[Runtime] = None


# ============================================================================
# HEALTH SERVER
# ============================================================================

async def health_handler(request: web.Request) -> web.Response:
    """Worker status, loop stats and queue reachability."""
    healthy = _worker_status == "running"
    data = {
        "status": "healthy" if healthy else "unhealthy",
        "worker_status": _worker_status,
        "version": __version__,
        "build_date": BUILD_DATE,
    }
    if _runtime is not None:
        data["host"] = _runtime.host.stats
        try:
            data["queues"] = {
                "email": await _runtime.email_store.count_by_status(),
                "certificate": await _runtime.certificate_store.count_by_status(),
            }
        except Exception as e:
            logger.warning(f"Queue counts unavailable: {e}")
            data["queues"] = None
            healthy = False
            data["status"] = "unhealthy"

    return web.json_response(data, status=200 if healthy else 503)


async def live_handler(request: web.Request) -> web.Response:
    return web.json_response({"status": "alive"})


def build_health_app() -> web.Application:
    app = web.Application()
    app.router.add_get("/", health_handler)
    app.router.add_get("/health", health_handler)
    app.router.add_get("/readyz", health_handler)
    app.router.add_get("/livez", live_handler)
    return app


async def start_health_server(port: int = 8000) -> web.AppRunner:
    """Start minimal HTTP server for health probes."""
    runner = web.AppRunner(build_health_app())
    await runner.setup()
    site = web.TCPSite(runner, "0.0.0.0", port)
    await site.start()
    logger.info(f"Health server started on port {port}")
    return runner


# ============================================================================
# MAIN
# ============================================================================

async def main() -> None:
    """Main entry point."""
    global _worker_status, _runtime

    logger.info("=" * 60)
    logger.info(f"Event Queue Worker Starting v{__version__}")
    logger.info("=" * 60)

    health_runner = await start_health_server(int(os.environ.get("PORT", "8000")))

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops have no signal handlers; Ctrl+C still raises
            pass

    try:
        _runtime = await build_runtime()
        await _runtime.host.start()
        _worker_status = "running"

        await stop_event.wait()
        logger.info("Shutdown signal received, draining in-flight cycles...")
        _worker_status = "stopping"
    finally:
        if _runtime is not None:
            await close_runtime(_runtime)
        await health_runner.cleanup()

    logger.info("Event Queue Worker stopped")


def run() -> None:
    """Synchronous entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
