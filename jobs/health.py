"""
Health check server for scheduler monitoring.

Provides HTTP endpoints for health checks and the outcome of the last
payout sweep.
"""

import asyncio
from typing import Any

from aiohttp import web
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

from happyinvest.services.payout import SweepResult
from happyinvest.utils.datetime_utils import utc_now

# Global scheduler reference for health checks
_scheduler: AsyncIOScheduler | None = None

# Outcome of the most recent sweep run by this process
_last_sweep: dict[str, Any] | None = None


def set_scheduler(scheduler: AsyncIOScheduler) -> None:
    """
    Set the scheduler instance for health checks.

    Args:
        scheduler: AsyncIOScheduler instance to monitor
    """
    global _scheduler
    _scheduler = scheduler
    logger.info("Scheduler registered for health checks")


def record_sweep(result: SweepResult | None, error: str | None = None) -> None:
    """
    Remember the outcome of a sweep for the health endpoint.

    Args:
        result: Sweep totals, or None if the sweep crashed
        error: Crash message
    """
    global _last_sweep
    _last_sweep = {
        "finished_at": utc_now().isoformat(),
        "success": result.success if result is not None else False,
        "total_distributed": str(result.total_distributed) if result else None,
        "users_paid": result.users_paid if result else None,
        "failures": result.failures if result else None,
        "error": error or (None if result is None or result.success else result.message),
    }


async def health_handler(request: web.Request) -> web.Response:
    """
    Health check endpoint.

    Returns:
        JSON response with scheduler status
    """
    if _scheduler is None:
        return web.json_response(
            {
                "status": "unhealthy",
                "error": "Scheduler not initialized",
            },
            status=503,
        )

    try:
        is_running = _scheduler.running
        next_runs = {
            job.id: job.next_run_time.isoformat() if job.next_run_time else None
            for job in _scheduler.get_jobs()
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return web.json_response(
            {"status": "unhealthy", "error": str(e)}, status=503
        )

    return web.json_response(
        {
            "status": "healthy" if is_running else "stopped",
            "scheduler_running": is_running,
            "next_runs": next_runs,
            "last_sweep": _last_sweep,
        }
    )


async def readiness_handler(request: web.Request) -> web.Response:
    """Ready once the scheduler runs and the sweep job is registered."""
    ready = (
        _scheduler is not None
        and _scheduler.running
        and bool(_scheduler.get_jobs())
    )
    return web.json_response(
        {"status": "ready" if ready else "not_ready", "ready": ready},
        status=200 if ready else 503,
    )


async def sweep_handler(request: web.Request) -> web.Response:
    """Outcome of the last payout sweep run by this process."""
    if _last_sweep is None:
        return web.json_response({"last_sweep": None}, status=404)
    return web.json_response({"last_sweep": _last_sweep})


async def liveness_handler(request: web.Request) -> web.Response:
    return web.json_response({"status": "alive", "alive": True})


ROUTES = {
    "/health": health_handler,
    "/readiness": readiness_handler,
    "/liveness": liveness_handler,
    "/sweep": sweep_handler,
}


async def start_health_server(
    host: str = "0.0.0.0",
    port: int = 8081,
) -> tuple[web.AppRunner, web.TCPSite]:
    """
    Start health check server.

    Args:
        host: Host to bind to
        port: Port to bind to

    Returns:
        Tuple of (AppRunner, TCPSite) for cleanup
    """
    app = web.Application()
    for path, handler in ROUTES.items():
        app.router.add_get(path, handler)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info(
        f"Health check server started on {host}:{port} "
        f"(endpoints: {', '.join(ROUTES)})"
    )

    return runner, site


async def stop_health_server(
    runner: web.AppRunner,
    timeout: int = 5,
) -> None:
    """
    Stop health check server gracefully.

    Args:
        runner: AppRunner to cleanup
        timeout: Maximum time to wait for cleanup in seconds
    """
    logger.info("Stopping health check server...")
    try:
        await asyncio.wait_for(runner.cleanup(), timeout=timeout)
        logger.info("Health check server stopped successfully")
    except TimeoutError:
        logger.warning(f"Health check server cleanup timed out after {timeout}s")
    except Exception as e:
        logger.error(f"Error stopping health check server: {e}")
