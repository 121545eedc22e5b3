# app/routes/health.py
"""
Health check endpoints for the notification backend.
"""

import time

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/healthz")
async def healthz():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "service": "rental-notify-backend"}


@router.get("/readyz")
async def readyz(request: Request):
    """
    Readiness check: services wired, scheduler running, queue reachable.
    """
    checks = {}
    services = getattr(request.app.state, "services", None)

    if services is None:
        return {
            "overall_ok": False,
            "checks": {"services": {"ok": False, "error": "Notification services not initialized"}},
            "timestamp": time.time(),
        }

    scheduler_status = services.scheduler.get_status()
    checks["scheduler"] = {
        "ok": scheduler_status["is_active"],
        "jobs": scheduler_status["summary"],
    }

    queue_status = services.delivery_queue.get_status()
    checks["delivery_queue"] = {
        "ok": True,
        "item_count": queue_status["item_count"],
        "is_processing": queue_status["is_processing"],
    }

    checks["configuration"] = {
        "ok": True,
        "environment": services.settings.environment,
    }

    overall_ok = all(check["ok"] for check in checks.values())
    return {"overall_ok": overall_ok, "checks": checks, "timestamp": time.time()}
