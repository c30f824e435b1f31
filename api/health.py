"""GET /health: liveness, Valkey reachability and confirmation queue depth."""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from utils.timezone import now_utc

logger = logging.getLogger(__name__)


def create_health_router(services: dict) -> APIRouter:
    router = APIRouter()

    valkey = services.get("valkey")
    queue = services.get("queue")

    @router.get("/health")
    def health():
        status = {
            "status": "ok",
            "timestamp": now_utc().isoformat(),
            "checks": {},
        }

        try:
            status["checks"]["valkey"] = "ok" if valkey is not None and valkey.ping() else "unavailable"
        except Exception as e:
            logger.warning(f"Health check could not reach Valkey: {e}")
            status["checks"]["valkey"] = "unavailable"

        if status["checks"]["valkey"] != "ok":
            status["status"] = "degraded"
        elif queue is not None:
            status["checks"]["pending_confirmations"] = queue.pending_count()
            status["checks"]["dead_confirmations"] = queue.dead_count()

        return JSONResponse(status, status_code=200 if status["status"] == "ok" else 503)

    return router
