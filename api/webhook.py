"""POST /webhook/woocommerce: order notifications from the store.

Two delivery shapes arrive here:

- Action hooks post {"action": ..., "arg": <order id>}; the order is fetched.
- Resource hooks post the order itself.

Only paid orders (processing or completed) trigger a confirmation. Other
deliveries are acknowledged and ignored so the store stops retrying them.
Dispatch failures propagate as 500 so the store retries.
"""

import json
import logging

from fastapi import APIRouter, Request
from starlette.concurrency import run_in_threadpool

from api.base import success_response
from auth.exceptions import InvalidSignatureError
from auth.webhook_signature import SIGNATURE_HEADER, TOPIC_HEADER

logger = logging.getLogger(__name__)

PAID_STATUSES = {"processing", "completed"}
IGNORED_STATUSES = {"draft", "auto-draft"}


def _ignored(reason: str) -> dict:
    return success_response({"processed": False, "reason": reason}).model_dump(mode="json")


def create_webhook_router(services: dict) -> APIRouter:
    router = APIRouter()

    verifier = services["webhook_verifier"]
    woocommerce = services["woocommerce"]
    confirmations = services["confirmations"]

    @router.post("/webhook/woocommerce")
    async def woocommerce_webhook(request: Request):
        body = await request.body()
        try:
            verifier.verify(body, request.headers.get(SIGNATURE_HEADER))
        except InvalidSignatureError:
            client = request.client.host if request.client else "unknown"
            logger.warning(f"Webhook with bad signature from {client}")
            raise

        topic = request.headers.get(TOPIC_HEADER)
        if not topic:
            raise ValueError("Missing webhook topic")

        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise ValueError("Webhook body is not valid JSON")
        if not isinstance(payload, dict):
            raise ValueError("Webhook body must be a JSON object")

        if "action" in payload:
            try:
                order_id = int(payload.get("arg"))
            except (TypeError, ValueError):
                raise ValueError("Action webhook without an order id")
            order = await run_in_threadpool(woocommerce.get_order, order_id)
            if order is None:
                raise ValueError(f"Webhook references unknown order {order_id}")
        else:
            order = payload
            if not order.get("id"):
                raise ValueError("Webhook order without an id")
            order_id = int(order["id"])

        status = order.get("status")
        if status in IGNORED_STATUSES:
            logger.info(f"Webhook {topic} for {status} order {order_id} ignored")
            return _ignored("draft")
        if status not in PAID_STATUSES:
            logger.info(f"Webhook {topic} for order {order_id} with status {status} ignored")
            return _ignored("not_paid")

        queued = await run_in_threadpool(confirmations.dispatch, order_id)
        logger.info(f"Webhook {topic} for order {order_id}: confirmation {'queued' if queued else 'already queued'}")
        return success_response({
            "processed": True,
            "order_id": order_id,
            "queued": queued,
        }).model_dump(mode="json")

    return router
