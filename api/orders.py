"""POST /api/orders/{order_id}/process: operator-triggered confirmation resend.

Protected by ApiKeyMiddleware. Upstream lookup failures propagate as 500.
"""

import logging

from fastapi import APIRouter

from api.base import success_response

logger = logging.getLogger(__name__)


def create_orders_router(services: dict) -> APIRouter:
    router = APIRouter()

    woocommerce = services["woocommerce"]
    confirmations = services["confirmations"]

    @router.post("/orders/{order_id}/process")
    def process_order(order_id: int):
        order = woocommerce.get_order(order_id)
        if order is None:
            raise ValueError(f"Order {order_id} not found")
        if not order.get("id") or not order.get("billing"):
            raise ValueError(f"Order {order_id} is missing id or billing details")

        confirmations.dispatch(order_id, force=True)
        logger.info(f"Operator queued confirmation resend for order {order_id}")
        return success_response({
            "order_id": order_id,
            "queued": True,
        }).model_dump(mode="json")

    return router
