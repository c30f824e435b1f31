"""
Handler for OrderCompleted events.

Queues the confirmation email. Duplicate completions (webhook and
zero-total checkout for the same order) are absorbed by the dispatcher.
"""

import logging
from typing import Callable

from core.events import OrderCompleted

logger = logging.getLogger(__name__)


def handle_order_completed(confirmation_service) -> Callable:
    """
    Factory that returns an OrderCompleted handler.

    Args:
        confirmation_service: ConfirmationService instance

    Returns:
        Handler callable that dispatches the confirmation
    """

    def handler(event: OrderCompleted):
        queued = confirmation_service.dispatch(event.order_id)
        logger.info(
            f"Order {event.order_id} completed via {event.source}, "
            f"confirmation {'queued' if queued else 'already dispatched'}"
        )

    return handler
