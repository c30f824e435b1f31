"""
Event bus for order pipeline events.

Synchronous in-process pub/sub: handlers run in the publisher's thread,
in subscription order. A failing handler is logged and never propagates,
since the publishing operation has already succeeded upstream.
"""

import logging
from typing import Callable, Dict, List

from core.events import StorefrontEvent

logger = logging.getLogger(__name__)


class EventBus:
    """
    In-process event bus.

    Subscribe by event class name (string), publish by event instance.
    """

    def __init__(self):
        self._subscribers: Dict[str, List[Callable]] = {}

    def subscribe(self, event_type: str, callback: Callable):
        """
        Subscribe to events of a specific type.

        Args:
            event_type: Name of event class to subscribe to (e.g. 'OrderCompleted')
            callback: Function to call when event is published
        """
        self._subscribers.setdefault(event_type, []).append(callback)

    def publish(self, event: StorefrontEvent):
        """Call every subscriber of the event's type. Handler errors are logged only."""
        event_type = event.__class__.__name__

        for callback in self._subscribers.get(event_type, []):
            try:
                callback(event)
            except Exception:
                logger.exception(
                    "Handler %s failed for %s (event_id=%s)",
                    getattr(callback, "__name__", repr(callback)),
                    event_type,
                    event.event_id,
                )
