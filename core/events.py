"""
Domain events for the order pipeline.

Immutable records of things that happened. Publishers do not know who
listens: the orchestrator announces a completed order and the
confirmation handler takes it from there.

Events carry ids, not live objects; handlers that need the full order
fetch it themselves.
"""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4

from utils.timezone import now_utc


@dataclass(frozen=True, kw_only=True)
class StorefrontEvent:
    """Base class for all order pipeline events."""
    event_id: str = field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = field(default_factory=now_utc)


@dataclass(frozen=True)
class OrderCompleted(StorefrontEvent):
    """
    An order needs no further payment.

    source is where completion was observed, e.g. "checkout" for a
    zero-total order marked completed at submission.
    """
    order_id: int = 0
    source: str = "checkout"

    @classmethod
    def create(cls, order_id: int, source: str) -> "OrderCompleted":
        return cls(order_id=order_id, source=source)
