"""Tests for EventBus."""

import logging
from dataclasses import dataclass

from core.event_bus import EventBus
from core.events import OrderCompleted, StorefrontEvent


@dataclass(frozen=True)
class OrderRefunded(StorefrontEvent):
    order_id: int = 0


# =============================================================================
# SUBSCRIBE AND PUBLISH
# =============================================================================


class TestSubscribeAndPublish:

    def test_single_handler_receives_the_exact_event_object(self):
        bus = EventBus()
        received = []
        bus.subscribe("OrderCompleted", received.append)

        event = OrderCompleted.create(order_id=1, source="checkout")
        bus.publish(event)

        assert len(received) == 1
        assert received[0] is event

    def test_handlers_run_in_subscription_order(self):
        bus = EventBus()
        calls = []
        bus.subscribe("OrderCompleted", lambda e: calls.append("first"))
        bus.subscribe("OrderCompleted", lambda e: calls.append("second"))

        bus.publish(OrderCompleted.create(order_id=1, source="checkout"))

        assert calls == ["first", "second"]

    def test_only_matching_type_is_delivered(self):
        bus = EventBus()
        received = []
        bus.subscribe("OrderCompleted", received.append)

        bus.publish(OrderRefunded(order_id=1))

        assert received == []

    def test_publish_without_subscribers(self):
        EventBus().publish(OrderCompleted.create(order_id=1, source="checkout"))


# =============================================================================
# HANDLER FAILURES
# =============================================================================


class TestHandlerFailures:

    def test_failing_handler_does_not_stop_others(self):
        bus = EventBus()
        received = []

        def broken(event):
            raise RuntimeError("boom")

        bus.subscribe("OrderCompleted", broken)
        bus.subscribe("OrderCompleted", received.append)

        bus.publish(OrderCompleted.create(order_id=1, source="checkout"))

        assert len(received) == 1

    def test_failure_is_logged(self, caplog):
        bus = EventBus()

        def broken(event):
            raise RuntimeError("boom")

        bus.subscribe("OrderCompleted", broken)

        with caplog.at_level(logging.ERROR, logger="core.event_bus"):
            bus.publish(OrderCompleted.create(order_id=1, source="checkout"))

        assert "broken" in caplog.text
        assert "OrderCompleted" in caplog.text
