"""Tests for the OrderCompleted handler."""

import logging
from unittest.mock import Mock

from core.events import OrderCompleted
from core.handlers.order_completed_handler import handle_order_completed
from core.services.confirmation_service import ConfirmationService


class TestHandleOrderCompleted:

    def test_dispatches_confirmation(self):
        confirmations = Mock(spec=ConfirmationService)
        confirmations.dispatch.return_value = True

        handle_order_completed(confirmations)(OrderCompleted.create(order_id=77, source="checkout"))

        confirmations.dispatch.assert_called_once_with(77)

    def test_already_dispatched_is_logged(self, caplog):
        confirmations = Mock(spec=ConfirmationService)
        confirmations.dispatch.return_value = False

        with caplog.at_level(logging.INFO, logger="core.handlers.order_completed_handler"):
            handle_order_completed(confirmations)(OrderCompleted.create(order_id=77, source="webhook"))

        assert "already dispatched" in caplog.text
