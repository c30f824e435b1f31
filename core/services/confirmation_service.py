"""
Confirmation service: queue and send order confirmation emails.

dispatch() runs in the web process; handle() runs in the worker.

Duplicate suppression works in two places:

- dispatch takes confirmation:dispatched:{order_id} with SET NX for
  confirmation_dedup_hours, so the webhook, the operator API and the
  zero-total checkout path together queue one job per order. If queuing
  fails the key is released, so a redelivery can queue it.
- handle marks confirmation:sent:{order_id} after the gateway accepts the
  email and skips jobs for orders already marked. A crash between sending
  and marking can still send twice.

handle() does not retry. It logs and re-raises, and the queue decides.
"""

import logging

from jinja2 import Environment

from clients.email_client import Attachment, EmailGatewayClient
from clients.valkey_client import ValkeyClient
from core.config import StorefrontConfig
from core.document_tokens import DocumentTokenService
from core.job_queue import JobQueue
from core.models import ConfirmationJob
from core.rendering import create_template_env
from core.services.document_service import DocumentService, customer_name, meta_value
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

DISPATCHED_PREFIX = "confirmation:dispatched:"
SENT_PREFIX = "confirmation:sent:"


class ConfirmationService:
    """Service for order confirmation delivery."""

    def __init__(
        self,
        valkey: ValkeyClient,
        queue: JobQueue,
        tokens: DocumentTokenService,
        documents: DocumentService,
        email: EmailGatewayClient,
        config: StorefrontConfig,
        templates: Environment | None = None,
    ):
        self.valkey = valkey
        self.queue = queue
        self.tokens = tokens
        self.documents = documents
        self.email = email
        self.config = config
        self.templates = templates or create_template_env()

    def download_url(self, token: str) -> str:
        return f"{self.config.app_base_url.rstrip('/')}/pdf/download/{token}"

    def dispatch(self, order_id: int, force: bool = False) -> bool:
        """
        Queue the confirmation for an order.

        Args:
            order_id: WooCommerce order id
            force: Queue even if already dispatched or sent (operator resend)

        Returns:
            True if a job was queued, False if one was already queued within the dedup window
        """
        dispatched_key = f"{DISPATCHED_PREFIX}{order_id}"
        first = self.valkey.set(
            dispatched_key,
            now_utc().isoformat(),
            expire_seconds=self.config.confirmation_dedup_hours * 3600,
            only_if_absent=not force,
        )
        if not first:
            logger.info(f"Confirmation for order {order_id} already dispatched, skipping")
            return False

        try:
            job = ConfirmationJob(
                order_id=order_id,
                download_token=self.tokens.mint(order_id),
                resend=force,
            )
            self.queue.enqueue(job)
        except Exception:
            # Release the dedup key so a redelivery can queue the job
            logger.error(f"Could not queue confirmation for order {order_id}, releasing dedup key")
            self.valkey.delete(dispatched_key)
            raise
        return True

    def handle(self, job: ConfirmationJob) -> None:
        """
        Render the PDF and email it with the download link.

        Raises:
            Any rendering or gateway error, for the queue to retry
        """
        sent_key = f"{SENT_PREFIX}{job.order_id}"
        if not job.resend and self.valkey.exists(sent_key):
            logger.info(f"Confirmation for order {job.order_id} already sent, dropping job {job.job_id}")
            return

        try:
            self._send(job)
        except Exception as e:
            logger.error(f"Confirmation for order {job.order_id} failed (attempt {job.attempts + 1}): {e}")
            raise

        self.valkey.set(
            sent_key,
            now_utc().isoformat(),
            expire_seconds=self.config.document_token_expiry_days * 86400,
        )

    def _send(self, job: ConfirmationJob) -> None:
        order = self.documents.get_order(job.order_id)
        recipient = (order.get("billing") or {}).get("email")
        if not recipient:
            # No retry can fix this
            logger.error(f"Order {job.order_id} has no billing email, confirmation not sent")
            return

        pdf = self.documents.render(order)
        order_number = order.get("number") or order["id"]
        subject = f"Your tickets for order {order_number}"
        context = {
            "subject": subject,
            "order_number": order_number,
            "customer_name": customer_name(order),
            "event_name": meta_value(order, "_event_name"),
            "download_url": self.download_url(job.download_token),
            "order_total": order.get("total"),
            "currency": order.get("currency") or self.config.currency,
            "app_name": self.config.app_name,
        }

        self.email.send_email(
            to=recipient,
            subject=subject,
            html_body=self.templates.get_template("email/order_confirmation.html").render(**context),
            text_body=self.templates.get_template("email/order_confirmation.txt").render(**context),
            sender=self.config.from_email,
            attachments=[Attachment(self.documents.filename_for(order), pdf)],
        )
        logger.info(f"Confirmation for order {job.order_id} sent (job {job.job_id})")
