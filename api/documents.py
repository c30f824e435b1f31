"""GET /pdf/download/{token}: order confirmation PDF behind a signed link."""

import logging

from fastapi import APIRouter
from fastapi.responses import Response

from core.exceptions import DocumentUnavailable, InvalidOrExpiredToken, RenderingFailure

logger = logging.getLogger(__name__)


def create_documents_router(services: dict) -> APIRouter:
    router = APIRouter()

    tokens = services["document_tokens"]
    documents = services["documents"]

    @router.get("/pdf/download/{token}")
    def download(token: str):
        # Every failure surfaces as the same not-found response
        try:
            order_id = tokens.verify(token)
        except InvalidOrExpiredToken:
            logger.warning(f"Rejected document token {token[:8]}...")
            raise

        try:
            pdf, filename = documents.render_for_order(order_id)
        except DocumentUnavailable:
            logger.warning(f"Document for order {order_id} unavailable (token {token[:8]}...)")
            raise
        except RenderingFailure as e:
            logger.error(f"Document for order {order_id} failed to render (token {token[:8]}...): {e}")
            raise DocumentUnavailable(f"Order {order_id} document could not be rendered") from e

        return Response(
            content=pdf,
            media_type="application/pdf",
            headers={
                "Content-Disposition": f'attachment; filename="{filename}"',
                "Cache-Control": "no-store, no-cache, must-revalidate",
                "Pragma": "no-cache",
            },
        )

    return router
