"""
Document render gateway client.

QR encoding and HTML-to-PDF conversion run in a separate render service;
this client only moves bytes. Requests are authenticated with X-API-Key.
"""

import logging

import requests

logger = logging.getLogger(__name__)


class RenderGatewayError(Exception):
    """Raised when the render gateway fails."""


class RenderGatewayClient:
    """Render QR codes and PDFs via the render gateway."""

    def __init__(self, gateway_url: str, api_key: str, timeout: int = 30):
        """
        Initialize with gateway credentials.

        Raises:
            ValueError: If any credential is empty
        """
        if not gateway_url:
            raise ValueError("gateway_url is required")
        if not api_key:
            raise ValueError("api_key is required")

        self.gateway_url = gateway_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def _post(self, path: str, payload: dict, expected_type: str) -> bytes:
        try:
            response = requests.post(
                f"{self.gateway_url}{path}",
                json=payload,
                headers={"X-API-Key": self.api_key},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Render gateway connection failed ({path}): {e}")
            raise RenderGatewayError(f"Connection failed: {e}")

        if response.status_code != 200:
            logger.error(f"Render gateway {path} returned {response.status_code}")
            raise RenderGatewayError(f"Gateway status {response.status_code}")

        content_type = response.headers.get("Content-Type", "")
        if not content_type.startswith(expected_type):
            raise RenderGatewayError(f"Unexpected content type '{content_type}' from {path}")

        return response.content

    def render_qr(self, data: str, size: int = 200, margin: int = 10) -> bytes:
        """
        Encode data as a QR code PNG.

        Low error correction, black on white, UTF-8.

        Raises:
            RenderGatewayError: On any failure
        """
        return self._post(
            "/qr",
            {
                "data": data,
                "size": size,
                "margin": margin,
                "error_correction": "L",
                "encoding": "UTF-8",
            },
            "image/png",
        )

    def html_to_pdf(self, html: str, paper: str = "A4", orientation: str = "portrait") -> bytes:
        """
        Convert an HTML document to PDF bytes.

        Raises:
            RenderGatewayError: On any failure
        """
        pdf = self._post(
            "/pdf",
            {"html": html, "paper": paper, "orientation": orientation},
            "application/pdf",
        )
        logger.info(f"Rendered PDF ({len(pdf)} bytes)")
        return pdf
