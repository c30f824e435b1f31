"""Storefront configuration."""

from decimal import Decimal

from pydantic import BaseModel, Field


class StorefrontConfig(BaseModel):
    """
    Storefront configuration.

    Secrets (API credentials, signing keys) are not part of this model;
    they come from Vault via clients.vault_client.
    """

    # Pricing
    tax_rate: Decimal = Field(
        default=Decimal("9"),
        description="VAT percentage already included in ticket prices",
        ge=0,
        le=100,
    )
    currency: str = Field(
        default="EUR",
        description="ISO currency code sent with orders",
        min_length=3,
        max_length=3,
    )

    # Cart limits
    max_tickets_per_order: int = Field(
        default=25,
        description="Maximum tickets across all ticket types in one order",
        ge=1,
        le=500,
    )

    # Checkout session
    checkout_session_ttl_minutes: int = Field(
        default=120,
        description="How long cart and checkout state survive without activity",
        ge=5,
        le=1440,
    )

    # Payment
    payment_method: str = Field(
        default="mollie_wc_gateway_ideal",
        description="WooCommerce payment gateway id for new orders",
    )
    payment_method_title: str = Field(
        default="iDEAL",
        description="Human-readable payment method title",
    )

    # Documents
    document_token_expiry_days: int = Field(
        default=150,
        description="Lifetime of PDF download links",
        ge=1,
        le=730,
    )

    # Confirmation delivery
    confirmation_max_attempts: int = Field(
        default=5,
        description="Delivery attempts before a confirmation job is dead-lettered",
        ge=1,
        le=50,
    )
    confirmation_dedup_hours: int = Field(
        default=24,
        description="Window in which a second confirmation for the same order is suppressed",
        ge=1,
    )

    # Outbound HTTP
    http_timeout_seconds: int = Field(
        default=10,
        description="Timeout for short upstream calls (coupons, status, lookups)",
        ge=1,
        le=60,
    )
    order_timeout_seconds: int = Field(
        default=30,
        description="Timeout for order creation and document rendering",
        ge=1,
        le=120,
    )

    # Application
    app_base_url: str = Field(
        default="http://localhost:8000",
        description="Public base URL for download and return links",
    )
    app_name: str = Field(
        default="Tickets",
        description="Application name for emails",
    )
    from_email: str = Field(
        default="noreply@example.com",
        description="Sender address for confirmation emails",
    )
    display_timezone: str = Field(
        default="Europe/Amsterdam",
        description="IANA timezone for dates shown to customers",
    )
