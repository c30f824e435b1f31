"""
Storefront web application.

create_app() wires middleware, error handlers and routers around a services
dict, so tests can pass their own. build_services() constructs the real
clients from Vault secrets.

Run with: uvicorn main:create_default_app --factory
"""

import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI

from api.documents import create_documents_router
from api.errors import register_error_handlers
from api.health import create_health_router
from api.middleware import CheckoutSessionMiddleware, RequestIDMiddleware
from api.orders import create_orders_router
from api.storefront import create_storefront_router
from api.webhook import create_webhook_router
from auth import ApiKeyGuard, ApiKeyMiddleware, WebhookSignatureVerifier
from clients import (
    EmailGatewayClient,
    MollieClient,
    RenderGatewayClient,
    TicketApiClient,
    ValkeyClient,
    WooCommerceClient,
    get_document_token_secret,
    get_email_config,
    get_mollie_config,
    get_operator_api_key,
    get_render_config,
    get_ticket_api_config,
    get_valkey_url,
    get_woocommerce_config,
)
from core.checkout_token import CheckoutTokenGuard
from core.config import StorefrontConfig
from core.document_tokens import DocumentTokenService
from core.event_bus import EventBus
from core.handlers.order_completed_handler import handle_order_completed
from core.job_queue import JobQueue
from core.rendering import create_template_env
from core.services.cart_service import CartService
from core.services.catalog_service import CatalogService
from core.services.confirmation_service import ConfirmationService
from core.services.coupon_service import CouponService
from core.services.document_service import DocumentService
from core.services.order_service import OrderService
from core.services.payment_service import PaymentService
from core.session_store import SessionStore

logger = logging.getLogger(__name__)

CONFIG_ENV_PREFIX = "STOREFRONT_"


def configure_logging() -> None:
    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load_config() -> StorefrontConfig:
    """StorefrontConfig from STOREFRONT_* environment variables, defaults otherwise."""
    values = {}
    for field in StorefrontConfig.model_fields:
        env_value = os.environ.get(f"{CONFIG_ENV_PREFIX}{field.upper()}")
        if env_value is not None:
            values[field] = env_value
    return StorefrontConfig.model_validate(values)


def build_confirmation_service(
    config: StorefrontConfig,
    valkey: ValkeyClient,
    woocommerce: WooCommerceClient,
) -> ConfirmationService:
    """Confirmation delivery stack, shared by the web app and the worker."""
    templates = create_template_env()
    ticket_api = TicketApiClient(**get_ticket_api_config(), timeout=config.order_timeout_seconds)
    renderer = RenderGatewayClient(**get_render_config(), timeout=config.order_timeout_seconds)
    email = EmailGatewayClient(**get_email_config(), timeout=config.http_timeout_seconds)

    documents = DocumentService(woocommerce, ticket_api, renderer, config, templates)
    return ConfirmationService(
        valkey=valkey,
        queue=JobQueue(valkey, max_attempts=config.confirmation_max_attempts),
        tokens=DocumentTokenService(get_document_token_secret(), config.document_token_expiry_days),
        documents=documents,
        email=email,
        config=config,
        templates=templates,
    )


def build_woocommerce(config: StorefrontConfig) -> WooCommerceClient:
    store = get_woocommerce_config()
    return WooCommerceClient(
        base_url=store["base_url"],
        consumer_key=store["consumer_key"],
        consumer_secret=store["consumer_secret"],
        timeout=config.http_timeout_seconds,
        order_timeout=config.order_timeout_seconds,
    )


def build_services(config: StorefrontConfig | None = None) -> dict:
    """
    Construct every service from Vault secrets.

    Raises:
        VaultError: If a secret is missing
        redis.ConnectionError: If Valkey is unreachable
    """
    config = config or load_config()
    valkey = ValkeyClient(get_valkey_url())
    woocommerce = build_woocommerce(config)

    confirmations = build_confirmation_service(config, valkey, woocommerce)

    catalog = CatalogService(woocommerce)
    carts = CartService(catalog, CouponService(woocommerce), config)
    event_bus = EventBus()
    orders = OrderService(
        woocommerce=woocommerce,
        carts=carts,
        payments=PaymentService(MollieClient(**get_mollie_config(), timeout=config.http_timeout_seconds)),
        tokens=CheckoutTokenGuard(),
        event_bus=event_bus,
        config=config,
    )

    return {
        "config": config,
        "valkey": valkey,
        "woocommerce": woocommerce,
        "sessions": SessionStore(valkey, config.checkout_session_ttl_minutes),
        "catalog": catalog,
        "cart": carts,
        "order": orders,
        "event_bus": event_bus,
        "queue": confirmations.queue,
        "document_tokens": confirmations.tokens,
        "documents": confirmations.documents,
        "confirmations": confirmations,
        "webhook_verifier": WebhookSignatureVerifier(get_woocommerce_config()["webhook_secret"]),
        "api_key_guard": ApiKeyGuard(get_operator_api_key()),
    }


def create_app(services: dict) -> FastAPI:
    """FastAPI app around an already-built services dict."""
    config = services["config"]

    # Zero-total checkouts announce completion on the bus
    services["event_bus"].subscribe(
        "OrderCompleted", handle_order_completed(services["confirmations"])
    )

    app = FastAPI(title=config.app_name)
    app.add_middleware(ApiKeyMiddleware, guard=services["api_key_guard"])
    app.add_middleware(
        CheckoutSessionMiddleware,
        max_age_seconds=config.checkout_session_ttl_minutes * 60,
        secure=config.app_base_url.startswith("https://"),
    )
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(create_storefront_router(services))
    app.include_router(create_documents_router(services))
    app.include_router(create_orders_router(services), prefix="/api")
    app.include_router(create_webhook_router(services))
    app.include_router(create_health_router(services))

    return app


def create_default_app() -> FastAPI:
    """App with real services. Loads .env before Vault settings are read."""
    load_dotenv()
    configure_logging()
    return create_app(build_services())
