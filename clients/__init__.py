# Infrastructure clients
from clients.vault_client import (
    VaultClient,
    VaultError,
    get_valkey_url,
    get_woocommerce_config,
    get_mollie_config,
    get_email_config,
    get_render_config,
    get_ticket_api_config,
    get_document_token_secret,
    get_operator_api_key,
)
from clients.valkey_client import ValkeyClient
from clients.email_client import EmailGatewayClient, EmailGatewayError, Attachment
from clients.woocommerce_client import WooCommerceClient, WooCommerceError
from clients.mollie_client import MollieClient, MollieError
from clients.ticket_api_client import TicketApiClient, TicketApiError
from clients.render_client import RenderGatewayClient, RenderGatewayError
