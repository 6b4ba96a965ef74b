"""Hallpass Infra Token Exchange -- application-token issuance client.

Provides the httpx client for the token-issuance endpoint, its settings,
and the renewal callbacks the crypto identity service pulls tokens through.
"""

from hallpass.infra.token_exchange.client import TokenExchangeClient
from hallpass.infra.token_exchange.renewal import make_renewal_callback
from hallpass.infra.token_exchange.settings import (
    TokenExchangeSettings,
    get_token_exchange_settings,
)

__all__ = [
    "TokenExchangeClient",
    "TokenExchangeSettings",
    "get_token_exchange_settings",
    "make_renewal_callback",
]
