"""Token exchange configuration settings.

Loaded from environment variables with TOKEN_EXCHANGE_ prefix.

Environment Variables:
    TOKEN_EXCHANGE_ENDPOINT_URL: Token-issuance endpoint (POST)
    TOKEN_EXCHANGE_TIMEOUT: HTTP request timeout in seconds
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TokenExchangeSettings(BaseSettings):
    """Token exchange configuration loaded from environment variables.

    Example:
        >>> settings = TokenExchangeSettings()
        >>> settings.endpoint_url
        'http://localhost:3000/get-virgil-jwt'
        >>> settings.timeout
        10.0
    """

    model_config = SettingsConfigDict(
        env_prefix="TOKEN_EXCHANGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    endpoint_url: str = Field(
        default="http://localhost:3000/get-virgil-jwt",
        description="Token-issuance endpoint receiving the bearer credential",
    )
    timeout: float = Field(
        default=10.0,
        ge=1.0,
        le=120.0,
        description="HTTP request timeout in seconds",
    )

    def validate_endpoint(self) -> None:
        """Validate the endpoint URL.

        Raises:
            ValueError: If the endpoint is empty or not an HTTP(S) URL.
        """
        if not self.endpoint_url:
            raise ValueError("TOKEN_EXCHANGE_ENDPOINT_URL is required")
        if not self.endpoint_url.startswith(("http://", "https://")):
            raise ValueError("TOKEN_EXCHANGE_ENDPOINT_URL must be a valid HTTP(S) URL")


@lru_cache(maxsize=1)
def get_token_exchange_settings() -> TokenExchangeSettings:
    """Get singleton TokenExchangeSettings instance.

    Clear cache with ``get_token_exchange_settings.cache_clear()`` for testing.
    """
    return TokenExchangeSettings()
