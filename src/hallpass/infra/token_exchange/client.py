"""Async HTTP client for the application-token exchange service.

Trades a provider bearer credential plus an identity for a short-lived,
service-signed application token. Wire protocol::

    POST <endpoint>
    Authorization: Bearer <credential>
    Content-Type: application/json

    {"identity": "<identity>"}

    -> 2xx {"token": "<application token>"}

Design decisions:
- Per-request httpx.AsyncClient unless one is injected. Renewals happen
  from whatever task the crypto service runs them on, so the client keeps
  no state that would tie it to one event loop.
- No retries. Retry policy belongs to the caller.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from hallpass.foundation.domain.exceptions import TokenExchangeError
from hallpass.infra.token_exchange.settings import (
    TokenExchangeSettings,
    get_token_exchange_settings,
)

logger = logging.getLogger(__name__)

_JSON_CONTENT_TYPE = "application/json"
_DEFAULT_TIMEOUT = 10.0


class TokenExchangeClient:
    """Client for the token-issuance endpoint.

    Args:
        endpoint_url: Full URL of the token-issuance endpoint.
        timeout: HTTP request timeout in seconds.
        client: Optional shared httpx.AsyncClient (caller manages lifecycle).
    """

    def __init__(
        self,
        endpoint_url: str,
        timeout: float = _DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._endpoint_url = endpoint_url
        self._timeout = timeout
        self._client = client

    @classmethod
    def from_settings(
        cls,
        settings: TokenExchangeSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> TokenExchangeClient:
        """Build a client from TokenExchangeSettings (environment by default).

        Raises:
            ValueError: If the configured endpoint is not an HTTP(S) URL.
        """
        if settings is None:
            settings = get_token_exchange_settings()
        settings.validate_endpoint()
        return cls(settings.endpoint_url, timeout=settings.timeout, client=client)

    @property
    def endpoint_url(self) -> str:
        return self._endpoint_url

    async def exchange(self, identity: str, bearer_credential: str) -> str:
        """Exchange a bearer credential for an application token.

        Args:
            identity: Identity the token is minted for.
            bearer_credential: Current provider bearer credential.

        Returns:
            The application token.

        Raises:
            TokenExchangeError: On malformed request, transport failure,
                non-2xx status, unparseable body or missing token field.
        """
        if not identity or not bearer_credential:
            raise TokenExchangeError(
                TokenExchangeError.MALFORMED_REQUEST,
                "identity and bearer credential are required",
            )

        try:
            if self._client is not None:
                response = await self._send(self._client, identity, bearer_credential)
            else:
                async with httpx.AsyncClient() as client:
                    response = await self._send(client, identity, bearer_credential)
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
            logger.error("token_exchange_malformed_request", extra={"identity": identity})
            raise TokenExchangeError(TokenExchangeError.MALFORMED_REQUEST, str(exc)) from exc
        except httpx.DecodingError as exc:
            # Body arrived but its declared content-encoding does not decode.
            logger.error("token_exchange_undecodable_body", extra={"identity": identity})
            raise TokenExchangeError(
                TokenExchangeError.UNPARSEABLE_BODY,
                f"response body could not be decoded: {exc}",
            ) from exc
        except httpx.RequestError as exc:
            logger.error(
                "token_exchange_transport_error",
                extra={"identity": identity, "error_type": type(exc).__name__},
            )
            raise TokenExchangeError(TokenExchangeError.TRANSPORT, str(exc) or repr(exc)) from exc

        return self._parse_token(response, identity)

    async def _send(
        self,
        client: httpx.AsyncClient,
        identity: str,
        bearer_credential: str,
    ) -> httpx.Response:
        request = client.build_request(
            "POST",
            self._endpoint_url,
            json={"identity": identity},
            headers={
                "Content-Type": _JSON_CONTENT_TYPE,
                "Authorization": f"Bearer {bearer_credential}",
            },
            timeout=self._timeout,
        )
        return await client.send(request)

    def _parse_token(self, response: httpx.Response, identity: str) -> str:
        """Extract the token field from a token-issuance response.

        Raises:
            TokenExchangeError: On non-2xx status or a body without a token.
        """
        if not response.is_success:
            logger.error(
                "token_exchange_bad_status",
                extra={"identity": identity, "status": response.status_code},
            )
            raise TokenExchangeError(
                TokenExchangeError.BAD_STATUS,
                f"service answered {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body: Any = response.json()
        except ValueError as exc:
            raise TokenExchangeError(
                TokenExchangeError.UNPARSEABLE_BODY,
                "response body is not JSON",
                status_code=response.status_code,
            ) from exc
        if not isinstance(body, dict):
            raise TokenExchangeError(
                TokenExchangeError.UNPARSEABLE_BODY,
                "response body is not a JSON object",
                status_code=response.status_code,
            )

        token = body.get("token")
        if not isinstance(token, str) or not token:
            logger.error("token_exchange_missing_token", extra={"identity": identity})
            raise TokenExchangeError(
                TokenExchangeError.MISSING_TOKEN,
                "response has no 'token' field",
                status_code=response.status_code,
            )
        return token
