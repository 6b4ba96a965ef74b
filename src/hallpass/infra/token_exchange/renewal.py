"""Renewal callbacks handed to the crypto identity service.

A renewal callback is bound once per session to an identity, a source of
current bearer credentials and a token exchange client. The crypto service
invokes it whenever its application token is stale, at arbitrary times and
from arbitrary tasks. Every call performs a new exchange and no token is
cached between calls. The only mutable state is an optional single-use
seed credential, which lets the first exchange reuse the credential the
caller fetched moments before.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from hallpass.foundation.domain.exceptions import CredentialFetchError, TokenExchangeError

if TYPE_CHECKING:
    from hallpass.foundation.domain.ports import CredentialSource, RenewalCallback
    from hallpass.infra.token_exchange.client import TokenExchangeClient

logger = logging.getLogger(__name__)


def make_renewal_callback(
    identity: str,
    credential_source: CredentialSource,
    exchange_client: TokenExchangeClient,
    *,
    initial_credential: str | None = None,
) -> RenewalCallback:
    """Create a renewal callback bound to one identity.

    Args:
        identity: Identity the application tokens are minted for.
        credential_source: Coroutine function returning a current bearer
            credential (typically bound to the provider session).
        exchange_client: Client for the token-issuance endpoint.
        initial_credential: Credential the caller has just fetched. The
            first call exchanges it instead of fetching again. If the
            service rejects it with a non-2xx status, that call retries once
            with a freshly fetched credential.

    Returns:
        Coroutine function returning a fresh application token.
    """
    seed = [initial_credential] if initial_credential else []

    async def renew() -> str:
        try:
            seeded = seed.pop()
        except IndexError:
            seeded = None

        if seeded is not None:
            try:
                return await exchange_client.exchange(identity, seeded)
            except TokenExchangeError as exc:
                if exc.reason != TokenExchangeError.BAD_STATUS:
                    logger.error(
                        "renewal_token_exchange_failed",
                        extra={"identity": identity, "reason": exc.reason},
                    )
                    raise
                logger.warning(
                    "renewal_initial_credential_rejected",
                    extra={"identity": identity, "status": exc.status_code},
                )

        try:
            bearer_credential = await credential_source()
        except Exception as exc:
            logger.error(
                "renewal_credential_fetch_failed",
                extra={"identity": identity, "error_type": type(exc).__name__},
            )
            raise CredentialFetchError.wrap(exc, identity=identity) from exc

        try:
            token = await exchange_client.exchange(identity, bearer_credential)
        except TokenExchangeError as exc:
            logger.error(
                "renewal_token_exchange_failed",
                extra={"identity": identity, "reason": exc.reason},
            )
            raise
        logger.debug("renewal_token_issued", extra={"identity": identity})
        return token

    return renew
