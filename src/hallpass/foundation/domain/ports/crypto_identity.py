"""Port interface for the end-to-end-encryption identity service.

The crypto service needs short-lived application tokens for its own
backend. It pulls them through a :data:`RenewalCallback` handed over at
initialization and calls it again whenever its current token goes stale,
possibly long after the provisioning call that created it has returned
and from a different task.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

#: Returns a fresh application token or raises ``TokenExchangeError``.
RenewalCallback = Callable[[], Awaitable[str]]


@runtime_checkable
class CryptoIdentityPort(Protocol):
    """Port for bootstrapping or unlocking a private crypto identity."""

    async def initialize(self, renewal_callback: RenewalCallback) -> None:
        """Start a crypto session that obtains tokens through the callback."""
        ...

    async def bootstrap(self, secret: str) -> None:
        """Create the private identity, or unlock the existing one, with the secret."""
        ...
