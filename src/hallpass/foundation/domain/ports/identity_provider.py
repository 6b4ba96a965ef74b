"""Port interface for the password-based identity provider.

The provider owns accounts keyed by pseudo-email. Sessions it returns are
opaque to the saga apart from the account email, which is how a resumed
session is mapped back onto an identity.

Example:
    >>> from hallpass.foundation.domain.ports import IdentityProviderPort
    >>> async def login(provider: IdentityProviderPort) -> str:
    ...     session = await provider.sign_in("alice@virgilfirebase.com", "p4ssw0rd")
    ...     return await provider.get_bearer_credential(session)
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

#: Zero-argument coroutine function yielding a current bearer credential.
CredentialSource = Callable[[], Awaitable[str]]


@dataclass(frozen=True, slots=True)
class ProviderSession:
    """Authenticated session handed out by the identity provider.

    Attributes:
        uid: Provider-side account identifier.
        email: Pseudo-email the account is registered under. None when the
            provider reports a session without one (anonymous or federated).
        handle: Provider-specific session object (SDK user, refresh token).
    """

    uid: str
    email: str | None
    handle: Any = field(default=None, compare=False, repr=False)


@runtime_checkable
class IdentityProviderPort(Protocol):
    """Port for account and session management at the identity provider.

    Every method raises on failure; the saga maps the exception onto the
    stage it was called from.
    """

    async def current_session(self) -> ProviderSession | None:
        """Return the session the provider already holds, if any."""
        ...

    async def sign_in(self, email: str, secret: str) -> ProviderSession:
        """Authenticate an existing account with its password."""
        ...

    async def create_account(self, email: str, secret: str) -> ProviderSession:
        """Create a new account and return its signed-in session.

        Raises when an account with the same email already exists.
        """
        ...

    async def delete_account(self, session: ProviderSession) -> None:
        """Delete the account the session belongs to."""
        ...

    async def get_bearer_credential(self, session: ProviderSession) -> str:
        """Return a current bearer credential, refreshing it when expired."""
        ...
