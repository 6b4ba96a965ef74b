"""Domain port interfaces for the provisioning saga's collaborators.

Ports define abstract interfaces the saga uses to reach the identity
provider, the crypto identity service, the user directory and the local
account bookkeeping. Implementations (adapters) live outside this package.
"""

from hallpass.foundation.domain.ports.bookkeeping import AccountBookkeepingPort
from hallpass.foundation.domain.ports.crypto_identity import (
    CryptoIdentityPort,
    RenewalCallback,
)
from hallpass.foundation.domain.ports.directory import DirectoryPort
from hallpass.foundation.domain.ports.identity_provider import (
    CredentialSource,
    IdentityProviderPort,
    ProviderSession,
)

__all__ = [
    "AccountBookkeepingPort",
    "CredentialSource",
    "CryptoIdentityPort",
    "DirectoryPort",
    "IdentityProviderPort",
    "ProviderSession",
    "RenewalCallback",
]
