"""Hallpass Foundation Domain -- pure Python domain primitives.

Identity value objects, the exception hierarchy and the port interfaces
of the provisioning saga's external collaborators.
"""

from hallpass.foundation.domain.exceptions import (
    CompensationFailure,
    ConflictError,
    CredentialFetchError,
    CryptoBootstrapError,
    DirectoryError,
    DomainError,
    InvalidStateTransitionError,
    NotAuthenticatedError,
    ProviderAuthError,
    ProvisioningError,
    TokenExchangeError,
    ValidationError,
)
from hallpass.foundation.domain.identity_value_objects import (
    DEFAULT_PSEUDO_EMAIL_DOMAIN,
    Identity,
    PseudoEmailCodec,
)
from hallpass.foundation.domain.ports import (
    AccountBookkeepingPort,
    CredentialSource,
    CryptoIdentityPort,
    DirectoryPort,
    IdentityProviderPort,
    ProviderSession,
    RenewalCallback,
)

__all__ = [
    "DEFAULT_PSEUDO_EMAIL_DOMAIN",
    "AccountBookkeepingPort",
    "CompensationFailure",
    "ConflictError",
    "CredentialFetchError",
    "CredentialSource",
    "CryptoBootstrapError",
    "CryptoIdentityPort",
    "DirectoryError",
    "DirectoryPort",
    "DomainError",
    "Identity",
    "IdentityProviderPort",
    "InvalidStateTransitionError",
    "NotAuthenticatedError",
    "ProviderAuthError",
    "ProviderSession",
    "ProvisioningError",
    "PseudoEmailCodec",
    "RenewalCallback",
    "TokenExchangeError",
    "ValidationError",
]
