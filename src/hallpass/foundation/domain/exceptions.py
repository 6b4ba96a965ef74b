"""Domain exception hierarchy for type-safe error handling.

Every error raised by hallpass derives from ``DomainError``, which carries
a machine-readable ``error_code`` and a structured ``context`` dict for
logging. Provisioning failures additionally carry the saga stage they
originated from.

Example:
    >>> from hallpass.foundation.domain.exceptions import ValidationError
    >>> raise ValidationError("identity", "must not be empty")
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "CompensationFailure",
    "ConflictError",
    "CredentialFetchError",
    "CryptoBootstrapError",
    "DirectoryError",
    "DomainError",
    "InvalidStateTransitionError",
    "NotAuthenticatedError",
    "ProviderAuthError",
    "ProvisioningError",
    "TokenExchangeError",
    "ValidationError",
]


class DomainError(Exception):
    """Base class for all domain errors.

    Attributes:
        error_code: Machine-readable error code for client handling.
        message: Human-readable error description.
        context: Structured debugging information (identity, stage, status).
    """

    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """String representation including context for logging."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class ValidationError(DomainError):
    """Raised when input fails domain validation rules.

    Attributes:
        error_code: "VALIDATION_ERROR" (class constant).
        field: Field that failed validation.
        reason: Human-readable validation failure reason.

    Example:
        >>> raise ValidationError("identity", "contains '@'")
        ValidationError: Validation failed for 'identity': contains '@'
    """

    error_code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str, **extra_context: Any) -> None:
        self.field = field
        self.reason = reason
        message = f"Validation failed for '{field}': {reason}"
        context = {"field": field, "reason": reason, **extra_context}
        super().__init__(message, context)


class ConflictError(DomainError):
    """Raised when an operation conflicts with current state."""

    error_code: str = "CONFLICT"

    def __init__(self, reason: str, **context: Any) -> None:
        self.reason = reason
        super().__init__(f"Conflict: {reason}", context)


class InvalidStateTransitionError(ConflictError):
    """Raised when a saga state machine transition is not allowed.

    Example:
        >>> raise InvalidStateTransitionError(
        ...     "Cannot move saga to COMPLETED", current_state="STARTED"
        ... )
    """

    error_code: str = "INVALID_STATE_TRANSITION"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message, **context)


class ProvisioningError(DomainError):
    """Base class for errors raised by a provisioning saga stage.

    The message is the collaborator's own error text so that a failed
    outcome reads the way the collaborator reported it. Stage-specific
    subclasses set ``stage`` as a class constant; the value is the string
    form of the matching ``ProvisioningStage`` member.

    Attributes:
        stage: Saga stage the error belongs to.
    """

    error_code: str = "PROVISIONING_ERROR"
    stage: str = ""

    @classmethod
    def wrap(cls, exc: BaseException, **context: Any) -> ProvisioningError:
        """Wrap a collaborator exception in this stage's error type.

        Exceptions that already are instances of this class are returned
        unchanged so a stage never double-wraps its own typed failure.

        Args:
            exc: The exception raised by the collaborator.
            **context: Structured context added to the new error.

        Returns:
            A ``ProvisioningError`` whose ``__cause__`` is ``exc``.
        """
        if isinstance(exc, cls):
            return exc
        wrapped = cls(str(exc) or exc.__class__.__name__, context)
        wrapped.__cause__ = exc
        return wrapped


class ProviderAuthError(ProvisioningError):
    """Raised when the identity provider rejects sign-in or account creation.

    Covers invalid credentials, account already exists, account not found
    and provider network failures.
    """

    error_code: str = "PROVIDER_AUTH_ERROR"
    stage: str = "provider_auth"


class NotAuthenticatedError(ProviderAuthError):
    """Raised when a session is resumed but the provider holds no session."""

    error_code: str = "NOT_AUTHENTICATED"

    def __init__(
        self,
        message: str = "No authenticated provider session",
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, context)


class CredentialFetchError(ProviderAuthError):
    """Raised when the provider cannot issue a bearer credential for a session."""

    error_code: str = "CREDENTIAL_FETCH_ERROR"
    stage: str = "token_fetch"


class TokenExchangeError(ProvisioningError):
    """Raised when the token-exchange service cannot mint an application token.

    Attributes:
        reason: One of ``malformed_request``, ``transport``, ``bad_status``,
            ``unparseable_body``, ``missing_token``.
        status_code: HTTP status from the service, when a response arrived.
    """

    error_code: str = "TOKEN_EXCHANGE_ERROR"
    stage: str = "token_fetch"

    MALFORMED_REQUEST = "malformed_request"
    TRANSPORT = "transport"
    BAD_STATUS = "bad_status"
    UNPARSEABLE_BODY = "unparseable_body"
    MISSING_TOKEN = "missing_token"

    def __init__(
        self,
        reason: str,
        detail: str,
        status_code: int | None = None,
    ) -> None:
        self.reason = reason
        self.detail = detail
        self.status_code = status_code
        context: dict[str, Any] = {"reason": reason}
        if status_code is not None:
            context["status_code"] = status_code
        super().__init__(f"Token exchange failed: {detail}", context)


class CryptoBootstrapError(ProvisioningError):
    """Raised when the crypto identity cannot be initialized or unlocked."""

    error_code: str = "CRYPTO_BOOTSTRAP_ERROR"
    stage: str = "crypto_bootstrap"


class DirectoryError(ProvisioningError):
    """Raised when the directory existence check or record creation fails."""

    error_code: str = "DIRECTORY_ERROR"
    stage: str = "directory_register"


class CompensationFailure(DomainError):
    """Raised inside the compensation stack when a rollback action fails.

    Never returned to the caller: it is logged and the original failure
    stays the outcome.

    Attributes:
        action: Name of the compensation action that failed.
    """

    error_code: str = "COMPENSATION_FAILURE"

    def __init__(self, action: str, cause: BaseException) -> None:
        self.action = action
        super().__init__(
            f"Compensation action '{action}' failed: {cause}",
            {"action": action},
        )
        self.__cause__ = cause
