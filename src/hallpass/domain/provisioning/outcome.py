"""Outcome of a provisioning saga run."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hallpass.domain.provisioning.state import SagaState


class ProvisioningStage(StrEnum):
    """Saga stage a failure is attributed to.

    Values match the ``stage`` constants of the provisioning exceptions.
    """

    PROVIDER_AUTH = "provider_auth"
    TOKEN_FETCH = "token_fetch"
    CRYPTO_BOOTSTRAP = "crypto_bootstrap"
    DIRECTORY_REGISTER = "directory_register"


@dataclass(frozen=True, slots=True)
class ProvisioningOutcome:
    """Terminal result of ``sign_in``, ``sign_up`` or ``resume_session``.

    Either a success, or a failure tagged with the stage it happened in
    and the exception that caused it. There is no partial success.

    Attributes:
        succeeded: Whether every step completed.
        stage: Failing stage (None on success).
        cause: Exception raised by the failing stage (None on success).
        identity: Identity the run was for, when known.
        compensated: Whether rollback actions ran for this failure.
        history: Saga states visited, in order.
    """

    succeeded: bool
    stage: ProvisioningStage | None = None
    cause: Exception | None = None
    identity: str | None = None
    compensated: bool = False
    history: tuple[SagaState, ...] = ()

    @classmethod
    def success(
        cls,
        identity: str,
        history: tuple[SagaState, ...] = (),
    ) -> ProvisioningOutcome:
        return cls(succeeded=True, identity=identity, history=history)

    @classmethod
    def failed(
        cls,
        stage: ProvisioningStage,
        cause: Exception,
        *,
        identity: str | None = None,
        compensated: bool = False,
        history: tuple[SagaState, ...] = (),
    ) -> ProvisioningOutcome:
        return cls(
            succeeded=False,
            stage=stage,
            cause=cause,
            identity=identity,
            compensated=compensated,
            history=history,
        )

    def raise_for_failure(self) -> None:
        """Re-raise the failure cause; no-op on success.

        Raises:
            Exception: The cause of a failed outcome.
        """
        if self.cause is not None:
            raise self.cause
