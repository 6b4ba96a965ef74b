"""Saga run state machine.

State machine::

    STARTED --sign_in/resume--> AUTHENTICATED --+
       |                                        |
       +----sign_up----> ACCOUNT_CREATED -------+--> CREDENTIAL_OBTAINED
                         (compensable)                (compensable in sign_up)
                                                           |
                                                           v
                        COMPLETED <---------------- CRYPTO_READY
                            ^                              |
                            +------ DIRECTORY_CHECKED <----+  (sign_up only)

    Any non-terminal state may move to FAILED. COMPLETED and FAILED are terminal.
"""

from __future__ import annotations

from enum import StrEnum

from hallpass.foundation.domain.exceptions import InvalidStateTransitionError


class SagaState(StrEnum):
    """Lifecycle states of one provisioning run."""

    STARTED = "STARTED"
    AUTHENTICATED = "AUTHENTICATED"
    ACCOUNT_CREATED = "ACCOUNT_CREATED"
    CREDENTIAL_OBTAINED = "CREDENTIAL_OBTAINED"
    CRYPTO_READY = "CRYPTO_READY"
    DIRECTORY_CHECKED = "DIRECTORY_CHECKED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


_TRANSITIONS: dict[SagaState, frozenset[SagaState]] = {
    SagaState.STARTED: frozenset(
        {SagaState.AUTHENTICATED, SagaState.ACCOUNT_CREATED, SagaState.FAILED}
    ),
    SagaState.AUTHENTICATED: frozenset({SagaState.CREDENTIAL_OBTAINED, SagaState.FAILED}),
    SagaState.ACCOUNT_CREATED: frozenset({SagaState.CREDENTIAL_OBTAINED, SagaState.FAILED}),
    SagaState.CREDENTIAL_OBTAINED: frozenset({SagaState.CRYPTO_READY, SagaState.FAILED}),
    SagaState.CRYPTO_READY: frozenset(
        {SagaState.DIRECTORY_CHECKED, SagaState.COMPLETED, SagaState.FAILED}
    ),
    SagaState.DIRECTORY_CHECKED: frozenset({SagaState.COMPLETED, SagaState.FAILED}),
    SagaState.COMPLETED: frozenset(),
    SagaState.FAILED: frozenset(),
}


class SagaRun:
    """Tracks the state of a single saga invocation.

    Attributes:
        operation: Saga operation name ("sign_in", "sign_up", "resume_session").
        state: Current state.
        history: States visited, starting with STARTED.
    """

    def __init__(self, operation: str) -> None:
        self.operation = operation
        self.state = SagaState.STARTED
        self.history: list[SagaState] = [SagaState.STARTED]

    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS[self.state]

    def advance(self, target: SagaState) -> None:
        """Move to ``target``.

        Raises:
            InvalidStateTransitionError: If the transition is not allowed
                from the current state.
        """
        if target not in _TRANSITIONS[self.state]:
            raise InvalidStateTransitionError(
                f"Cannot move {self.operation} saga to {target}",
                current_state=self.state.value,
                target_state=target.value,
            )
        self.state = target
        self.history.append(target)

    def snapshot(self) -> tuple[SagaState, ...]:
        return tuple(self.history)
