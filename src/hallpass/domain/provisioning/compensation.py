"""Compensating actions for the compensable window of a saga.

An action is registered immediately after the side effect it reverses.
On failure inside the window the stack is unwound in reverse registration
order; once the saga crosses into a non-compensable stage the stack is
sealed and its actions are discarded without running.

Unwinding is best-effort: a failing action is logged as a
``CompensationFailure`` and the remaining actions still run.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from hallpass.foundation.domain.exceptions import CompensationFailure
from hallpass.infra.observability import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CompensationAction:
    """Deferred rollback of one committed side effect.

    Attributes:
        name: Action name used in logs (e.g. "delete_provider_account").
        undo: Zero-argument coroutine function performing the rollback.
    """

    name: str
    undo: Callable[[], Awaitable[None]]


class CompensationStack:
    """LIFO stack of compensation actions for one saga run."""

    def __init__(self) -> None:
        self._actions: list[CompensationAction] = []
        self._sealed = False
        self.failures: list[CompensationFailure] = []

    def __len__(self) -> int:
        return len(self._actions)

    @property
    def sealed(self) -> bool:
        return self._sealed

    def push(self, action: CompensationAction) -> None:
        """Register an action for the side effect that just committed.

        Raises:
            RuntimeError: If the stack was already sealed.
        """
        if self._sealed:
            raise RuntimeError(f"Cannot register '{action.name}' on a sealed compensation stack")
        self._actions.append(action)

    def seal(self) -> None:
        """Leave the compensable window; registered actions are discarded."""
        self._actions.clear()
        self._sealed = True

    async def unwind(self) -> bool:
        """Run registered actions newest-first, then seal the stack.

        Returns:
            True if at least one action was run.
        """
        ran = bool(self._actions)
        while self._actions:
            action = self._actions.pop()
            try:
                await action.undo()
            except Exception as exc:
                failure = CompensationFailure(action.name, exc)
                self.failures.append(failure)
                logger.error(
                    "compensation_failed",
                    action=action.name,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
            else:
                logger.info("compensation_applied", action=action.name)
        self._sealed = True
        return ran
