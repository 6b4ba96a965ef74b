"""Port interface for local account bookkeeping.

Local side-effect notifications (for example a device-side account cache).
The saga treats them as fire-and-forget.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class AccountBookkeepingPort(Protocol):
    """Port for recording accounts in local storage."""

    def record_account_created(self, identity: str) -> None:
        """Persist a freshly signed-up account locally."""
        ...

    def record_account_present(self, identity: str) -> None:
        """Mark an existing account as signed in and crypto-ready locally."""
        ...
