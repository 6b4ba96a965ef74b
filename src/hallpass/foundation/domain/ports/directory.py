"""Port interface for the user directory.

The directory is an auxiliary index of registered identities used for
user lookup. It is not consulted for authentication.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class DirectoryPort(Protocol):
    """Port for directory record lookup and creation."""

    async def exists(self, identity: str) -> bool:
        """Return True when a record for the identity is present."""
        ...

    async def create(self, identity: str) -> None:
        """Create the record for the identity."""
        ...
