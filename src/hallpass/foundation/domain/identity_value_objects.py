"""Value objects for user identities and their provider-facing addresses.

Immutable, validated domain primitives. All validation occurs at
construction time.

The identity provider only understands email-shaped account names, so an
identity is mapped onto a pseudo-email by appending a fixed domain. The
identity alphabet excludes ``@`` and upper-case letters: the first keeps
the mapping injective, the second keeps it reversible against providers
that normalize email case.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from hallpass.foundation.domain.exceptions import ValidationError

DEFAULT_PSEUDO_EMAIL_DOMAIN = "virgilfirebase.com"

_IDENTITY_PATTERN = re.compile(r"^[a-z0-9][a-z0-9._-]*$")
_DOMAIN_PATTERN = re.compile(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?(\.[a-z0-9]([a-z0-9-]*[a-z0-9])?)+$")
_MAX_IDENTITY_LENGTH = 64


@dataclass(frozen=True, slots=True)
class Identity:
    """Validated human-chosen account handle.

    Format: 1-64 characters of lowercase ASCII letters, digits, ``.``,
    ``_`` and ``-``, starting with a letter or digit.

    Attributes:
        value: The validated identity string.

    Raises:
        ValidationError: If the identity is empty, too long or uses
            characters outside the allowed set.
    """

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValidationError("identity", "must not be empty")
        if len(self.value) > _MAX_IDENTITY_LENGTH:
            raise ValidationError(
                "identity",
                f"too long: {len(self.value)} chars (max {_MAX_IDENTITY_LENGTH})",
            )
        if not _IDENTITY_PATTERN.match(self.value):
            raise ValidationError(
                "identity",
                "must be lowercase letters, digits, '.', '_' or '-', "
                "starting with a letter or digit",
                identity=self.value,
            )

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class PseudoEmailCodec:
    """Reversible mapping between identities and provider pseudo-emails.

    ``encode`` appends ``"@" + domain``; ``decode`` strips it again and
    re-validates what remains as an :class:`Identity`.

    Example:
        >>> codec = PseudoEmailCodec()
        >>> codec.encode(Identity("alice"))
        'alice@virgilfirebase.com'
        >>> codec.decode("alice@virgilfirebase.com")
        Identity(value='alice')
    """

    domain: str = DEFAULT_PSEUDO_EMAIL_DOMAIN

    def __post_init__(self) -> None:
        if not _DOMAIN_PATTERN.match(self.domain):
            raise ValidationError(
                "pseudo_email_domain",
                f"not a lowercase dotted domain: '{self.domain}'",
            )

    @property
    def suffix(self) -> str:
        return f"@{self.domain}"

    def encode(self, identity: Identity) -> str:
        return f"{identity.value}{self.suffix}"

    def decode(self, email: str) -> Identity:
        """Recover the identity an address was encoded from.

        Args:
            email: Provider-facing pseudo-email.

        Returns:
            The original Identity.

        Raises:
            ValidationError: If the address is not on the codec's domain or
                its local part is not a valid identity.
        """
        if not email.endswith(self.suffix):
            raise ValidationError(
                "email",
                f"not a pseudo-email on domain '{self.domain}'",
                email=email,
            )
        return Identity(email[: -len(self.suffix)])
