"""Provisioning configuration settings.

Environment Variables:
    PROVISIONING_PSEUDO_EMAIL_DOMAIN: Domain appended to identities to form
        provider-facing pseudo-emails
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from hallpass.foundation.domain.identity_value_objects import (
    DEFAULT_PSEUDO_EMAIL_DOMAIN,
    PseudoEmailCodec,
)


class ProvisioningSettings(BaseSettings):
    """Provisioning configuration loaded from environment variables.

    Example:
        >>> ProvisioningSettings().pseudo_email_domain
        'virgilfirebase.com'
    """

    model_config = SettingsConfigDict(
        env_prefix="PROVISIONING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    pseudo_email_domain: str = Field(
        default=DEFAULT_PSEUDO_EMAIL_DOMAIN,
        description="Domain appended to identities to form pseudo-emails",
    )

    @field_validator("pseudo_email_domain", mode="before")
    @classmethod
    def normalize_domain(cls, v: object) -> str:
        return str(v).strip().lower().lstrip("@")

    def codec(self) -> PseudoEmailCodec:
        """Build the pseudo-email codec for the configured domain.

        Raises:
            ValidationError: If the domain is not a dotted lowercase domain.
        """
        return PseudoEmailCodec(domain=self.pseudo_email_domain)


@lru_cache(maxsize=1)
def get_provisioning_settings() -> ProvisioningSettings:
    """Get singleton ProvisioningSettings instance.

    Clear cache with ``get_provisioning_settings.cache_clear()`` for testing.
    """
    return ProvisioningSettings()
