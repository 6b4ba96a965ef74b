"""Structured logging for provisioning runs.

Every provisioning run binds its saga operation and identity into
contextvars, so each event emitted while the run is in flight carries
them without threading a logger through the call chain. Passwords,
bearer credentials and application tokens are masked before rendering,
including bearer credentials echoed inside free-text error messages.

Usage:
    # During process startup
    from hallpass.infra.observability.logging import configure_logging
    configure_logging()

    # In library code
    from hallpass.infra.observability import get_logger, saga_log_context
    logger = get_logger(__name__)
    with saga_log_context("sign_up", identity="alice"):
        logger.info("sign_up_started")
"""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Literal, TextIO

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from collections.abc import Iterator, MutableMapping

Processor = structlog.types.Processor

#: Keys masked outright (case-insensitive).
SENSITIVE_KEYS: frozenset[str] = frozenset({"authorization", "bearer"})

#: Fragments marking compound keys such as ``refresh_token`` or ``user_password``.
SENSITIVE_FRAGMENTS: tuple[str, ...] = ("secret", "password", "token", "credential")

REDACTED_VALUE: str = "***REDACTED***"

_BEARER_PATTERN = re.compile(r"(Bearer\s+)[^\s,;\"']+", re.IGNORECASE)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogRenderer = Literal["console", "json"]


class LoggingSettings(BaseSettings):
    """Logging configuration loaded from environment variables.

    Environment Variables:
        HALLPASS_LOG_LEVEL: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        HALLPASS_LOG_RENDERER: ``console`` for humans, ``json`` for log shippers

    Example:
        >>> LoggingSettings(renderer="json").renderer
        'json'
    """

    model_config = SettingsConfigDict(
        env_prefix="HALLPASS_LOG_",
        extra="ignore",
    )

    level: LogLevel = Field(default="INFO", description="Minimum log level to output")
    renderer: LogRenderer = Field(default="console", description="Output format")

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        return v.strip().upper() if isinstance(v, str) else v

    @field_validator("renderer", mode="before")
    @classmethod
    def normalize_renderer(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @property
    def level_int(self) -> int:
        return logging.getLevelNamesMapping()[self.level]


class SensitiveDataProcessor:
    """Structlog processor masking credentials in the event dict.

    Values under sensitive keys are replaced by REDACTED_VALUE. In all other
    string values, anything following ``Bearer `` is masked, so an
    Authorization header quoted by an HTTP error does not leak.

    Example:
        >>> processor = SensitiveDataProcessor()
        >>> processor(None, "error", {"event": "x", "error": "401 for Bearer abc"})["error"]
        '401 for Bearer ***REDACTED***'
    """

    def __call__(
        self,
        logger: Any,
        method_name: str,
        event_dict: MutableMapping[str, Any],
    ) -> MutableMapping[str, Any]:
        for key, value in event_dict.items():
            if self._is_sensitive(key):
                event_dict[key] = REDACTED_VALUE
            elif isinstance(value, str):
                event_dict[key] = _BEARER_PATTERN.sub(rf"\g<1>{REDACTED_VALUE}", value)
        return event_dict

    def _is_sensitive(self, key: str) -> bool:
        key_lower = key.lower()
        if key_lower in SENSITIVE_KEYS:
            return True
        return any(fragment in key_lower for fragment in SENSITIVE_FRAGMENTS)


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached LoggingSettings instance.

    Clear cache with ``get_logging_settings.cache_clear()`` for testing.
    """
    return LoggingSettings()


def configure_logging(
    settings: LoggingSettings | None = None,
    stream: TextIO | None = None,
) -> None:
    """Configure structlog for the process.

    Loggers are not cached on first use, so module-level loggers obtained
    before this call, and calls made again later, see the latest
    configuration.

    Args:
        settings: Logging settings, loaded from the environment if omitted.
        stream: Output stream (defaults to stdout).
    """
    if settings is None:
        settings = get_logging_settings()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        SensitiveDataProcessor(),
    ]
    if settings.renderer == "json":
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=stream is None))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(settings.level_int),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=False,
    )


@contextmanager
def saga_log_context(operation: str, identity: str | None = None) -> Iterator[None]:
    """Bind the saga operation (and identity, when known) to every event in the block."""
    context = {"saga": operation}
    if identity is not None:
        context["identity"] = identity
    with structlog.contextvars.bound_contextvars(**context):
        yield


def get_logger(name: str | None = None) -> structlog.typing.WrappedLogger:
    """Get a structlog logger tagged with ``logger_name``.

    The returned proxy resolves the configuration when it first logs, so it
    is safe to create at module import time.

    Args:
        name: Logger name (typically __name__ from calling module).
            If None, returns an untagged logger.
    """
    if name is None:
        return structlog.get_logger()
    return structlog.get_logger(logger_name=name)
