"""Provisioning saga spanning identity provider, token exchange and crypto identity.

Orchestrates three flows, each a strict sequence of awaited steps:

sign_up:
1. Create the provider account (registers the delete-account compensation)
2. Obtain a bearer credential                              (compensable)
3. Initialize the crypto session and bootstrap the identity (compensable)
4. Register the identity in the directory                  (not compensable)
5. Record the new account locally

sign_in:
1. Sign in at the provider
2. Obtain a bearer credential
3. Initialize the crypto session and unlock the identity
4. Record the account locally

resume_session:
1. Pick up the provider's current session, derive the identity from its email
2. Obtain a bearer credential
3. Initialize the crypto session
4. Record the account locally

Every flow returns a single ProvisioningOutcome. Collaborator exceptions are
wrapped in the stage error for the step that raised them and never escape.
"""

from __future__ import annotations

import asyncio
from functools import partial
from typing import TYPE_CHECKING, TypeVar

from hallpass.domain.provisioning.compensation import CompensationAction, CompensationStack
from hallpass.domain.provisioning.outcome import ProvisioningOutcome, ProvisioningStage
from hallpass.domain.provisioning.settings import (
    ProvisioningSettings,
    get_provisioning_settings,
)
from hallpass.domain.provisioning.state import SagaRun, SagaState
from hallpass.foundation.domain.exceptions import (
    CredentialFetchError,
    CryptoBootstrapError,
    DirectoryError,
    NotAuthenticatedError,
    ProviderAuthError,
    ProvisioningError,
    ValidationError,
)
from hallpass.foundation.domain.identity_value_objects import Identity, PseudoEmailCodec
from hallpass.infra.observability import get_logger, saga_log_context
from hallpass.infra.token_exchange import TokenExchangeClient, make_renewal_callback

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    import httpx

    from hallpass.foundation.domain.ports import (
        AccountBookkeepingPort,
        CryptoIdentityPort,
        DirectoryPort,
        IdentityProviderPort,
        ProviderSession,
    )
    from hallpass.infra.token_exchange import TokenExchangeSettings

logger = get_logger(__name__)

T = TypeVar("T")


class _StageFailed(Exception):
    """Internal short-circuit carrying the failing stage and its error."""

    def __init__(self, stage: ProvisioningStage, cause: ProvisioningError) -> None:
        super().__init__(str(cause))
        self.stage = stage
        self.cause = cause


class ProvisioningSaga:
    """Sign-up, sign-in and session resumption across all trust domains.

    The saga holds no per-run state; concurrent runs for different
    identities are independent. Runs for the same identity are not
    serialized here.

    Args:
        provider: Identity provider port.
        crypto: Crypto identity service port.
        directory: User directory port.
        bookkeeping: Local account bookkeeping port.
        exchange_client: Client for the application-token endpoint.
        codec: Identity to pseudo-email mapping.
    """

    def __init__(
        self,
        provider: IdentityProviderPort,
        crypto: CryptoIdentityPort,
        directory: DirectoryPort,
        bookkeeping: AccountBookkeepingPort,
        exchange_client: TokenExchangeClient,
        codec: PseudoEmailCodec | None = None,
    ) -> None:
        self._provider = provider
        self._crypto = crypto
        self._directory = directory
        self._bookkeeping = bookkeeping
        self._exchange_client = exchange_client
        self._codec = codec or PseudoEmailCodec()

    @classmethod
    def from_settings(
        cls,
        provider: IdentityProviderPort,
        crypto: CryptoIdentityPort,
        directory: DirectoryPort,
        bookkeeping: AccountBookkeepingPort,
        *,
        settings: ProvisioningSettings | None = None,
        token_settings: TokenExchangeSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> ProvisioningSaga:
        """Wire a saga from ProvisioningSettings and TokenExchangeSettings.

        Raises:
            ValueError: If the token endpoint is not an HTTP(S) URL.
            ValidationError: If the pseudo-email domain is invalid.
        """
        if settings is None:
            settings = get_provisioning_settings()
        return cls(
            provider,
            crypto,
            directory,
            bookkeeping,
            TokenExchangeClient.from_settings(token_settings, client=http_client),
            codec=settings.codec(),
        )

    @property
    def codec(self) -> PseudoEmailCodec:
        return self._codec

    # -- Public operations ---------------------------------------------------

    async def resume_session(self) -> ProvisioningOutcome:
        """Bring up the crypto session for the provider's existing session.

        Returns:
            Success, or Failed(PROVIDER_AUTH, NotAuthenticatedError) when
            the provider holds no session or one without an email. Never
            compensates.
        """
        run = SagaRun("resume_session")
        with saga_log_context(run.operation):
            try:
                session = await self._step(
                    ProviderAuthError, self._provider.current_session(), identity=None
                )
            except _StageFailed as failure:
                return self._fail(run, failure.stage, failure.cause)
            if session is None:
                return self._fail(run, ProvisioningStage.PROVIDER_AUTH, NotAuthenticatedError())
            if not session.email:
                return self._fail(
                    run,
                    ProvisioningStage.PROVIDER_AUTH,
                    NotAuthenticatedError("Provider session has no email", {"uid": session.uid}),
                )

            try:
                identity = self._codec.decode(session.email)
            except ValidationError as exc:
                return self._fail(
                    run,
                    ProvisioningStage.PROVIDER_AUTH,
                    ProviderAuthError.wrap(exc, email=session.email),
                )

            with saga_log_context(run.operation, identity.value):
                run.advance(SagaState.AUTHENTICATED)
                try:
                    await self._set_up_crypto(run, identity, session, secret=None)
                except _StageFailed as failure:
                    return self._fail(run, failure.stage, failure.cause, identity=identity)
                return self._complete(run, identity, self._bookkeeping.record_account_present)

    async def sign_in(self, identity: str, secret: str) -> ProvisioningOutcome:
        """Sign in an existing account and unlock its crypto identity.

        Sign-in creates no provider-side state, so no failure path rolls
        anything back.

        Args:
            identity: Account handle.
            secret: Account password, also the local unlock key.
        """
        run = SagaRun("sign_in")
        with saga_log_context(run.operation, identity):
            try:
                validated = self._validate(identity, secret)
            except ValidationError as exc:
                return self._fail(run, ProvisioningStage.PROVIDER_AUTH, exc)
            logger.info("sign_in_started")

            try:
                session = await self._step(
                    ProviderAuthError,
                    self._provider.sign_in(self._codec.encode(validated), secret),
                    identity=validated,
                )
                run.advance(SagaState.AUTHENTICATED)
                await self._set_up_crypto(run, validated, session, secret=secret)
            except _StageFailed as failure:
                return self._fail(run, failure.stage, failure.cause, identity=validated)
            return self._complete(run, validated, self._bookkeeping.record_account_present)

    async def sign_up(self, identity: str, secret: str) -> ProvisioningOutcome:
        """Create an account, bootstrap its crypto identity and list it.

        A failure before the crypto identity is bootstrapped deletes the
        freshly created provider account. A directory failure keeps both
        the account and the crypto identity and is still reported.

        Args:
            identity: Account handle.
            secret: Account password, also the crypto bootstrap secret.
        """
        run = SagaRun("sign_up")
        compensations = CompensationStack()
        with saga_log_context(run.operation, identity):
            try:
                validated = self._validate(identity, secret)
            except ValidationError as exc:
                return self._fail(run, ProvisioningStage.PROVIDER_AUTH, exc)
            logger.info("sign_up_started")

            try:
                session = await self._step(
                    ProviderAuthError,
                    self._provider.create_account(self._codec.encode(validated), secret),
                    identity=validated,
                )
            except _StageFailed as failure:
                return self._fail(run, failure.stage, failure.cause, identity=validated)
            run.advance(SagaState.ACCOUNT_CREATED)
            compensations.push(
                CompensationAction(
                    "delete_provider_account",
                    partial(self._provider.delete_account, session),
                )
            )

            try:
                await self._set_up_crypto(run, validated, session, secret=secret)
            except _StageFailed as failure:
                compensated = await compensations.unwind()
                return self._fail(
                    run,
                    failure.stage,
                    failure.cause,
                    identity=validated,
                    compensated=compensated,
                )
            except asyncio.CancelledError:
                await compensations.unwind()
                raise
            compensations.seal()

            try:
                await self._register_in_directory(validated)
            except _StageFailed as failure:
                return self._fail(run, failure.stage, failure.cause, identity=validated)
            run.advance(SagaState.DIRECTORY_CHECKED)
            return self._complete(run, validated, self._bookkeeping.record_account_created)

    # -- Steps ---------------------------------------------------------------

    async def _set_up_crypto(
        self,
        run: SagaRun,
        identity: Identity,
        session: ProviderSession,
        secret: str | None,
    ) -> None:
        """Obtain a bearer credential, then initialize (and bootstrap) crypto.

        The credential fetched here fails the run early when the session
        cannot issue one, and then seeds the renewal callback's first
        exchange. Later renewals fetch their own.
        """
        bearer_credential = await self._step(
            CredentialFetchError,
            self._provider.get_bearer_credential(session),
            identity=identity,
        )
        run.advance(SagaState.CREDENTIAL_OBTAINED)

        renewal_callback = make_renewal_callback(
            identity.value,
            partial(self._provider.get_bearer_credential, session),
            self._exchange_client,
            initial_credential=bearer_credential,
        )
        await self._step(
            CryptoBootstrapError,
            self._crypto.initialize(renewal_callback),
            identity=identity,
        )
        if secret is not None:
            await self._step(
                CryptoBootstrapError,
                self._crypto.bootstrap(secret),
                identity=identity,
            )
        run.advance(SagaState.CRYPTO_READY)

    async def _register_in_directory(self, identity: Identity) -> None:
        exists = await self._step(
            DirectoryError, self._directory.exists(identity.value), identity=identity
        )
        if exists:
            # TODO: compare the existing record's owner with this account
            # once the directory port exposes record metadata.
            logger.info("directory_registration_skipped")
            return
        await self._step(DirectoryError, self._directory.create(identity.value), identity=identity)
        logger.info("directory_record_created")

    async def _step(
        self,
        error_type: type[ProvisioningError],
        step: Awaitable[T],
        identity: Identity | None,
    ) -> T:
        """Await one collaborator call, converting failures to _StageFailed."""
        try:
            return await step
        except Exception as exc:
            context = {"identity": identity.value} if identity is not None else {}
            cause = error_type.wrap(exc, **context)
            raise _StageFailed(ProvisioningStage(error_type.stage), cause) from exc

    # -- Outcomes ------------------------------------------------------------

    def _validate(self, identity: str, secret: str) -> Identity:
        validated = Identity(identity)
        if not secret:
            raise ValidationError("secret", "must not be empty")
        return validated

    def _fail(
        self,
        run: SagaRun,
        stage: ProvisioningStage,
        cause: Exception,
        *,
        identity: Identity | None = None,
        compensated: bool = False,
    ) -> ProvisioningOutcome:
        run.advance(SagaState.FAILED)
        logger.warning(
            f"{run.operation}_failed",
            stage=stage.value,
            error=str(cause),
            error_type=type(cause).__name__,
            compensated=compensated,
        )
        return ProvisioningOutcome.failed(
            stage,
            cause,
            identity=identity.value if identity is not None else None,
            compensated=compensated,
            history=run.snapshot(),
        )

    def _complete(
        self,
        run: SagaRun,
        identity: Identity,
        record: Callable[[str], None],
    ) -> ProvisioningOutcome:
        try:
            record(identity.value)
        except Exception:
            logger.exception(
                "bookkeeping_notification_failed",
                notification=getattr(record, "__name__", repr(record)),
            )
        run.advance(SagaState.COMPLETED)
        logger.info(f"{run.operation}_completed")
        return ProvisioningOutcome.success(identity.value, history=run.snapshot())
