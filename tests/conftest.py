"""Shared fixtures: in-memory collaborators for the provisioning saga."""

from __future__ import annotations

import itertools
import json
from typing import TYPE_CHECKING

import httpx
import pytest

from hallpass.domain.provisioning import ProvisioningSaga
from hallpass.foundation.domain.identity_value_objects import PseudoEmailCodec
from hallpass.foundation.domain.ports import ProviderSession
from hallpass.infra.token_exchange import TokenExchangeClient

if TYPE_CHECKING:
    from hallpass.foundation.domain.ports import RenewalCallback

TOKEN_ENDPOINT = "https://tokens.example.com/get-virgil-jwt"


class _FailureInjection:
    """Raises a preconfigured exception when a named method is called."""

    def __init__(self) -> None:
        self.failures: dict[str, Exception] = {}

    def _maybe_fail(self, method: str) -> None:
        if method in self.failures:
            raise self.failures[method]


class FakeIdentityProvider(_FailureInjection):
    """Identity provider keeping accounts in a dict keyed by email."""

    def __init__(self) -> None:
        super().__init__()
        self.accounts: dict[str, str] = {}
        self.session: ProviderSession | None = None
        self.calls: list[tuple[str, str]] = []
        self.created_sessions: list[ProviderSession] = []
        self.deleted_sessions: list[ProviderSession] = []
        self._uids = itertools.count(1)
        self._credentials = itertools.count(1)

    def add_account(self, email: str, secret: str) -> None:
        self.accounts[email] = secret

    @property
    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    async def current_session(self) -> ProviderSession | None:
        self.calls.append(("current_session", ""))
        self._maybe_fail("current_session")
        return self.session

    async def sign_in(self, email: str, secret: str) -> ProviderSession:
        self.calls.append(("sign_in", email))
        self._maybe_fail("sign_in")
        if self.accounts.get(email) != secret:
            raise PermissionError("invalid email or password")
        self.session = ProviderSession(uid=f"uid-{next(self._uids)}", email=email)
        return self.session

    async def create_account(self, email: str, secret: str) -> ProviderSession:
        self.calls.append(("create_account", email))
        self._maybe_fail("create_account")
        if email in self.accounts:
            raise ValueError("email address is already in use")
        self.accounts[email] = secret
        self.session = ProviderSession(uid=f"uid-{next(self._uids)}", email=email)
        self.created_sessions.append(self.session)
        return self.session

    async def delete_account(self, session: ProviderSession) -> None:
        self.calls.append(("delete_account", session.uid))
        self._maybe_fail("delete_account")
        self.accounts.pop(session.email, None)
        self.deleted_sessions.append(session)
        self.session = None

    async def get_bearer_credential(self, session: ProviderSession) -> str:
        self.calls.append(("get_bearer_credential", session.uid))
        self._maybe_fail("get_bearer_credential")
        return f"bearer-{session.uid}-{next(self._credentials)}"


class FakeCryptoIdentity(_FailureInjection):
    """Crypto service that pulls one token through the callback on initialize."""

    def __init__(self) -> None:
        super().__init__()
        self.renewal_callback: RenewalCallback | None = None
        self.tokens: list[str] = []
        self.bootstrapped_with: list[str] = []

    async def initialize(self, renewal_callback: RenewalCallback) -> None:
        self._maybe_fail("initialize")
        self.renewal_callback = renewal_callback
        self.tokens.append(await renewal_callback())

    async def bootstrap(self, secret: str) -> None:
        self._maybe_fail("bootstrap")
        self.bootstrapped_with.append(secret)


class FakeDirectory(_FailureInjection):
    def __init__(self) -> None:
        super().__init__()
        self.records: set[str] = set()
        self.created: list[str] = []

    async def exists(self, identity: str) -> bool:
        self._maybe_fail("exists")
        return identity in self.records

    async def create(self, identity: str) -> None:
        self._maybe_fail("create")
        self.records.add(identity)
        self.created.append(identity)


class FakeBookkeeping:
    def __init__(self) -> None:
        self.created: list[str] = []
        self.present: list[str] = []

    def record_account_created(self, identity: str) -> None:
        self.created.append(identity)

    def record_account_present(self, identity: str) -> None:
        self.present.append(identity)


class TokenService:
    """httpx MockTransport handler emulating the token-issuance endpoint."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"error": "unauthorized"})
        identity = json.loads(request.content)["identity"]
        return httpx.Response(200, json={"token": f"app-token-{identity}-{len(self.requests)}"})


@pytest.fixture()
def provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture()
def crypto() -> FakeCryptoIdentity:
    return FakeCryptoIdentity()


@pytest.fixture()
def directory() -> FakeDirectory:
    return FakeDirectory()


@pytest.fixture()
def bookkeeping() -> FakeBookkeeping:
    return FakeBookkeeping()


@pytest.fixture()
def token_service() -> TokenService:
    return TokenService()


@pytest.fixture()
def http_client(token_service: TokenService) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(token_service))


@pytest.fixture()
def exchange_client(http_client: httpx.AsyncClient) -> TokenExchangeClient:
    return TokenExchangeClient(TOKEN_ENDPOINT, timeout=5.0, client=http_client)


@pytest.fixture()
def saga(
    provider: FakeIdentityProvider,
    crypto: FakeCryptoIdentity,
    directory: FakeDirectory,
    bookkeeping: FakeBookkeeping,
    exchange_client: TokenExchangeClient,
) -> ProvisioningSaga:
    return ProvisioningSaga(
        provider=provider,
        crypto=crypto,
        directory=directory,
        bookkeeping=bookkeeping,
        exchange_client=exchange_client,
        codec=PseudoEmailCodec(),
    )
