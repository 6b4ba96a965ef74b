"""Tests for TokenExchangeClient: wire format and error mapping."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from hallpass.foundation.domain.exceptions import TokenExchangeError
from hallpass.infra.token_exchange import TokenExchangeClient, TokenExchangeSettings

ENDPOINT = "https://tokens.example.com/get-virgil-jwt"


def _client_returning(response: httpx.Response) -> TokenExchangeClient:
    transport = httpx.MockTransport(lambda request: response)
    return TokenExchangeClient(ENDPOINT, client=httpx.AsyncClient(transport=transport))


def _client_raising(exc: Exception) -> TokenExchangeClient:
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc

    transport = httpx.MockTransport(handler)
    return TokenExchangeClient(ENDPOINT, client=httpx.AsyncClient(transport=transport))


@pytest.mark.unit
class TestTokenExchangeClient:
    @pytest.mark.asyncio
    async def test_exchange_sends_protocol_request(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"token": "jwt-abc"})

        client = TokenExchangeClient(
            ENDPOINT, client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
        )

        token = await client.exchange("alice", "bearer-123")

        assert token == "jwt-abc"
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == ENDPOINT
        assert request.headers["Authorization"] == "Bearer bearer-123"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {"identity": "alice"}

    @pytest.mark.asyncio
    async def test_missing_token_field(self) -> None:
        client = _client_returning(httpx.Response(200, json={"nottoken": "x"}))

        with pytest.raises(TokenExchangeError) as exc_info:
            await client.exchange("alice", "bearer-123")

        assert exc_info.value.reason == TokenExchangeError.MISSING_TOKEN
        assert exc_info.value.status_code == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", [None, 42, "", ["jwt"]])
    async def test_non_string_or_empty_token(self, token: object) -> None:
        client = _client_returning(httpx.Response(200, json={"token": token}))

        with pytest.raises(TokenExchangeError) as exc_info:
            await client.exchange("alice", "bearer-123")

        assert exc_info.value.reason == TokenExchangeError.MISSING_TOKEN

    @pytest.mark.asyncio
    async def test_non_success_status(self) -> None:
        client = _client_returning(httpx.Response(401, json={"error": "invalid bearer"}))

        with pytest.raises(TokenExchangeError) as exc_info:
            await client.exchange("alice", "expired")

        assert exc_info.value.reason == TokenExchangeError.BAD_STATUS
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_body_not_json(self) -> None:
        client = _client_returning(httpx.Response(200, text="<html>oops</html>"))

        with pytest.raises(TokenExchangeError) as exc_info:
            await client.exchange("alice", "bearer-123")

        assert exc_info.value.reason == TokenExchangeError.UNPARSEABLE_BODY

    @pytest.mark.asyncio
    async def test_body_not_object(self) -> None:
        client = _client_returning(httpx.Response(200, json=["jwt-abc"]))

        with pytest.raises(TokenExchangeError) as exc_info:
            await client.exchange("alice", "bearer-123")

        assert exc_info.value.reason == TokenExchangeError.UNPARSEABLE_BODY

    @pytest.mark.asyncio
    async def test_corrupt_content_encoding_is_unparseable(self) -> None:
        client = _client_returning(
            httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not-gzip")
        )

        with pytest.raises(TokenExchangeError) as exc_info:
            await client.exchange("alice", "bearer-123")

        assert exc_info.value.reason == TokenExchangeError.UNPARSEABLE_BODY
        assert isinstance(exc_info.value.__cause__, httpx.DecodingError)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "exc",
        [
            httpx.ConnectError("connection refused"),
            httpx.ReadTimeout("read timed out"),
            httpx.TooManyRedirects("redirect loop"),
        ],
    )
    async def test_transport_failure(self, exc: Exception) -> None:
        client = _client_raising(exc)

        with pytest.raises(TokenExchangeError) as exc_info:
            await client.exchange("alice", "bearer-123")

        assert exc_info.value.reason == TokenExchangeError.TRANSPORT
        assert exc_info.value.__cause__ is exc

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("identity", "credential"), [("", "bearer-123"), ("alice", "")])
    async def test_missing_inputs_are_malformed(self, identity: str, credential: str) -> None:
        client = _client_raising(AssertionError("no request expected"))

        with pytest.raises(TokenExchangeError) as exc_info:
            await client.exchange(identity, credential)

        assert exc_info.value.reason == TokenExchangeError.MALFORMED_REQUEST

    @pytest.mark.asyncio
    async def test_unsupported_scheme_is_malformed(self) -> None:
        client = TokenExchangeClient("ftp://tokens.example.com/jwt")

        with pytest.raises(TokenExchangeError) as exc_info:
            await client.exchange("alice", "bearer-123")

        assert exc_info.value.reason == TokenExchangeError.MALFORMED_REQUEST

    @pytest.mark.asyncio
    async def test_per_request_client_when_none_injected(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        async def mock_send(self_client: httpx.AsyncClient, request: httpx.Request, **kwargs):  # type: ignore[no-untyped-def]
            return httpx.Response(200, json={"token": "jwt-fresh"}, request=request)

        monkeypatch.setattr(httpx.AsyncClient, "send", mock_send)
        client = TokenExchangeClient(ENDPOINT)

        assert await client.exchange("alice", "bearer-123") == "jwt-fresh"

    @pytest.mark.asyncio
    async def test_concurrent_exchanges_are_independent(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            identity = json.loads(request.content)["identity"]
            return httpx.Response(200, json={"token": f"jwt-{identity}"})

        client = TokenExchangeClient(
            ENDPOINT, client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
        )

        tokens = await asyncio.gather(
            client.exchange("alice", "bearer-a"),
            client.exchange("bob", "bearer-b"),
        )

        assert tokens == ["jwt-alice", "jwt-bob"]

    def test_from_settings(self) -> None:
        settings = TokenExchangeSettings(endpoint_url=ENDPOINT, timeout=3.0)

        client = TokenExchangeClient.from_settings(settings)

        assert client.endpoint_url == ENDPOINT
