"""Tests for the gateway client and network discovery.

HTTP traffic is served by httpx.MockTransport; no real gateway is contacted.
"""

from __future__ import annotations

import json

import httpx
import pytest

from circular_sdk.client import GatewayClient, NetworkResolver, endpoint_url
from circular_sdk.errors import (
    APIError,
    CircularError,
    InvalidResponseError,
    NetworkError,
)
from circular_sdk.transaction import TransactionBuilder

GATEWAY = "http://nag.test/"
DISCOVERY = "http://discovery.test/getNAG"


def _build_mock_client(handler) -> GatewayClient:
    """Create a GatewayClient backed by a mock transport (no real I/O)."""
    return GatewayClient(transport=httpx.MockTransport(handler))


# ---------------------------------------------------------------------------
# Raw requests
# ---------------------------------------------------------------------------


class TestGatewayRequests:
    """get / post_json behaviour and error mapping."""

    def test_endpoint_url_is_concatenated(self) -> None:
        assert (
            endpoint_url("https://nag.example/NAG.php?cep=", "GetWalletNonce", "testnet")
            == "https://nag.example/NAG.php?cep=Circular_GetWalletNonce_testnet"
        )

    def test_post_json_sends_body(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"Result": 200, "Response": "ok"})

        client = _build_mock_client(handler)
        body = client.post_json(GATEWAY + "x", {"A": "b"})
        assert body == {"Result": 200, "Response": "ok"}
        assert seen[0].method == "POST"
        assert json.loads(seen[0].content) == {"A": "b"}
        assert seen[0].headers["content-type"] == "application/json"
        client.close()

    def test_transport_failure_is_network_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused")

        client = _build_mock_client(handler)
        with pytest.raises(NetworkError) as exc_info:
            client.get(GATEWAY)
        assert exc_info.value.url == GATEWAY
        assert isinstance(exc_info.value.cause, httpx.ConnectError)
        client.close()

    def test_http_error_uses_message_field(self) -> None:
        client = _build_mock_client(lambda r: httpx.Response(500, json={"message": "boom"}))
        with pytest.raises(APIError) as exc_info:
            client.post_json(GATEWAY, {})
        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "boom"
        client.close()

    def test_http_error_uses_error_field(self) -> None:
        client = _build_mock_client(lambda r: httpx.Response(403, json={"error": "forbidden"}))
        with pytest.raises(APIError) as exc_info:
            client.get(GATEWAY)
        assert exc_info.value.message == "forbidden"
        client.close()

    def test_http_error_generic_message(self) -> None:
        client = _build_mock_client(lambda r: httpx.Response(503, text="unavailable"))
        with pytest.raises(APIError) as exc_info:
            client.get(GATEWAY)
        assert exc_info.value.message == "HTTP status 503"
        client.close()

    def test_invalid_json_is_invalid_response(self) -> None:
        client = _build_mock_client(lambda r: httpx.Response(200, text="<html>"))
        with pytest.raises(InvalidResponseError):
            client.get(GATEWAY)
        client.close()

    def test_non_object_json_is_invalid_response(self) -> None:
        client = _build_mock_client(lambda r: httpx.Response(200, json=[1, 2]))
        with pytest.raises(InvalidResponseError):
            client.get(GATEWAY)
        client.close()

    def test_no_retries(self) -> None:
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(502)

        client = _build_mock_client(handler)
        with pytest.raises(APIError):
            client.get(GATEWAY)
        assert len(calls) == 1
        client.close()

    def test_context_manager(self) -> None:
        client = _build_mock_client(lambda r: httpx.Response(200, json={}))
        with client as c:
            assert c is client
            c.get(GATEWAY)
        assert client._client is not None and client._client.is_closed

    def test_error_hierarchy(self) -> None:
        assert issubclass(NetworkError, CircularError)
        assert issubclass(APIError, CircularError)
        assert issubclass(InvalidResponseError, CircularError)


# ---------------------------------------------------------------------------
# Endpoint helpers
# ---------------------------------------------------------------------------


class TestGatewayEndpoints:
    """Request shapes for the NAG endpoints."""

    def test_get_wallet_nonce(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"Result": 200, "Response": {"Nonce": 1}})

        client = _build_mock_client(handler)
        client.get_wallet_nonce(GATEWAY, "testnet", blockchain="aa", address="bb", version="1.0")
        assert seen[0].url.path == "/Circular_GetWalletNonce_testnet"
        assert json.loads(seen[0].content) == {"Blockchain": "aa", "Address": "bb", "Version": "1.0"}
        client.close()

    def test_add_transaction(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"Result": 200, "Response": {"TxID": "x"}})

        tx = TransactionBuilder().address("0x" + "cd" * 20).certificate("doc").nonce(5).build()
        client = _build_mock_client(handler)
        client.add_transaction(GATEWAY, "mainnet", tx)
        assert seen[0].url.path == "/Circular_AddTransaction_mainnet"
        body = json.loads(seen[0].content)
        assert body["ID"] == tx.id
        assert body["Nonce"] == "5"
        client.close()

    def test_get_transaction_by_id(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"Result": 404, "Response": None})

        client = _build_mock_client(handler)
        result = client.get_transaction_by_id(
            GATEWAY, "testnet", blockchain="aa", tx_id="ff", start=0, end=10, version="1.0"
        )
        assert result["Result"] == 404
        assert json.loads(seen[0].content) == {
            "Blockchain": "aa", "ID": "ff", "Start": "0", "End": "10", "Version": "1.0",
        }
        client.close()


# ---------------------------------------------------------------------------
# Network discovery
# ---------------------------------------------------------------------------


class TestNetworkResolver:
    """Gateway URL discovery."""

    def test_resolve_success(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "GET"
            assert request.url.params["network"] == "testnet"
            return httpx.Response(200, json={"status": "success", "url": GATEWAY})

        resolver = NetworkResolver(_build_mock_client(handler), DISCOVERY)
        assert resolver.resolve("testnet") == GATEWAY

    def test_resolve_error_status(self) -> None:
        handler = lambda r: httpx.Response(200, json={"status": "error", "message": "unknown network"})  # noqa: E731
        resolver = NetworkResolver(_build_mock_client(handler), DISCOVERY)
        with pytest.raises(APIError, match="unknown network"):
            resolver.resolve("nowhere")

    def test_resolve_missing_url(self) -> None:
        handler = lambda r: httpx.Response(200, json={"status": "success"})  # noqa: E731
        resolver = NetworkResolver(_build_mock_client(handler), DISCOVERY)
        with pytest.raises(APIError):
            resolver.resolve("testnet")

    def test_resolve_empty_network(self) -> None:
        resolver = NetworkResolver(_build_mock_client(lambda r: httpx.Response(200, json={})), DISCOVERY)
        with pytest.raises(ValueError):
            resolver.resolve("")

    def test_resolve_http_failure(self) -> None:
        resolver = NetworkResolver(_build_mock_client(lambda r: httpx.Response(404)), DISCOVERY)
        with pytest.raises(APIError) as exc_info:
            resolver.resolve("testnet")
        assert exc_info.value.status_code == 404
