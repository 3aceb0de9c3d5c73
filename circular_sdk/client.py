"""HTTP client for the Circular Network Access Gateway (NAG).

:class:`GatewayClient` wraps an :class:`httpx.Client` and translates
transport and HTTP failures into the SDK error taxonomy. It performs no
retries; retry policy belongs to the caller. :class:`NetworkResolver`
discovers the gateway URL for a named network.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from circular_sdk.config import DEFAULT_DISCOVERY_URL
from circular_sdk.errors import APIError, InvalidResponseError, NetworkError
from circular_sdk.types import Transaction

logger = logging.getLogger(__name__)


def endpoint_url(gateway_url: str, method: str, network_node: str) -> str:
    """Build ``<gateway>Circular_<method>_<node>`` by plain concatenation."""
    return f"{gateway_url}Circular_{method}_{network_node}"


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class GatewayClient:
    """Synchronous JSON client for NAG endpoints.

    Args:
        timeout: Default request timeout in seconds.
        transport: Optional custom :class:`httpx.BaseTransport`, mainly for
            tests (``httpx.MockTransport``).

    Example::

        with GatewayClient() as client:
            body = client.post_json(url, {"Address": "..."})
    """

    def __init__(
        self,
        *,
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.Client | None = None

    # ----- lifecycle -------------------------------------------------------

    def _ensure_client(self) -> httpx.Client:
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                timeout=self._timeout,
                transport=self._transport,
                headers={"Content-Type": "application/json"},
            )
        return self._client

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()

    def __enter__(self) -> "GatewayClient":
        self._ensure_client()
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ----- raw requests ----------------------------------------------------

    def _request(
        self,
        method: str,
        url: str,
        *,
        payload: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        client = self._ensure_client()
        logger.debug("%s %s", method, url)
        try:
            resp = client.request(method, url, json=payload, params=params)
        except httpx.TransportError as exc:
            raise NetworkError(url, exc) from exc

        if not resp.is_success:
            raise APIError(resp.status_code, _error_message(resp))

        try:
            body = resp.json()
        except ValueError as exc:
            raise InvalidResponseError(f"could not decode JSON from {url}: {exc}") from exc
        if not isinstance(body, dict):
            raise InvalidResponseError(f"expected a JSON object from {url}, got {type(body).__name__}")
        logger.debug("%s %s -> Result %s", method, url, body.get("Result"))
        return body

    def get(self, url: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        """Send a GET request and return the decoded JSON object."""
        return self._request("GET", url, params=params)

    def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST *payload* as JSON and return the decoded JSON object."""
        return self._request("POST", url, payload=payload)

    # ----- gateway endpoints -----------------------------------------------

    def get_wallet_nonce(
        self,
        gateway_url: str,
        network_node: str,
        *,
        blockchain: str,
        address: str,
        version: str,
    ) -> dict[str, Any]:
        """Call ``Circular_GetWalletNonce``."""
        return self.post_json(
            endpoint_url(gateway_url, "GetWalletNonce", network_node),
            {"Blockchain": blockchain, "Address": address, "Version": version},
        )

    def add_transaction(
        self, gateway_url: str, network_node: str, tx: Transaction
    ) -> dict[str, Any]:
        """Call ``Circular_AddTransaction`` with a signed transaction."""
        return self.post_json(
            endpoint_url(gateway_url, "AddTransaction", network_node),
            tx.to_wire(),
        )

    def get_transaction_by_id(
        self,
        gateway_url: str,
        network_node: str,
        *,
        blockchain: str,
        tx_id: str,
        start: int,
        end: int,
        version: str,
    ) -> dict[str, Any]:
        """Call ``Circular_GetTransactionbyID`` for a block range."""
        return self.post_json(
            endpoint_url(gateway_url, "GetTransactionbyID", network_node),
            {
                "Blockchain": blockchain,
                "ID": tx_id,
                "Start": str(start),
                "End": str(end),
                "Version": version,
            },
        )


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "error"):
            if isinstance(body.get(key), str):
                return body[key]
    return f"HTTP status {resp.status_code}"


# ---------------------------------------------------------------------------
# Network discovery
# ---------------------------------------------------------------------------


class NetworkResolver:
    """Resolve a network name (``"testnet"``, ``"mainnet"``...) to a gateway URL.

    Args:
        client: The :class:`GatewayClient` used for the lookup.
        base_url: Discovery endpoint; the network name is sent as the
            ``network`` query parameter.
    """

    def __init__(self, client: GatewayClient, base_url: str = DEFAULT_DISCOVERY_URL) -> None:
        self._client = client
        self._base_url = base_url

    @property
    def base_url(self) -> str:
        return self._base_url

    def resolve(self, network: str) -> str:
        """Return the gateway URL for *network*.

        Raises:
            ValueError: If *network* is empty.
            APIError: If the discovery service reports an error or no URL.
        """
        if not network:
            raise ValueError("network identifier cannot be empty")
        body = self._client.get(self._base_url, params={"network": network})
        url = body.get("url")
        if body.get("status") != "success" or not isinstance(url, str) or not url:
            message = body.get("message") or "no gateway URL in discovery response"
            raise APIError(200, f"network discovery failed for {network!r}: {message}", body)
        logger.info("resolved network %s to %s", network, url)
        return url
