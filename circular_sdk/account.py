"""Account state and the certificate submission pipeline.

:class:`Account` owns an address, its nonce and the ID of the last accepted
transaction. It ties the certificate builder, the signer, the gateway client
and the outcome poller together, and guarantees that a nonce is consumed by
at most one in-flight submission.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable

from circular_sdk.certificate import Certificate
from circular_sdk.client import GatewayClient, NetworkResolver
from circular_sdk.config import AccountConfig
from circular_sdk.encoding import strip_prefix
from circular_sdk.errors import (
    AccountNotOpenError,
    APIError,
    InvalidResponseError,
)
from circular_sdk.identity import public_key_from_private
from circular_sdk.poller import OutcomePoller, classify_outcome
from circular_sdk.transaction import TransactionBuilder, sign_transaction
from circular_sdk.types import Address, AccountState, TransactionOutcome

logger = logging.getLogger(__name__)

# Block range searched by a single outcome lookup.
OUTCOME_START_BLOCK = 0
OUTCOME_END_BLOCK = 10

_NONCE_REJECTIONS = {
    114: "Rejected: Invalid Blockchain",
    115: "Rejected: Insufficient balance",
}


def _result_code(result: dict[str, Any]) -> int:
    code = result.get("Result")
    if not isinstance(code, int) or isinstance(code, bool):
        raise InvalidResponseError("missing or non-integer Result field")
    return code


def _response_message(result: dict[str, Any], fallback: str) -> str:
    response = result.get("Response")
    if isinstance(response, str) and response:
        return response
    if isinstance(response, dict) and isinstance(response.get("Message"), str):
        return response["Message"]
    return fallback


class Account:
    """A Circular account bound to one network target.

    Accounts start closed. :meth:`open` binds an address; :meth:`close`
    wipes every field. All other operations require an opened account.

    Args:
        config: Network target and timing; defaults to the public network.
        client: Shared :class:`GatewayClient`. When omitted the account
            creates one and closes it in :meth:`shutdown`.
        resolver: Network discovery used by :meth:`set_network`.
        sleep: Sleep function used between outcome polls.
        clock: Monotonic clock used for poll deadlines.

    Example::

        with Account() as account:
            account.open("0x...")
            account.update_account()
            account.submit_certificate("hello", private_key)
            outcome = account.wait_for_transaction_outcome(account.latest_tx_id, 60)
    """

    def __init__(
        self,
        config: AccountConfig | None = None,
        *,
        client: GatewayClient | None = None,
        resolver: NetworkResolver | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or AccountConfig()
        self._owns_client = client is None
        self._client = client or GatewayClient(timeout=self._config.request_timeout)
        self._resolver = resolver or NetworkResolver(self._client, self._config.discovery_url)
        self._sleep = sleep
        self._clock = clock
        self._lock = threading.RLock()
        self._reset()

    def _reset(self) -> None:
        self._state = AccountState.CLOSED
        self._address: Address | None = None
        self._public_key: str | None = None
        self._nonce = 0
        self._latest_tx_id: str | None = None
        self._data: dict[str, Any] = {}
        self._gateway_url = self._config.gateway_url
        self._network_node = self._config.network_node
        self._blockchain = self._config.blockchain
        self._version = self._config.version

    # ----- lifecycle -------------------------------------------------------

    def open(self, address: str) -> None:
        """Bind *address* and move to the opened state.

        Nonce, latest transaction ID and the data store start from their
        defaults.

        Raises:
            InvalidAddressError: If *address* is malformed. State is unchanged.
        """
        parsed = Address.parse(address)
        with self._lock:
            self._address = parsed
            self._nonce = 0
            self._latest_tx_id = None
            self._public_key = None
            self._data = {}
            self._state = AccountState.OPENED
        logger.debug("opened account %s", parsed)

    def close(self) -> None:
        """Reset every field to its default. Safe to call in any state."""
        with self._lock:
            self._reset()

    def shutdown(self) -> None:
        """Close the account and the HTTP client it created, if any."""
        self.close()
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "Account":
        return self

    def __exit__(self, *exc: object) -> None:
        self.shutdown()

    def _require_open(self, operation: str) -> Address:
        if self._state is not AccountState.OPENED or self._address is None:
            raise AccountNotOpenError(operation)
        return self._address

    # ----- properties ------------------------------------------------------

    @property
    def state(self) -> AccountState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is AccountState.OPENED

    @property
    def address(self) -> str | None:
        return self._address

    @property
    def nonce(self) -> int:
        """The next nonce to use, one ahead of the last confirmed one."""
        return self._nonce

    @property
    def latest_tx_id(self) -> str | None:
        return self._latest_tx_id

    @property
    def public_key(self) -> str | None:
        """Public key derived during the last successful submission."""
        return self._public_key

    @property
    def gateway_url(self) -> str:
        return self._gateway_url

    @property
    def network_node(self) -> str:
        return self._network_node

    @property
    def blockchain(self) -> str:
        return self._blockchain

    @property
    def version(self) -> str:
        return self._version

    @property
    def config(self) -> AccountConfig:
        return self._config

    # ----- network target --------------------------------------------------

    def set_network(self, network: str) -> str:
        """Resolve *network* to a gateway and target it. Returns the URL."""
        url = self._resolver.resolve(network)
        with self._lock:
            self._gateway_url = url
            self._network_node = network
        return url

    def set_blockchain(self, blockchain: str) -> None:
        """Target another blockchain."""
        with self._lock:
            self._blockchain = blockchain

    # ----- data store ------------------------------------------------------

    def set_value(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def get_value(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    # ----- nonce -----------------------------------------------------------

    def update_account(self) -> int:
        """Sync the nonce with the gateway and return the new local nonce.

        The local nonce becomes the server nonce plus one. On any error the
        nonce is left untouched.

        Raises:
            AccountNotOpenError: If the account is closed.
            NetworkError, APIError, InvalidResponseError: On gateway failures.
        """
        with self._lock:
            address = self._require_open("update account")
            result = self._client.get_wallet_nonce(
                self._gateway_url,
                self._network_node,
                blockchain=strip_prefix(self._blockchain),
                address=address.hex_body,
                version=self._version,
            )

            code = _result_code(result)
            if code != 200:
                message = _NONCE_REJECTIONS.get(code) or _response_message(
                    result, "failed to update account"
                )
                raise APIError(code, message, result)

            response = result.get("Response")
            nonce = response.get("Nonce") if isinstance(response, dict) else None
            if not isinstance(nonce, int) or isinstance(nonce, bool):
                raise InvalidResponseError("missing or non-integer Nonce field")

            self._nonce = nonce + 1
            logger.debug("nonce for %s synced to %d", address, self._nonce)
            return self._nonce

    # ----- submission ------------------------------------------------------

    def submit_certificate(self, data: str, private_key: str) -> dict[str, Any]:
        """Build, sign and submit a certificate carrying *data*.

        The transaction uses the current nonce. Only when the gateway answers
        ``Result == 200`` does the account record the new transaction ID and
        advance the nonce by one.

        Returns:
            The gateway response map.

        Raises:
            AccountNotOpenError: If the account is closed.
            SigningError: If *private_key* is invalid.
            NetworkError, InvalidResponseError: On transport or decoding failures.
            APIError: On HTTP errors, or when the gateway rejects the
                transaction; ``exc.response`` then holds the raw map.
        """
        with self._lock:
            address = self._require_open("submit certificate")

            certificate = Certificate(previous_tx_id=self._latest_tx_id, version=self._version)
            certificate.set_data(data)

            tx = (
                TransactionBuilder()
                .blockchain(self._blockchain)
                .address(address)
                .certificate(certificate)
                .nonce(self._nonce)
                .version(self._version)
                .build()
            )
            signed = sign_transaction(tx, private_key)
            public_key = public_key_from_private(private_key)

            result = self._client.add_transaction(self._gateway_url, self._network_node, signed)
            code = _result_code(result)
            if code != 200:
                message = _response_message(result, "certificate submission failed")
                logger.warning("certificate %s rejected: %s", signed.id, message)
                raise APIError(code, message, result)

            self._latest_tx_id = signed.id
            self._nonce += 1
            self._public_key = public_key
            logger.info("certificate %s accepted with nonce %d", signed.id, signed.nonce)
            return result

    # ----- lookups ---------------------------------------------------------

    def get_transaction_by_id(self, tx_id: str, start: int, end: int) -> dict[str, Any]:
        """Look *tx_id* up within blocks ``start..end``.

        ``Result == 404`` is a normal "not found" answer and is returned as
        is.

        Raises:
            AccountNotOpenError: If the account is closed.
            APIError: For any other non-200 result.
        """
        self._require_open("get transaction")
        result = self._client.get_transaction_by_id(
            self._gateway_url,
            self._network_node,
            blockchain=strip_prefix(self._blockchain),
            tx_id=strip_prefix(tx_id),
            start=start,
            end=end,
            version=self._version,
        )
        code = result.get("Result")
        if code in (200, 404):
            return result
        if code == 400:
            raise APIError(400, "Failed to fetch transaction: Invalid block number", result)
        raise APIError(
            code if isinstance(code, int) else 0,
            _response_message(result, "failed to fetch transaction"),
            result,
        )

    def get_transaction(self, block_id: str, tx_id: str) -> dict[str, Any]:
        """Look *tx_id* up in the single block *block_id*.

        Raises:
            ValueError: If *block_id* is not a decimal block number.
        """
        self._require_open("get transaction")
        try:
            block = int(block_id)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"invalid block id: {block_id!r}") from exc
        return self.get_transaction_by_id(tx_id, block, block)

    def get_transaction_outcome(self, tx_id: str) -> TransactionOutcome:
        """Query the current status of *tx_id* once, without waiting."""
        self._require_open("get transaction outcome")
        result = self._client.get_transaction_by_id(
            self._gateway_url,
            self._network_node,
            blockchain=strip_prefix(self._blockchain),
            tx_id=strip_prefix(tx_id),
            start=OUTCOME_START_BLOCK,
            end=OUTCOME_END_BLOCK,
            version=self._version,
        )
        return classify_outcome(tx_id, result)

    def wait_for_transaction_outcome(
        self,
        tx_id: str,
        timeout_sec: float,
        interval_sec: float | None = None,
    ) -> TransactionOutcome:
        """Poll until *tx_id* is final or *timeout_sec* elapses.

        Args:
            tx_id: Transaction to watch.
            timeout_sec: Overall deadline, measured from the call.
            interval_sec: Delay between polls; defaults to the configured
                ``interval_sec``.

        Raises:
            TransactionTimeoutError: If the deadline passes first.
            NetworkError, APIError, InvalidResponseError: A failed lookup
                aborts the wait.
        """
        self._require_open("wait for transaction outcome")
        poller = OutcomePoller(self.get_transaction_outcome, sleep=self._sleep, clock=self._clock)
        return poller.wait(
            tx_id,
            timeout_sec,
            interval_sec if interval_sec is not None else self._config.interval_sec,
        )
