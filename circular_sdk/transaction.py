"""Transaction construction, identity derivation, and signing.

The transaction ID is a SHA-256 digest over a plain string concatenation of
the blockchain, sender, receiver, payload, nonce and timestamp. The gateway
recomputes it from the submitted fields, so the layout produced by
:func:`transaction_preimage` must not change.
"""

from __future__ import annotations

import hashlib
import json
from typing import Self

from circular_sdk.certificate import Certificate
from circular_sdk.config import DEFAULT_CHAIN, LIB_VERSION
from circular_sdk.encoding import format_timestamp, strip_prefix, to_hex
from circular_sdk.identity import sign_digest, verify_signature
from circular_sdk.types import Address, Transaction, TransactionType

CERTIFICATE_ACTION = "CP_CERTIFICATE"


def encode_action(data_hex: str) -> str:
    """Hex-encode the certificate action object around already hex data.

    Layout::

        to_hex('{"Action":"CP_CERTIFICATE","Data":"<data_hex>"}')
    """
    action = {"Action": CERTIFICATE_ACTION, "Data": data_hex}
    return to_hex(json.dumps(action, separators=(",", ":")))


def build_payload(text: str) -> str:
    """Action payload for certificate content *text*."""
    return encode_action(to_hex(text))


def transaction_preimage(
    blockchain: str,
    address: str,
    payload_hex: str,
    nonce: int,
    timestamp: str,
) -> str:
    """Concatenate the identity fields in wire order, with no separators.

    The address appears twice because certificate transactions are sent to
    the sender itself.
    """
    sender = strip_prefix(address)
    return (
        strip_prefix(blockchain)
        + sender
        + sender
        + payload_hex
        + str(nonce)
        + timestamp
    )


def transaction_digest(
    blockchain: str,
    address: str,
    payload_hex: str,
    nonce: int,
    timestamp: str,
) -> bytes:
    """SHA-256 digest of :func:`transaction_preimage`."""
    preimage = transaction_preimage(blockchain, address, payload_hex, nonce, timestamp)
    return hashlib.sha256(preimage.encode("utf-8")).digest()


def compute_transaction_id(
    blockchain: str,
    address: str,
    payload_hex: str,
    nonce: int,
    timestamp: str,
) -> str:
    """Return the hex transaction ID. Pure: equal inputs give equal IDs."""
    return transaction_digest(blockchain, address, payload_hex, nonce, timestamp).hex()


def sign_transaction(tx: Transaction, private_key: str) -> Transaction:
    """Sign *tx* and return a signed copy.

    The signed message is the raw 32-byte digest behind ``tx.id``, not the
    hex string.

    Raises:
        SigningError: If the private key is malformed or degenerate.
    """
    signature = sign_digest(private_key, bytes.fromhex(tx.id))
    return tx.model_copy(update={"signature": signature})


def verify_transaction(tx: Transaction, public_key: str) -> bool:
    """Check that ``tx.id`` matches its fields and is signed by *public_key*."""
    if not tx.is_signed:
        return False
    digest = transaction_digest(
        tx.blockchain, tx.from_address, tx.payload, tx.nonce, tx.timestamp
    )
    if digest.hex() != tx.id:
        return False
    return verify_signature(public_key, digest, tx.signature)


class TransactionBuilder:
    """Fluent builder for certificate :class:`Transaction` instances.

    Example::

        tx = (
            TransactionBuilder()
            .blockchain(DEFAULT_CHAIN)
            .address("0x...")
            .certificate("hello")
            .nonce(42)
            .build()
        )
    """

    def __init__(self) -> None:
        self._blockchain: str = DEFAULT_CHAIN
        self._address: Address | None = None
        self._payload: str | None = None
        self._nonce: int | None = None
        self._timestamp: str | None = None
        self._version: str = LIB_VERSION

    def blockchain(self, chain: str) -> Self:
        """Set the target blockchain (default: the public Circular chain)."""
        self._blockchain = chain
        return self

    def address(self, address: str) -> Self:
        """Set the sender address; certificates are self-addressed.

        Raises:
            InvalidAddressError: If *address* is malformed.
        """
        self._address = Address.parse(address)
        return self

    def certificate(self, content: Certificate | str) -> Self:
        """Use a :class:`Certificate` or plain text as certificate content."""
        if isinstance(content, Certificate):
            self._payload = encode_action(content.data)
        else:
            self._payload = build_payload(content)
        return self

    def payload(self, payload_hex: str) -> Self:
        """Use an already encoded action payload."""
        self._payload = payload_hex
        return self

    def nonce(self, n: int) -> Self:
        """Set the account nonce."""
        self._nonce = n
        return self

    def timestamp(self, ts: str) -> Self:
        """Set an explicit timestamp (defaults to the current UTC time at build)."""
        self._timestamp = ts
        return self

    def version(self, v: str) -> Self:
        """Set the client version reported to the gateway."""
        self._version = v
        return self

    def build(self) -> Transaction:
        """Validate all fields and return the unsigned :class:`Transaction`.

        Raises:
            ValueError: If any required field is missing.
        """
        missing: list[str] = []
        if self._address is None:
            missing.append("address")
        if self._payload is None:
            missing.append("payload")
        if self._nonce is None:
            missing.append("nonce")
        if missing:
            raise ValueError(f"missing required fields: {', '.join(missing)}")

        timestamp = self._timestamp if self._timestamp is not None else format_timestamp()
        sender = self._address.hex_body  # type: ignore[union-attr]
        return Transaction(
            id=compute_transaction_id(
                self._blockchain, sender, self._payload, self._nonce, timestamp  # type: ignore[arg-type]
            ),
            from_address=sender,
            to_address=sender,
            timestamp=timestamp,
            payload=self._payload,  # type: ignore[arg-type]
            nonce=self._nonce,  # type: ignore[arg-type]
            blockchain=strip_prefix(self._blockchain),
            tx_type=TransactionType.CERTIFICATE,
            version=self._version,
        )
