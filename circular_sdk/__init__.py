"""Circular Enterprise SDK for Python.

Submit signed data certificates to the Circular network and track their
finalization: deterministic transaction IDs, secp256k1 signing, nonce
management, and outcome polling with a bounded timeout.

Quick start::

    from circular_sdk import Account

    with Account() as account:
        account.open("0x...")
        account.set_network("testnet")
        account.update_account()
        account.submit_certificate("hello", private_key)
        outcome = account.wait_for_transaction_outcome(account.latest_tx_id, 60)
"""

from circular_sdk.account import Account
from circular_sdk.certificate import Certificate
from circular_sdk.client import GatewayClient, NetworkResolver
from circular_sdk.config import (
    DEFAULT_CHAIN,
    DEFAULT_DISCOVERY_URL,
    DEFAULT_NAG,
    LIB_VERSION,
    AccountConfig,
)
from circular_sdk.encoding import format_timestamp, from_hex, strip_prefix, to_hex
from circular_sdk.errors import (
    AccountNotOpenError,
    APIError,
    CircularError,
    InvalidAddressError,
    InvalidResponseError,
    NetworkError,
    SigningError,
    TransactionTimeoutError,
)
from circular_sdk.identity import (
    generate_private_key,
    public_key_from_private,
    sign_digest,
    verify_signature,
)
from circular_sdk.poller import OutcomePoller, classify_outcome
from circular_sdk.transaction import (
    TransactionBuilder,
    build_payload,
    compute_transaction_id,
    sign_transaction,
    verify_transaction,
)
from circular_sdk.types import (
    AccountState,
    Address,
    OutcomeStatus,
    Transaction,
    TransactionOutcome,
    TransactionType,
)

__all__ = [
    # Account
    "Account",
    "AccountConfig",
    "AccountState",
    # Client
    "GatewayClient",
    "NetworkResolver",
    # Errors
    "CircularError",
    "AccountNotOpenError",
    "APIError",
    "InvalidAddressError",
    "InvalidResponseError",
    "NetworkError",
    "SigningError",
    "TransactionTimeoutError",
    # Encoding
    "format_timestamp",
    "from_hex",
    "strip_prefix",
    "to_hex",
    # Identity
    "generate_private_key",
    "public_key_from_private",
    "sign_digest",
    "verify_signature",
    # Transaction
    "Certificate",
    "TransactionBuilder",
    "build_payload",
    "compute_transaction_id",
    "sign_transaction",
    "verify_transaction",
    # Outcomes
    "OutcomePoller",
    "classify_outcome",
    # Types
    "Address",
    "OutcomeStatus",
    "Transaction",
    "TransactionOutcome",
    "TransactionType",
    # Defaults
    "DEFAULT_CHAIN",
    "DEFAULT_DISCOVERY_URL",
    "DEFAULT_NAG",
    "LIB_VERSION",
]

__version__ = "1.0.13"
