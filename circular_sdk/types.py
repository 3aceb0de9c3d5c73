"""Core types for the Circular Enterprise SDK.

Public data structures are Pydantic v2 models. Wire format follows the
gateway conventions: field names are PascalCase, hex values travel without a
``0x`` prefix, and nonces are sent as decimal strings.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    GetCoreSchemaHandler,
    field_serializer,
)
from pydantic_core import CoreSchema, core_schema

from circular_sdk.encoding import strip_prefix
from circular_sdk.errors import InvalidAddressError

# ---------------------------------------------------------------------------
# Annotated scalar types
# ---------------------------------------------------------------------------

ADDRESS_HEX_LENGTH = 40

_ADDRESS_RE = re.compile(r"(0[xX])?[0-9a-fA-F]{%d}" % ADDRESS_HEX_LENGTH)


class Address(str):
    """A 20-byte account address, hex-encoded with an optional ``0x`` prefix.

    Subclasses ``str`` so it serialises natively as a JSON string while still
    enforcing format on creation. The caller's spelling is preserved; use
    :attr:`hex_body` for the normalised wire form.
    """

    @classmethod
    def __get_pydantic_core_schema__(
        cls, _source_type: Any, handler: GetCoreSchemaHandler
    ) -> CoreSchema:
        return core_schema.no_info_plain_validator_function(cls._validate_pydantic)

    @classmethod
    def _validate_pydantic(cls, v: Any) -> "Address":
        try:
            return cls.parse(v)
        except InvalidAddressError as exc:
            raise ValueError(str(exc)) from exc

    @classmethod
    def parse(cls, v: Any) -> "Address":
        """Validate *v* and return it as an :class:`Address`.

        Raises:
            InvalidAddressError: If *v* is not ``[0x]`` + 40 hex characters.
        """
        if not isinstance(v, str) or not _ADDRESS_RE.fullmatch(v):
            raise InvalidAddressError(str(v))
        return cls(v)

    @property
    def hex_body(self) -> str:
        """Lower-case hex without the ``0x`` prefix."""
        return strip_prefix(self)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class TransactionType(str, Enum):
    """Transaction type tags understood by the gateway."""

    CERTIFICATE = "C_TYPE_CERTIFICATE"


class AccountState(str, Enum):
    """Lifecycle state of an :class:`~circular_sdk.account.Account`."""

    CLOSED = "closed"
    OPENED = "opened"


class OutcomeStatus(str, Enum):
    """Classification of a single transaction lookup."""

    PENDING = "pending"
    NOT_FOUND = "not_found"
    CONFIRMED = "confirmed"
    EXECUTED = "executed"
    FAILED = "failed"
    UNKNOWN = "unknown"


# ---------------------------------------------------------------------------
# Core models
# ---------------------------------------------------------------------------


class Transaction(BaseModel):
    """A certificate transaction as submitted to the gateway.

    Instances are frozen. Signing produces a new instance via
    :func:`circular_sdk.transaction.sign_transaction`.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(alias="ID")
    from_address: str = Field(alias="From")
    to_address: str = Field(alias="To")
    timestamp: str = Field(alias="Timestamp")
    payload: str = Field(alias="Payload")
    nonce: Annotated[int, Field(ge=0, alias="Nonce")]
    signature: str = Field(default="", alias="Signature")
    blockchain: str = Field(alias="Blockchain")
    tx_type: TransactionType = Field(default=TransactionType.CERTIFICATE, alias="Type")
    version: str = Field(alias="Version")

    @field_serializer("nonce")
    def _serialize_nonce(self, v: int) -> str:
        return str(v)

    @property
    def is_signed(self) -> bool:
        return bool(self.signature)

    def to_wire(self) -> dict[str, Any]:
        """Return the request body for ``Circular_AddTransaction``."""
        return self.model_dump(mode="json", by_alias=True)


class TransactionOutcome(BaseModel):
    """Result of one transaction-status query."""

    tx_id: str
    status: OutcomeStatus
    status_text: str = ""
    response: Any = None

    @property
    def is_terminal(self) -> bool:
        """``True`` once the transaction has left the pending states."""
        return self.status not in (OutcomeStatus.PENDING, OutcomeStatus.NOT_FOUND)
