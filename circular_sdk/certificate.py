"""Data certificates.

A :class:`Certificate` wraps the application payload notarised on the ledger
together with optional references to the previous transaction and block,
which let callers chain certificates into a verifiable history.
"""

from __future__ import annotations

import json

from pydantic import BaseModel, ConfigDict, field_validator

from circular_sdk.config import LIB_VERSION
from circular_sdk.encoding import from_hex, is_hex, to_hex


class Certificate(BaseModel):
    """Application payload plus chaining references."""

    model_config = ConfigDict(validate_assignment=True)

    data: str = ""
    previous_tx_id: str | None = None
    previous_block: str | None = None
    version: str = LIB_VERSION

    @field_validator("data")
    @classmethod
    def _check_data(cls, v: str) -> str:
        if len(v) % 2 or not is_hex(v) or v[:2] in ("0x", "0X"):
            raise ValueError("certificate data must be even-length hex")
        return v.lower()

    # ----- payload -----------------------------------------------------------

    def set_data(self, text: str) -> None:
        """Store *text* hex-encoded."""
        self.data = to_hex(text)

    def get_data(self) -> str:
        """Return the decoded payload text."""
        return from_hex(self.data)

    # ----- chaining ----------------------------------------------------------

    def set_previous_tx_id(self, tx_id: str | None) -> None:
        self.previous_tx_id = tx_id

    def get_previous_tx_id(self) -> str | None:
        return self.previous_tx_id

    def set_previous_block(self, block: str | None) -> None:
        self.previous_block = block

    def get_previous_block(self) -> str | None:
        return self.previous_block

    # ----- serialisation -----------------------------------------------------

    def serialize(self) -> str:
        """Return the canonical compact JSON form.

        Missing chaining references are emitted as empty strings so the key
        set never changes.
        """
        # Key order is part of the wire format.
        values = {
            "data": self.data,
            "previousBlock": self.previous_block or "",
            "previousTxID": self.previous_tx_id or "",
            "version": self.version,
        }
        return json.dumps(values, separators=(",", ":"), ensure_ascii=False)

    def size_in_bytes(self) -> int:
        """Byte length of :meth:`serialize` encoded as UTF-8."""
        return len(self.serialize().encode("utf-8"))
