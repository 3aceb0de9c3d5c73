"""Account configuration.

:class:`AccountConfig` carries the network target an :class:`~circular_sdk.account.Account`
talks to. It is immutable; use :meth:`AccountConfig.with_network` or
``model_copy(update=...)`` to derive variants.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from circular_sdk.encoding import is_hex

LIB_VERSION = "1.0.13"

DEFAULT_CHAIN = "0x8a20baa40c45dc5055aeb26197c203e576ef389d9acb171bd62da11dc5ad72b2"

DEFAULT_NAG = "https://nag.circularlabs.io/NAG.php?cep="

DEFAULT_DISCOVERY_URL = "https://circularlabs.io/network/getNAG"


class AccountConfig(BaseModel):
    """Network target and timing parameters for an account."""

    model_config = ConfigDict(frozen=True)

    gateway_url: str = DEFAULT_NAG
    network_node: str = ""
    blockchain: str = DEFAULT_CHAIN
    version: str = LIB_VERSION
    interval_sec: Annotated[float, Field(gt=0, description="Seconds between outcome polls")] = 2.0
    request_timeout: Annotated[float, Field(gt=0, description="HTTP timeout in seconds")] = 15.0
    discovery_url: str = DEFAULT_DISCOVERY_URL

    @field_validator("blockchain")
    @classmethod
    def _check_blockchain(cls, v: str) -> str:
        if not v or not is_hex(v):
            raise ValueError("blockchain must be a hex identifier")
        return v

    def with_network(self, gateway_url: str, network_node: str) -> "AccountConfig":
        """Return a copy pointed at another gateway."""
        return self.model_copy(
            update={"gateway_url": gateway_url, "network_node": network_node}
        )
