"""Exception hierarchy for the Circular Enterprise SDK.

Every failure raised by the SDK derives from :class:`CircularError`, so
callers can catch the whole family at once or handle individual cases.
"""

from __future__ import annotations

from typing import Any


class CircularError(Exception):
    """Base class for all SDK errors."""


class InvalidAddressError(CircularError, ValueError):
    """Raised when an account address is not a valid hex identifier."""

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(f"invalid address format: {address!r}")


class AccountNotOpenError(CircularError):
    """Raised when an operation needs an opened account."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"account is not open: cannot {operation}")


class SigningError(CircularError):
    """Raised when a private key is malformed, degenerate, or cannot sign."""


class NetworkError(CircularError):
    """Raised when the gateway cannot be reached."""

    def __init__(self, url: str, cause: BaseException) -> None:
        self.url = url
        self.cause = cause
        super().__init__(f"network error accessing {url}: {cause}")


class APIError(CircularError):
    """Raised for non-2xx HTTP responses and rejected gateway results.

    ``status_code`` is the HTTP status for transport-level rejections and the
    gateway ``Result`` code otherwise. ``response`` keeps the decoded body when
    one was received, so callers can inspect diagnostic detail.
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        response: dict[str, Any] | None = None,
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.response = response
        super().__init__(f"API error: status {status_code}, message: {message}")


class InvalidResponseError(CircularError):
    """Raised when a gateway response is undecodable or misses a field."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"invalid API response: {message}")


class TransactionTimeoutError(CircularError, TimeoutError):
    """Raised when a transaction does not reach a terminal state in time."""

    def __init__(self, tx_id: str, timeout_sec: float) -> None:
        self.tx_id = tx_id
        self.timeout_sec = timeout_sec
        super().__init__(
            f"transaction {tx_id} not finalized within {timeout_sec}s"
        )
