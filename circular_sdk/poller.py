"""Transaction outcome classification and polling.

A lookup answer is sorted into "not yet visible", "pending" or a terminal
status by :func:`classify_outcome`. :class:`OutcomePoller` repeats a lookup on
a fixed interval until a terminal status arrives or the deadline passes.
Lookup errors end the wait immediately; only the not-final states are
re-queried.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from circular_sdk.errors import APIError, TransactionTimeoutError
from circular_sdk.types import OutcomeStatus, TransactionOutcome

logger = logging.getLogger(__name__)

NOT_FOUND_TEXT = "Transaction Not Found"

_TERMINAL_STATUSES: dict[str, OutcomeStatus] = {
    "Confirmed": OutcomeStatus.CONFIRMED,
    "Executed": OutcomeStatus.EXECUTED,
    "Success": OutcomeStatus.EXECUTED,
    "Failed": OutcomeStatus.FAILED,
}


def classify_outcome(tx_id: str, result: dict[str, Any]) -> TransactionOutcome:
    """Classify one ``Circular_GetTransactionbyID`` answer.

    Raises:
        APIError: If ``Result`` is neither 200 nor 404.
    """
    code = result.get("Result")
    response = result.get("Response")

    if code == 404:
        return TransactionOutcome(tx_id=tx_id, status=OutcomeStatus.NOT_FOUND, response=response)
    if code != 200:
        message = response if isinstance(response, str) else "transaction lookup failed"
        raise APIError(code if isinstance(code, int) else 0, message, result)

    if isinstance(response, str):
        # Any bare string, "Transaction Not Found" included, means not visible yet.
        return TransactionOutcome(
            tx_id=tx_id,
            status=OutcomeStatus.NOT_FOUND,
            status_text=response,
            response=response,
        )

    status_text = response.get("Status") if isinstance(response, dict) else None
    if not isinstance(status_text, str) or status_text == "Pending":
        return TransactionOutcome(
            tx_id=tx_id,
            status=OutcomeStatus.PENDING,
            status_text=status_text or "",
            response=response,
        )

    return TransactionOutcome(
        tx_id=tx_id,
        status=_TERMINAL_STATUSES.get(status_text, OutcomeStatus.UNKNOWN),
        status_text=status_text,
        response=response,
    )


class OutcomePoller:
    """Poll a lookup callable until a terminal outcome or a timeout.

    Args:
        query: Callable performing one lookup for a transaction ID.
        sleep: Blocking sleep, ``time.sleep`` by default.
        clock: Monotonic clock in seconds, ``time.monotonic`` by default.
    """

    def __init__(
        self,
        query: Callable[[str], TransactionOutcome],
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._query = query
        self._sleep = sleep
        self._clock = clock

    def wait(self, tx_id: str, timeout_sec: float, interval_sec: float) -> TransactionOutcome:
        """Block until *tx_id* reaches a terminal status.

        The first lookup happens immediately. No lookup is issued once
        *timeout_sec* has elapsed since the call started.

        Raises:
            TransactionTimeoutError: If the deadline passes first.
            CircularError: Any error raised by a lookup, unchanged.
        """
        if interval_sec <= 0:
            raise ValueError("interval_sec must be positive")
        deadline = self._clock() + timeout_sec
        attempt = 0
        while True:
            attempt += 1
            outcome = self._query(tx_id)
            logger.debug("poll %d for %s: %s", attempt, tx_id, outcome.status.value)
            if outcome.is_terminal:
                logger.info("transaction %s finalized as %s", tx_id, outcome.status_text)
                return outcome

            remaining = deadline - self._clock()
            if remaining <= 0:
                break
            self._sleep(min(interval_sec, remaining))
            if self._clock() >= deadline:
                break

        logger.warning("transaction %s not finalized after %d polls", tx_id, attempt)
        raise TransactionTimeoutError(tx_id, timeout_sec)
