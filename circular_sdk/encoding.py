"""Canonical string and hex conversions.

The gateway hashes and compares raw strings, so every helper here must be
deterministic: hex is always lower-case and of even length, and timestamps
always use the literal ``YYYY:MM:DD-HH:MM:SS`` layout in UTC.
"""

from __future__ import annotations

import binascii
import re
from datetime import datetime, timezone

_HEX_RE = re.compile(r"[0-9a-fA-F]*")

TIMESTAMP_FORMAT = "%Y:%m:%d-%H:%M:%S"


def _drop_prefix(value: str) -> str:
    if value[:2] in ("0x", "0X"):
        return value[2:]
    return value


def is_hex(value: str) -> bool:
    """Return ``True`` if *value* (without ``0x``) contains only hex digits."""
    return bool(_HEX_RE.fullmatch(_drop_prefix(value)))


def strip_prefix(value: str) -> str:
    """Normalise a hex string: drop ``0x``/``0X``, lower-case, pad to even length."""
    if not value:
        return ""
    value = _drop_prefix(value).lower()
    if len(value) % 2:
        value = "0" + value
    return value


def to_hex(text: str) -> str:
    """Encode *text* as UTF-8 and return lower-case hex."""
    return text.encode("utf-8").hex()


def from_hex(value: str) -> str:
    """Decode hex back to text.

    Malformed input (odd length, non-hex characters, invalid UTF-8) yields an
    empty string, which is also how the gateway represents missing data.
    Embedded NUL bytes are removed.
    """
    if not value:
        return ""
    try:
        raw = binascii.unhexlify(_drop_prefix(value))
        text = raw.decode("utf-8")
    except (binascii.Error, ValueError):
        return ""
    return text.replace("\x00", "")


def format_timestamp(moment: datetime | None = None) -> str:
    """Format *moment* (default: now) as ``YYYY:MM:DD-HH:MM:SS`` in UTC.

    Naive datetimes are interpreted as UTC.
    """
    if moment is None:
        moment = datetime.now(timezone.utc)
    elif moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    else:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(TIMESTAMP_FORMAT)
