"""Key handling and ECDSA signing over secp256k1.

All cryptographic operations use the :mod:`ecdsa` package. Signatures are
deterministic (RFC 6979), low-S normalised, and DER-encoded, which is the
form the Circular gateway verifies.
"""

from __future__ import annotations

import hashlib
import secrets

from ecdsa import (
    SECP256k1,
    BadDigestError,
    BadSignatureError,
    MalformedPointError,
    SigningKey,
    VerifyingKey,
)
from ecdsa.der import UnexpectedDER
from ecdsa.util import sigdecode_der, sigencode_der_canonize

from circular_sdk.encoding import is_hex, strip_prefix
from circular_sdk.errors import SigningError

PRIVATE_KEY_LENGTH = 32


def validate_private_key(private_key: str) -> bytes:
    """Check a hex-encoded private key and return its raw bytes.

    Degenerate keys made of a single repeated hex digit (all ``0``, all ``f``
    and the like) are rejected up front. This is a sanity check, not full key
    validation; out-of-range scalars are still caught by the curve library
    when signing.

    Raises:
        SigningError: If the key is not 64 hex characters or is degenerate.
    """
    if not isinstance(private_key, str) or not private_key:
        raise SigningError("private key must be a non-empty hex string")
    body = strip_prefix(private_key)
    if not is_hex(body):
        raise SigningError("private key is not valid hex")
    if len(body) != PRIVATE_KEY_LENGTH * 2:
        raise SigningError(
            f"private key must be {PRIVATE_KEY_LENGTH} bytes, got {len(body) // 2}"
        )
    if len(set(body)) == 1:
        raise SigningError("private key is degenerate")
    return bytes.fromhex(body)


def _signing_key(private_key: str) -> SigningKey:
    raw = validate_private_key(private_key)
    try:
        return SigningKey.from_string(raw, curve=SECP256k1)
    except MalformedPointError as exc:
        raise SigningError(f"private key is out of range: {exc}") from exc


def generate_private_key() -> str:
    """Return a fresh random private key as 64 lower-case hex characters."""
    while True:
        candidate = secrets.token_hex(PRIVATE_KEY_LENGTH)
        try:
            _signing_key(candidate)
        except SigningError:
            continue
        return candidate


def public_key_from_private(private_key: str) -> str:
    """Derive the uncompressed public key (``04`` + X + Y) as hex.

    Raises:
        SigningError: If the private key is invalid.
    """
    sk = _signing_key(private_key)
    return sk.get_verifying_key().to_string("uncompressed").hex()


def sign_digest(private_key: str, digest: bytes) -> str:
    """Sign a 32-byte SHA-256 digest and return the DER signature as hex.

    Args:
        private_key: Hex-encoded 32-byte secret, optionally ``0x``-prefixed.
        digest: The raw digest bytes to sign.

    Raises:
        SigningError: If the key is invalid or the digest has the wrong size.
    """
    if len(digest) != hashlib.sha256().digest_size:
        raise SigningError(f"digest must be 32 bytes, got {len(digest)}")
    sk = _signing_key(private_key)
    signature = sk.sign_digest_deterministic(
        digest,
        hashfunc=hashlib.sha256,
        sigencode=sigencode_der_canonize,
    )
    return signature.hex()


def verify_signature(public_key: str, digest: bytes, signature: str) -> bool:
    """Verify a hex DER signature over *digest*.

    Args:
        public_key: Hex public key (compressed, uncompressed or raw 64-byte).
        digest: The 32-byte digest that was signed.
        signature: Hex-encoded DER signature.

    Returns:
        ``True`` if the signature is valid, ``False`` otherwise.
    """
    try:
        vk = VerifyingKey.from_string(bytes.fromhex(strip_prefix(public_key)), curve=SECP256k1)
        return vk.verify_digest(
            bytes.fromhex(strip_prefix(signature)),
            digest,
            sigdecode=sigdecode_der,
        )
    except (BadSignatureError, BadDigestError, MalformedPointError, UnexpectedDER, ValueError):
        return False
