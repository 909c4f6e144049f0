"""
Hashing helpers for Trampoline.

All ledger hashes (data hashes, script hashes, transaction hashes) are
32-byte blake2b digests with the chain's personalisation string.
"""

import hashlib
import secrets

HASH_SIZE_BYTES = 32
HASH_PERSONALIZATION = b"ckb-default-hash"
ZERO_HASH = b"\x00" * HASH_SIZE_BYTES


def blake2b_256(data: bytes) -> bytes:
    """
    Compute the personalised blake2b-256 digest of data.

    Args:
        data: Raw bytes to hash

    Returns:
        bytes: 32-byte digest
    """
    return hashlib.blake2b(
        bytes(data),
        digest_size=HASH_SIZE_BYTES,
        person=HASH_PERSONALIZATION
    ).digest()


def calc_data_hash(data: bytes) -> bytes:
    """
    Content hash of a cell's data.

    Empty data hashes to the zero hash rather than to the digest of b"".
    """
    if not data:
        return ZERO_HASH
    return blake2b_256(data)


def random_hash() -> bytes:
    """Return 32 random bytes, used for synthetic transaction hashes."""
    return secrets.token_bytes(HASH_SIZE_BYTES)


def to_hex(value: bytes) -> str:
    return "0x" + bytes(value).hex()


def from_hex(value: str) -> bytes:
    """
    Parse a hex string with or without the 0x prefix.

    Raises:
        ValueError: If the string is not valid hex
    """
    if value.startswith("0x"):
        value = value[2:]
    try:
        return bytes.fromhex(value)
    except ValueError as e:
        raise ValueError(f"Invalid hex string: {str(e)}")


def check_hash(value: bytes, name: str = "hash") -> bytes:
    """Validate that value is a 32-byte hash and return it as bytes."""
    value = bytes(value)
    if len(value) != HASH_SIZE_BYTES:
        raise ValueError(f"{name} must be {HASH_SIZE_BYTES} bytes, got {len(value)}")
    return value
