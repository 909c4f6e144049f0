"""
Canonical byte layout used for hashing ledger structures.

Follows the chain's table/fixvec layout: little-endian integers, vectors
prefixed by a u32 item count, tables prefixed by their total size and one
u32 offset per field.
"""

from typing import List, Optional


def pack_u32(value: int) -> bytes:
    return int(value).to_bytes(4, "little")


def pack_u64(value: int) -> bytes:
    return int(value).to_bytes(8, "little")


def pack_bytes(value: bytes) -> bytes:
    """Pack a byte vector (u32 length followed by the bytes)."""
    return pack_u32(len(value)) + bytes(value)


def pack_fixvec(items: List[bytes]) -> bytes:
    """Pack a vector of fixed-size items (u32 item count followed by items)."""
    return pack_u32(len(items)) + b"".join(items)


def pack_dynvec(items: List[bytes]) -> bytes:
    """Pack a vector of variable-size items (same header layout as a table)."""
    return pack_table(items)


def pack_option(value: Optional[bytes]) -> bytes:
    # None encodes as zero bytes
    return b"" if value is None else value


def pack_table(fields: List[bytes]) -> bytes:
    """
    Pack a table: total size, one offset per field, then the field bodies.

    Args:
        fields: Already-packed field bodies in declaration order

    Returns:
        bytes: Packed table
    """
    header_size = 4 * (1 + len(fields))
    offsets = []
    offset = header_size
    for field in fields:
        offsets.append(offset)
        offset += len(field)
    return pack_u32(offset) + b"".join(pack_u32(o) for o in offsets) + b"".join(fields)
