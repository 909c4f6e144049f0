"""
Implementation of the Header and Block classes for Trampoline.

The mock chain does not produce blocks; these classes exist so that cells
can be linked to a block location and so that a genesis-like block can be
assembled from deployed cells.
"""

from typing import Any, Dict, List, Optional

from trampoline_transaction.transaction import Transaction
from trampoline_types.hashing import ZERO_HASH, blake2b_256, check_hash, to_hex
from trampoline_types.packing import pack_table, pack_u32, pack_u64


class EpochNumberWithFraction:
    """
    Epoch position: epoch number plus the block's index within an epoch of
    the given length.

    Packs into one integer as number | index << 24 | length << 40.
    """

    NUMBER_BITS = 24
    INDEX_BITS = 16
    LENGTH_BITS = 16

    def __init__(self, number: int, index: int = 0, length: int = 1):
        if length <= 0 or index >= length:
            raise ValueError(f"Invalid epoch fraction {index}/{length}")
        if number >= 1 << self.NUMBER_BITS:
            raise ValueError(f"Epoch number {number} out of range")
        self.number = number
        self.index = index
        self.length = length

    def full_value(self) -> int:
        return (
            self.number
            | (self.index << self.NUMBER_BITS)
            | (self.length << (self.NUMBER_BITS + self.INDEX_BITS))
        )

    @classmethod
    def from_full_value(cls, value: int) -> "EpochNumberWithFraction":
        number = value & ((1 << cls.NUMBER_BITS) - 1)
        index = (value >> cls.NUMBER_BITS) & ((1 << cls.INDEX_BITS) - 1)
        length = (value >> (cls.NUMBER_BITS + cls.INDEX_BITS)) & ((1 << cls.LENGTH_BITS) - 1)
        return cls(number, index, length)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EpochNumberWithFraction):
            return NotImplemented
        return self.full_value() == other.full_value()

    def __hash__(self) -> int:
        return hash(self.full_value())

    def __repr__(self) -> str:
        return f"EpochNumberWithFraction({self.number}, {self.index}/{self.length})"


class Header:
    """
    Block header.

    Attributes:
        version (int): Header format version
        parent_hash (bytes): Hash of the parent block
        timestamp (int): Milliseconds since the Unix epoch
        number (int): Block number
        epoch (int): Packed EpochNumberWithFraction
        transactions_root (bytes): Merkle root of the block's transaction hashes
        nonce (int): Arbitrary nonce
    """

    def __init__(
        self,
        number: int = 0,
        epoch: int = 0,
        parent_hash: bytes = ZERO_HASH,
        timestamp: int = 0,
        transactions_root: bytes = ZERO_HASH,
        version: int = 0,
        nonce: int = 0
    ):
        self.version = version
        self.parent_hash = check_hash(parent_hash, "parent_hash")
        self.timestamp = timestamp
        self.number = number
        self.epoch = epoch
        self.transactions_root = check_hash(transactions_root, "transactions_root")
        self.nonce = nonce

    def epoch_with_fraction(self) -> EpochNumberWithFraction:
        return EpochNumberWithFraction.from_full_value(self.epoch)

    def serialize(self) -> bytes:
        return pack_table([
            pack_u32(self.version),
            pack_u64(self.timestamp),
            pack_u64(self.number),
            pack_u64(self.epoch),
            self.parent_hash,
            self.transactions_root,
            self.nonce.to_bytes(16, "little"),
        ])

    def hash(self) -> bytes:
        return blake2b_256(self.serialize())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "hash": to_hex(self.hash()),
            "version": self.version,
            "parent_hash": to_hex(self.parent_hash),
            "timestamp": self.timestamp,
            "number": self.number,
            "epoch": hex(self.epoch),
            "transactions_root": to_hex(self.transactions_root),
            "nonce": hex(self.nonce),
        }


def merkle_root(hashes: List[bytes]) -> bytes:
    """
    Pairwise merkle root over 32-byte hashes.

    An odd node at any level is paired with itself; no hashes give the zero hash.
    """
    if not hashes:
        return ZERO_HASH

    nodes = list(hashes)
    while len(nodes) > 1:
        if len(nodes) % 2 == 1:
            nodes.append(nodes[-1])
        nodes = [blake2b_256(nodes[i] + nodes[i + 1]) for i in range(0, len(nodes), 2)]
    return nodes[0]


class Block:
    """
    A header together with its transactions.

    Attributes:
        header (Header): Block header, with transactions_root filled in
        transactions (List[Transaction]): Block transactions
    """

    def __init__(self, header: Header, transactions: List[Transaction]):
        self.header = header
        self.transactions = list(transactions)

    @classmethod
    def build(
        cls,
        transactions: List[Transaction],
        number: int = 0,
        epoch: Optional[EpochNumberWithFraction] = None,
        parent_hash: bytes = ZERO_HASH,
        timestamp: int = 0
    ) -> "Block":
        """
        Assemble a block, computing the transactions root.

        Args:
            transactions: Transactions in block order
            number: Block number
            epoch: Epoch position (defaults to epoch 0, 0/1)
            parent_hash: Parent block hash
            timestamp: Block timestamp

        Returns:
            Block
        """
        epoch = epoch or EpochNumberWithFraction(0, 0, 1)
        header = Header(
            number=number,
            epoch=epoch.full_value(),
            parent_hash=parent_hash,
            timestamp=timestamp,
            transactions_root=merkle_root([tx.hash() for tx in transactions]),
        )
        return cls(header, transactions)

    def hash(self) -> bytes:
        return self.header.hash()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "header": self.header.to_dict(),
            "transactions": [tx.to_dict() for tx in self.transactions],
        }
