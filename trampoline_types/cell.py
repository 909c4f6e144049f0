"""
Cell-level value types for Trampoline.

This module holds the reference (OutPoint), the output descriptor
(CellOutput), the location record (TransactionInfo) and the materialized
cell view (CellMeta) shared by the store, the resolver and the generator.
"""

from enum import IntEnum
from typing import Any, Dict, Optional, Tuple

from .hashing import calc_data_hash, check_hash, from_hex, to_hex
from .packing import pack_option, pack_table, pack_u32, pack_u64
from .script import Script

ONE_CKB = 100_000_000

_KEEP = object()


def capacity_bytes(size: int) -> int:
    """
    Capacity (in shannons) needed to hold `size` bytes.

    Raises:
        ValueError: If size is negative
    """
    if size < 0:
        raise ValueError("Capacity size must be non-negative")
    return size * ONE_CKB


class OutPoint:
    """
    Reference to a cell: the creating transaction's hash and the output index.

    Attributes:
        tx_hash (bytes): 32-byte hash of the creating transaction
        index (int): Output index within that transaction
    """

    def __init__(self, tx_hash: bytes, index: int = 0):
        if index < 0:
            raise ValueError("OutPoint index must be non-negative")
        self._tx_hash = check_hash(tx_hash, "tx_hash")
        self._index = int(index)

    @property
    def tx_hash(self) -> bytes:
        return self._tx_hash

    @property
    def index(self) -> int:
        return self._index

    def serialize(self) -> bytes:
        return self._tx_hash + pack_u32(self._index)

    def to_dict(self) -> Dict[str, Any]:
        return {"tx_hash": to_hex(self._tx_hash), "index": self._index}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OutPoint":
        return cls(tx_hash=from_hex(data["tx_hash"]), index=int(data["index"]))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OutPoint):
            return NotImplemented
        return self._tx_hash == other._tx_hash and self._index == other._index

    def __hash__(self) -> int:
        return hash((self._tx_hash, self._index))

    def __repr__(self) -> str:
        return f"OutPoint({to_hex(self._tx_hash)}:{self._index})"


class CellOutput:
    """
    Output descriptor of a cell.

    Attributes:
        capacity (int): Capacity in shannons
        lock (Script): Lock script guarding spending
        type_ (Optional[Script]): Optional type script
    """

    def __init__(
        self,
        capacity: int = 0,
        lock: Optional[Script] = None,
        type_: Optional[Script] = None
    ):
        if capacity < 0:
            raise ValueError("Cell capacity must be non-negative")
        self._capacity = int(capacity)
        self._lock = lock if lock is not None else Script()
        self._type = type_

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def lock(self) -> Script:
        return self._lock

    @property
    def type_(self) -> Optional[Script]:
        return self._type

    def calc_lock_hash(self) -> bytes:
        return self._lock.calc_script_hash()

    def calc_type_hash(self) -> Optional[bytes]:
        if self._type is None:
            return None
        return self._type.calc_script_hash()

    def occupied_capacity(self, data: bytes = b"") -> int:
        """
        Minimal capacity this output needs to hold itself and its data.

        Args:
            data: Cell data stored alongside this output

        Returns:
            int: Occupied capacity in shannons
        """
        size = 8 + self._lock.size_bytes() + len(data)
        if self._type is not None:
            size += self._type.size_bytes()
        return capacity_bytes(size)

    def replace(
        self,
        capacity: Optional[int] = None,
        lock: Optional[Script] = None,
        type_: Any = _KEEP
    ) -> "CellOutput":
        """
        Return a copy with some fields replaced.

        Passing type_=None removes the type script; omitting it keeps it.
        """
        return CellOutput(
            capacity=self._capacity if capacity is None else capacity,
            lock=self._lock if lock is None else lock,
            type_=self._type if type_ is _KEEP else type_,
        )

    def serialize(self) -> bytes:
        type_bytes = None if self._type is None else self._type.serialize()
        return pack_table([
            pack_u64(self._capacity),
            self._lock.serialize(),
            pack_option(type_bytes),
        ])

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "capacity": hex(self._capacity),
            "lock": self._lock.to_dict(),
            "type": None if self._type is None else self._type.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CellOutput":
        type_data = data.get("type")
        return cls(
            capacity=int(data["capacity"], 16),
            lock=Script.from_dict(data["lock"]),
            type_=None if type_data is None else Script.from_dict(type_data),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CellOutput):
            return NotImplemented
        return (
            self._capacity == other._capacity
            and self._lock == other._lock
            and self._type == other._type
        )

    def __hash__(self) -> int:
        return hash((self._capacity, self._lock, self._type))

    def __repr__(self) -> str:
        return f"CellOutput(capacity={self._capacity}, lock={self._lock!r}, type_={self._type!r})"


# A cell as the store holds it: output descriptor plus data bytes
CellOutputWithData = Tuple[CellOutput, bytes]


class DepType(IntEnum):
    CODE = 0
    DEP_GROUP = 1


class CellDep:
    """A cell the transaction reads but does not consume."""

    def __init__(self, out_point: OutPoint, dep_type: DepType = DepType.CODE):
        self._out_point = out_point
        self._dep_type = DepType(dep_type)

    @property
    def out_point(self) -> OutPoint:
        return self._out_point

    @property
    def dep_type(self) -> DepType:
        return self._dep_type

    def serialize(self) -> bytes:
        return self._out_point.serialize() + bytes([int(self._dep_type)])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "out_point": self._out_point.to_dict(),
            "dep_type": "code" if self._dep_type == DepType.CODE else "dep_group",
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CellDep):
            return NotImplemented
        return self._out_point == other._out_point and self._dep_type == other._dep_type

    def __hash__(self) -> int:
        return hash((self._out_point, int(self._dep_type)))

    def __repr__(self) -> str:
        return f"CellDep({self._out_point!r}, {self._dep_type.name.lower()})"


class CellInput:
    """A cell consumed by a transaction."""

    def __init__(self, previous_output: OutPoint, since: int = 0):
        self._previous_output = previous_output
        self._since = int(since)

    @property
    def previous_output(self) -> OutPoint:
        return self._previous_output

    @property
    def since(self) -> int:
        return self._since

    def serialize(self) -> bytes:
        return pack_u64(self._since) + self._previous_output.serialize()

    def to_dict(self) -> Dict[str, Any]:
        return {"previous_output": self._previous_output.to_dict(), "since": hex(self._since)}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CellInput):
            return NotImplemented
        return self._previous_output == other._previous_output and self._since == other._since

    def __hash__(self) -> int:
        return hash((self._previous_output, self._since))

    def __repr__(self) -> str:
        return f"CellInput({self._previous_output!r}, since={self._since})"


class TransactionInfo:
    """
    Location record of a committed cell.

    Attributes:
        block_number (int): Number of the block holding the creating transaction
        block_epoch (int): Epoch of that block
        block_hash (bytes): Hash of that block
        index (int): Index of the creating transaction in the block
    """

    def __init__(self, block_number: int, block_epoch: int, block_hash: bytes, index: int):
        self.block_number = block_number
        self.block_epoch = block_epoch
        self.block_hash = check_hash(block_hash, "block_hash")
        self.index = index

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TransactionInfo):
            return NotImplemented
        return (
            self.block_number == other.block_number
            and self.block_epoch == other.block_epoch
            and self.block_hash == other.block_hash
            and self.index == other.index
        )

    def __hash__(self) -> int:
        return hash((self.block_number, self.block_epoch, self.block_hash, self.index))

    def __repr__(self) -> str:
        return (
            f"TransactionInfo(block_number={self.block_number}, "
            f"block_epoch={self.block_epoch}, block_hash={to_hex(self.block_hash)}, "
            f"index={self.index})"
        )


class CellMeta:
    """
    A materialized cell: its output, data, reference and location, if known.
    """

    def __init__(
        self,
        cell_output: CellOutput,
        data: bytes,
        out_point: OutPoint,
        transaction_info: Optional[TransactionInfo] = None
    ):
        self.cell_output = cell_output
        self.data = bytes(data)
        self.out_point = out_point
        self.transaction_info = transaction_info

    @property
    def data_hash(self) -> bytes:
        return calc_data_hash(self.data)

    @property
    def capacity(self) -> int:
        return self.cell_output.capacity

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CellMeta):
            return NotImplemented
        return (
            self.cell_output == other.cell_output
            and self.data == other.data
            and self.out_point == other.out_point
            and self.transaction_info == other.transaction_info
        )

    def __hash__(self) -> int:
        return hash((self.out_point, self.data))

    def __repr__(self) -> str:
        return f"CellMeta({self.out_point!r}, {self.cell_output!r}, data_len={len(self.data)})"
