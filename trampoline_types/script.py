"""
Implementation of the Script class for Trampoline.

A script is a (code_hash, hash_type, args) triple that points at code
deployed in some cell. Lock scripts guard spending, type scripts guard the
shape of a cell's data.
"""

from enum import IntEnum
from typing import Any, Dict

from .hashing import ZERO_HASH, HASH_SIZE_BYTES, blake2b_256, check_hash, from_hex, to_hex
from .packing import pack_bytes, pack_table


class ScriptHashType(IntEnum):
    """
    How a script's code_hash addresses its code.

    DATA and DATA1 address code by the content hash of the deploying cell's
    data (DATA1 selects the newer VM version). TYPE addresses code by the type
    script hash of the deploying cell.
    """

    DATA = 0
    TYPE = 1
    DATA1 = 2

    def is_content_addressed(self) -> bool:
        return self in (ScriptHashType.DATA, ScriptHashType.DATA1)

    def json_name(self) -> str:
        return self.name.lower()

    @classmethod
    def from_json_name(cls, name: str) -> "ScriptHashType":
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown hash type: {name}")


class Script:
    """
    Immutable script descriptor.

    Attributes:
        code_hash (bytes): 32-byte hash identifying the script code
        hash_type (ScriptHashType): How code_hash is interpreted
        args (bytes): Script arguments
    """

    def __init__(
        self,
        code_hash: bytes = ZERO_HASH,
        hash_type: ScriptHashType = ScriptHashType.DATA,
        args: bytes = b""
    ):
        """
        Initialize a script.

        Raises:
            ValueError: If code_hash is not 32 bytes or hash_type is unknown
        """
        self._code_hash = check_hash(code_hash, "code_hash")
        self._hash_type = ScriptHashType(hash_type)
        self._args = bytes(args)

    @property
    def code_hash(self) -> bytes:
        return self._code_hash

    @property
    def hash_type(self) -> ScriptHashType:
        return self._hash_type

    @property
    def args(self) -> bytes:
        return self._args

    def with_args(self, args: bytes) -> "Script":
        """Return a copy of this script with different args."""
        return Script(self._code_hash, self._hash_type, args)

    def serialize(self) -> bytes:
        return pack_table([
            self._code_hash,
            bytes([int(self._hash_type)]),
            pack_bytes(self._args),
        ])

    def calc_script_hash(self) -> bytes:
        """
        Deterministic hash over the (code_hash, hash_type, args) triple.

        Returns:
            bytes: 32-byte script hash
        """
        return blake2b_256(self.serialize())

    def size_bytes(self) -> int:
        # args + code_hash + one hash_type byte
        return len(self._args) + HASH_SIZE_BYTES + 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "code_hash": to_hex(self._code_hash),
            "hash_type": self._hash_type.json_name(),
            "args": to_hex(self._args),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Script":
        return cls(
            code_hash=from_hex(data["code_hash"]),
            hash_type=ScriptHashType.from_json_name(data["hash_type"]),
            args=from_hex(data.get("args", "0x")),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Script):
            return NotImplemented
        return (
            self._code_hash == other._code_hash
            and self._hash_type == other._hash_type
            and self._args == other._args
        )

    def __hash__(self) -> int:
        return hash((self._code_hash, int(self._hash_type), self._args))

    def __repr__(self) -> str:
        return (
            f"Script(code_hash={to_hex(self._code_hash)}, "
            f"hash_type={self._hash_type.json_name()}, args={to_hex(self._args)})"
        )
