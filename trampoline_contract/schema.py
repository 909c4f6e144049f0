"""
Typed schemas for contract args and data.

Every schema value has one canonical byte encoding (to_bytes/from_bytes) and
a JSON form, the 0x-prefixed hex string of those bytes.
"""

from abc import ABC, abstractmethod
from typing import Any, ClassVar, List, Optional, Tuple, Type

from trampoline_types.errors import SchemaDecodeError
from trampoline_types.hashing import ZERO_HASH, from_hex, to_hex
from trampoline_types.packing import pack_bytes


class SchemaType(ABC):
    """Base class for schema values."""

    # Encoded size in bytes, None when variable
    SIZE: ClassVar[Optional[int]] = None

    @abstractmethod
    def to_bytes(self) -> bytes:
        """Canonical encoding."""

    @classmethod
    @abstractmethod
    def from_bytes(cls, data: bytes) -> "SchemaType":
        """Decode the canonical encoding."""

    def to_json_bytes(self) -> str:
        return to_hex(self.to_bytes())

    @classmethod
    def from_json_bytes(cls, value: str) -> "SchemaType":
        try:
            data = from_hex(value)
        except ValueError as e:
            raise SchemaDecodeError(cls.__name__, str(e)) from e
        return cls.from_bytes(data)

    @classmethod
    def default(cls) -> "SchemaType":
        return cls()

    @classmethod
    def _check_size(cls, data: bytes) -> bytes:
        data = bytes(data)
        if cls.SIZE is not None and len(data) != cls.SIZE:
            raise SchemaDecodeError(cls.__name__, f"expected {cls.SIZE} bytes, got {len(data)}")
        return data

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.to_bytes()))


class SchemaPrimitiveType(SchemaType):
    """
    A schema wrapping one Python value.

    Attributes:
        value: The wrapped value
    """

    def __init__(self, value: Any = None):
        self.value = self.validate(self.default_value() if value is None else value)

    @classmethod
    @abstractmethod
    def default_value(cls) -> Any:
        """Value used when none is given."""

    @classmethod
    def validate(cls, value: Any) -> Any:
        return value

    def __repr__(self) -> str:
        value = f"0x{self.value.hex()}" if isinstance(self.value, bytes) else repr(self.value)
        return f"{type(self).__name__}({value})"


class _Uint(SchemaPrimitiveType):
    """Unsigned little-endian integer of SIZE bytes."""

    SIZE: ClassVar[Optional[int]] = 0

    @classmethod
    def default_value(cls) -> int:
        return 0

    @classmethod
    def validate(cls, value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{cls.__name__} requires an int")
        if value < 0 or value >= 1 << (8 * cls.SIZE):
            raise ValueError(f"{value} out of range for {cls.__name__}")
        return value

    def to_bytes(self) -> bytes:
        return self.value.to_bytes(self.SIZE, "little")

    @classmethod
    def from_bytes(cls, data: bytes) -> "_Uint":
        return cls(int.from_bytes(cls._check_size(data), "little"))

    def __int__(self) -> int:
        return self.value


class Uint8(_Uint):
    SIZE = 1


class Uint32(_Uint):
    SIZE = 4


class Uint64(_Uint):
    SIZE = 8


class Uint128(_Uint):
    SIZE = 16


class Byte32(SchemaPrimitiveType):
    """Fixed 32 bytes, such as a hash."""

    SIZE = 32

    @classmethod
    def default_value(cls) -> bytes:
        return ZERO_HASH

    @classmethod
    def validate(cls, value: Any) -> bytes:
        if not isinstance(value, (bytes, bytearray)) or len(value) != 32:
            raise ValueError(f"{cls.__name__} requires 32 bytes")
        return bytes(value)

    def to_bytes(self) -> bytes:
        return self.value

    @classmethod
    def from_bytes(cls, data: bytes) -> "Byte32":
        return cls(cls._check_size(data))


class Bytes(SchemaPrimitiveType):
    """Variable-length bytes, encoded with a u32 length prefix."""

    @classmethod
    def default_value(cls) -> bytes:
        return b""

    @classmethod
    def validate(cls, value: Any) -> bytes:
        if not isinstance(value, (bytes, bytearray)):
            raise ValueError(f"{cls.__name__} requires bytes")
        return bytes(value)

    def to_bytes(self) -> bytes:
        return pack_bytes(self.value)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Bytes":
        data = bytes(data)
        if len(data) < 4:
            raise SchemaDecodeError(cls.__name__, "missing length header")
        size = int.from_bytes(data[:4], "little")
        if len(data) != 4 + size:
            raise SchemaDecodeError(cls.__name__, f"header says {size} bytes, got {len(data) - 4}")
        return cls(data[4:])


class SchemaStruct(SchemaType):
    """
    Fixed-size record of schema fields, encoded as their concatenation.

    Subclasses list their fields in FIELDS as (name, schema type) pairs;
    every field type must have a fixed SIZE.
    """

    FIELDS: ClassVar[List[Tuple[str, Type[SchemaType]]]] = []

    def __init__(self, **fields: Any):
        for name, field_type in self.FIELDS:
            value = fields.pop(name, None)
            if value is None:
                value = field_type.default()
            elif not isinstance(value, field_type):
                raise ValueError(f"{type(self).__name__}.{name} must be {field_type.__name__}")
            setattr(self, name, value)
        if fields:
            raise ValueError(f"Unknown fields for {type(self).__name__}: {sorted(fields)}")

    @classmethod
    def size(cls) -> int:
        total = 0
        for name, field_type in cls.FIELDS:
            if field_type.SIZE is None:
                raise ValueError(f"{cls.__name__}.{name} is not fixed size")
            total += field_type.SIZE
        return total

    def to_bytes(self) -> bytes:
        return b"".join(getattr(self, name).to_bytes() for name, _ in self.FIELDS)

    @classmethod
    def from_bytes(cls, data: bytes) -> "SchemaStruct":
        data = bytes(data)
        if len(data) != cls.size():
            raise SchemaDecodeError(cls.__name__, f"expected {cls.size()} bytes, got {len(data)}")
        fields = {}
        offset = 0
        for name, field_type in cls.FIELDS:
            fields[name] = field_type.from_bytes(data[offset:offset + field_type.SIZE])
            offset += field_type.SIZE
        return cls(**fields)

    def __repr__(self) -> str:
        fields = ", ".join(f"{name}={getattr(self, name)!r}" for name, _ in self.FIELDS)
        return f"{type(self).__name__}({fields})"
