"""Dynamic value model for shape-agnostic decoding.

A Value can represent any decoded wire value without knowing the target
shape in advance. Containers hold tuples, so every Value is immutable and
hashable (and can itself be a mapping key). Mappings keep every pair in wire
order, duplicates included; ``to_python()`` collapses them with the last
occurrence winning.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Iterable, Tuple

from ..exceptions import TypeMismatchError, UnsupportedShapeError
from .primitives import INT64_MAX, INT64_MIN, UINT64_MAX, Tag, WireUnpacker
from .tags import Family


class ValueKind(enum.Enum):
    """Variants of the dynamic value model."""

    NIL = "nil"
    BOOL = "bool"
    INT = "int"
    UINT = "uint"
    FLOAT = "float"
    TEXT = "text"
    BYTES = "bytes"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


@dataclass(frozen=True)
class Value:
    """A decoded wire value of any kind.

    Attributes:
        kind: Which variant this value is
        data: Payload; None for NIL, a bool, int, float, str or bytes for
            scalars, a tuple of Values for SEQUENCE and a tuple of
            ``(key, value)`` Value pairs for MAPPING

    Example:
        >>> value = decode_dynamic(b"\\x92\\x01\\xa1a")
        >>> value.kind
        <ValueKind.SEQUENCE: 'sequence'>
        >>> value.to_python()
        [1, 'a']
    """

    kind: ValueKind
    data: Any = None

    @classmethod
    def nil(cls) -> Value:
        return cls(ValueKind.NIL)

    @classmethod
    def boolean(cls, value: bool) -> Value:
        return cls(ValueKind.BOOL, bool(value))

    @classmethod
    def integer(cls, value: int) -> Value:
        """Signed 64-bit integer variant."""
        if value < INT64_MIN or value > INT64_MAX:
            raise ValueError(f"{value} is outside the int64 range")
        return cls(ValueKind.INT, int(value))

    @classmethod
    def unsigned(cls, value: int) -> Value:
        """Unsigned 64-bit integer variant."""
        if value < 0 or value > UINT64_MAX:
            raise ValueError(f"{value} is outside the uint64 range")
        return cls(ValueKind.UINT, int(value))

    @classmethod
    def floating(cls, value: float) -> Value:
        return cls(ValueKind.FLOAT, float(value))

    @classmethod
    def text(cls, value: str) -> Value:
        return cls(ValueKind.TEXT, value)

    @classmethod
    def binary(cls, value: bytes) -> Value:
        return cls(ValueKind.BYTES, bytes(value))

    @classmethod
    def sequence(cls, items: Iterable[Value]) -> Value:
        return cls(ValueKind.SEQUENCE, tuple(items))

    @classmethod
    def mapping(cls, pairs: Iterable[Tuple[Value, Value]]) -> Value:
        return cls(ValueKind.MAPPING, tuple((k, v) for k, v in pairs))

    @classmethod
    def from_python(cls, obj: Any) -> Value:
        """Build a Value from native Python data.

        Integers in the int64 range become INT, larger ones up to 2**64 - 1
        become UINT.

        Raises:
            UnsupportedShapeError: If obj (or something nested in it) has no
                Value counterpart
        """
        if obj is None:
            return cls.nil()
        if isinstance(obj, Value):
            return obj
        if isinstance(obj, bool):
            return cls.boolean(obj)
        if isinstance(obj, int):
            if INT64_MIN <= obj <= INT64_MAX:
                return cls.integer(obj)
            if 0 <= obj <= UINT64_MAX:
                return cls.unsigned(obj)
            raise UnsupportedShapeError(f"Integer {obj} does not fit in 64 bits")
        if isinstance(obj, float):
            return cls.floating(obj)
        if isinstance(obj, str):
            return cls.text(obj)
        if isinstance(obj, (bytes, bytearray, memoryview)):
            return cls.binary(bytes(obj))
        if isinstance(obj, (list, tuple)):
            return cls.sequence(cls.from_python(item) for item in obj)
        if isinstance(obj, dict):
            return cls.mapping((cls.from_python(k), cls.from_python(v)) for k, v in obj.items())
        raise UnsupportedShapeError(f"No dynamic value for {type(obj).__name__}")

    @property
    def is_nil(self) -> bool:
        return self.kind is ValueKind.NIL

    def to_python(self) -> Any:
        """Materialize into native Python objects.

        Mappings become dicts (last duplicate key wins); sequence keys are
        converted to tuples so they stay hashable.

        Raises:
            TypeMismatchError: If a mapping key has no hashable form
        """
        if self.kind is ValueKind.SEQUENCE:
            return [item.to_python() for item in self.data]
        if self.kind is ValueKind.MAPPING:
            result: dict[Any, Any] = {}
            for key, item in self.data:
                result[_hashable(key.to_python())] = item.to_python()
            return result
        return self.data


def _hashable(obj: Any) -> Any:
    if isinstance(obj, list):
        return tuple(_hashable(item) for item in obj)
    if isinstance(obj, dict):
        raise TypeMismatchError("A map cannot be used as a mapping key")
    return obj


_SCALAR_KINDS = {
    Family.NIL: ValueKind.NIL,
    Family.BOOL: ValueKind.BOOL,
    Family.INT: ValueKind.INT,
    Family.UINT: ValueKind.UINT,
    Family.FLOAT: ValueKind.FLOAT,
}


def read_value(unpacker: WireUnpacker) -> Value:
    """Decode exactly one wire value into a Value.

    Args:
        unpacker: Source of wire primitives

    Returns:
        The decoded Value; every wire kind maps onto one variant

    Raises:
        DecodeError: If the input is truncated or malformed
    """
    return read_value_from(unpacker, unpacker.read_tag())


def read_value_from(unpacker: WireUnpacker, tag: Tag) -> Value:
    """Decode the rest of a value whose tag has already been read."""
    family = tag.family

    kind = _SCALAR_KINDS.get(family)
    if kind is not None:
        scalar = unpacker.read_scalar(tag)
        if kind is ValueKind.FLOAT:
            scalar = float(scalar)
        return Value(kind, scalar)

    if family is Family.STR:
        return Value(ValueKind.TEXT, unpacker.read_str(tag.length))
    if family is Family.BIN:
        return Value(ValueKind.BYTES, unpacker.read_bin(tag.length))

    with unpacker.nested():
        if family is Family.ARRAY:
            return Value(
                ValueKind.SEQUENCE,
                tuple(read_value(unpacker) for _ in range(tag.length)),
            )
        pairs = []
        for _ in range(tag.length):
            key = read_value(unpacker)
            pairs.append((key, read_value(unpacker)))
        return Value(ValueKind.MAPPING, tuple(pairs))
