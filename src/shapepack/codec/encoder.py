"""Shape-directed MessagePack encoder.

This module provides encode() and encode_to(), which write a Python value
as exactly one wire value, plus pack_* helpers that each write one wire
primitive. With a shape (a type annotation or a resolved Shape) the value is
encoded by the shape's rules; without one, its runtime type decides.
"""

from __future__ import annotations

import collections.abc
import enum
import io
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel

from ..config import CodecConfig
from ..exceptions import EncodeError, UnsupportedShapeError, ValueTooLargeError
from .fieldtext import format_field_text
from .primitives import INT64_MAX, INT64_MIN, UINT64_MAX, ByteSink, WirePacker
from .schema import FieldSchema, RecordSchema, is_zero, zero_value
from .shape import Shape, ShapeKind, resolve_shape
from .value import Value, ValueKind

_BYTES_LIKE = (bytes, bytearray, memoryview)


def encode(value: Any, shape: Any = None, *, config: Optional[CodecConfig] = None) -> bytes:
    """Encode a value to MessagePack bytes.

    Args:
        value: Value to encode
        shape: Optional type annotation or Shape directing the encoding
        config: Codec limits (defaults to DEFAULT_CONFIG)

    Returns:
        Encoded bytes (exactly one wire value)

    Raises:
        UnsupportedShapeError: If the value or shape has no wire form
        EncodeError: If the value does not fit the shape

    Examples:
        ```python
        from shapepack import encode, Int8

        encode(255)                 # b'\\xcc\\xff'
        encode([1, "a"])            # b'\\x92\\x01\\xa1a'
        encode(5, Int8)             # b'\\x05'
        encode(b"\\x01\\x02")         # b'\\xc4\\x02\\x01\\x02'
        ```
    """
    sink = io.BytesIO()
    encode_to(sink, value, shape, config=config)
    return sink.getvalue()


def encode_to(
    sink: ByteSink, value: Any, shape: Any = None, *, config: Optional[CodecConfig] = None
) -> None:
    """Encode a value directly to a byte sink.

    Bytes already written stay written if encoding fails part way.

    Args:
        sink: Object with a ``write(bytes)`` method
        value: Value to encode
        shape: Optional type annotation or Shape directing the encoding
        config: Codec limits (defaults to DEFAULT_CONFIG)

    Raises:
        UnsupportedShapeError: If the value or shape has no wire form
        EncodeError: If the value does not fit the shape
        OSError: If the sink fails to write
    """
    packer = WirePacker(sink, config)
    if shape is None:
        encode_dynamic(packer, value)
    else:
        encode_shaped(packer, value, resolve_shape(shape))


# Per-primitive helpers


def pack_nil(sink: ByteSink) -> None:
    """Write the nil tag (0xc0)."""
    WirePacker(sink).write_nil()


def pack_bool(sink: ByteSink, value: bool) -> None:
    """Write a boolean."""
    WirePacker(sink).write_bool(value)


def pack_int(sink: ByteSink, value: int) -> None:
    """Write a signed integer in its minimal-width form."""
    WirePacker(sink).write_int(value)


def pack_uint(sink: ByteSink, value: int) -> None:
    """Write an unsigned integer in the smallest UInt8/16/32/64 form."""
    WirePacker(sink).write_uint(value)


def pack_float32(sink: ByteSink, value: float) -> None:
    """Write a single-precision float (0xca)."""
    WirePacker(sink).write_float32(value)


def pack_float64(sink: ByteSink, value: float) -> None:
    """Write a double-precision float (0xcb)."""
    WirePacker(sink).write_float64(value)


def pack_string(sink: ByteSink, value: str) -> None:
    """Write a UTF-8 string."""
    WirePacker(sink).write_string(value)


def pack_bin(sink: ByteSink, value: bytes) -> None:
    """Write a binary blob."""
    WirePacker(sink).write_bin(value)


def pack_array_header(sink: ByteSink, count: int) -> None:
    """Write an array header; the caller then writes ``count`` values."""
    WirePacker(sink).write_array_header(count)


def pack_map_header(sink: ByteSink, count: int) -> None:
    """Write a map header; the caller then writes ``count`` key/value pairs."""
    WirePacker(sink).write_map_header(count)


# Dynamic (runtime type) encoding


def encode_dynamic(packer: WirePacker, value: Any) -> None:
    """Encode a value according to its runtime type.

    Raises:
        UnsupportedShapeError: If the type has no wire form
    """
    if value is None:
        packer.write_nil()
    elif isinstance(value, Value):
        _encode_value(packer, value)
    elif isinstance(value, bool):
        packer.write_bool(value)
    elif isinstance(value, enum.Enum):
        encode_dynamic(packer, value.value)
    elif isinstance(value, int):
        if INT64_MIN <= value <= INT64_MAX:
            packer.write_int(value)
        elif 0 <= value <= UINT64_MAX:
            packer.write_uint(value)
        else:
            raise ValueTooLargeError(f"Integer {value} does not fit in 64 bits")
    elif isinstance(value, float):
        packer.write_float64(value)
    elif isinstance(value, str):
        packer.write_string(value)
    elif isinstance(value, _BYTES_LIKE):
        packer.write_bin(bytes(value))
    elif isinstance(value, BaseModel):
        _encode_record(packer, value)
    elif isinstance(value, (list, tuple)):
        packer.write_array_header(len(value))
        with packer.nested():
            for item in value:
                encode_dynamic(packer, item)
    elif isinstance(value, collections.abc.Mapping):
        packer.write_map_header(len(value))
        with packer.nested():
            for key, item in value.items():
                encode_dynamic(packer, key)
                encode_dynamic(packer, item)
    else:
        raise UnsupportedShapeError(f"Cannot encode value of type {type(value).__name__}")


def _encode_value(packer: WirePacker, value: Value) -> None:
    kind = value.kind
    if kind is ValueKind.NIL:
        packer.write_nil()
    elif kind is ValueKind.BOOL:
        packer.write_bool(value.data)
    elif kind is ValueKind.INT:
        packer.write_int(value.data)
    elif kind is ValueKind.UINT:
        packer.write_uint(value.data)
    elif kind is ValueKind.FLOAT:
        packer.write_float64(value.data)
    elif kind is ValueKind.TEXT:
        packer.write_string(value.data)
    elif kind is ValueKind.BYTES:
        packer.write_bin(value.data)
    elif kind is ValueKind.SEQUENCE:
        packer.write_array_header(len(value.data))
        with packer.nested():
            for item in value.data:
                _encode_value(packer, item)
    else:
        packer.write_map_header(len(value.data))
        with packer.nested():
            for key, item in value.data:
                _encode_value(packer, key)
                _encode_value(packer, item)


# Shape-directed encoding


def encode_shaped(packer: WirePacker, value: Any, shape: Shape) -> None:
    """Encode a value according to a resolved shape.

    Raises:
        EncodeError: If the value does not fit the shape
        UnsupportedShapeError: If a dynamic part has no wire form
    """
    if value is None:
        packer.write_nil()
        return

    kind = shape.kind
    if kind is ShapeKind.BOOL:
        if not isinstance(value, bool):
            raise _mismatch(value, shape)
        packer.write_bool(value)
    elif kind is ShapeKind.INT:
        packer.write_int(_checked_int(value, shape))
    elif kind is ShapeKind.UINT:
        packer.write_uint(_checked_int(value, shape))
    elif kind is ShapeKind.FLOAT:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise _mismatch(value, shape)
        if shape.bits == 32:
            packer.write_float32(float(value))
        else:
            packer.write_float64(float(value))
    elif kind is ShapeKind.STRING:
        if not isinstance(value, str):
            raise _mismatch(value, shape)
        packer.write_string(value)
    elif kind in (ShapeKind.SEQUENCE, ShapeKind.FIXED_ARRAY):
        _encode_sequence(packer, value, shape)
    elif kind is ShapeKind.MAPPING:
        if not isinstance(value, collections.abc.Mapping):
            raise _mismatch(value, shape)
        packer.write_map_header(len(value))
        with packer.nested():
            for key, item in value.items():
                encode_shaped(packer, key, shape.key)
                encode_shaped(packer, item, shape.value)
    elif kind is ShapeKind.RECORD:
        if not isinstance(value, shape.python_type):
            raise _mismatch(value, shape)
        _encode_record(packer, value)
    elif kind is ShapeKind.OPTIONAL:
        encode_shaped(packer, value, shape.elem)
    elif kind is ShapeKind.ENUM:
        if not isinstance(value, shape.python_type):
            raise _mismatch(value, shape)
        encode_dynamic(packer, value.value)
    elif kind is ShapeKind.VALUE:
        if not isinstance(value, Value):
            raise _mismatch(value, shape)
        _encode_value(packer, value)
    else:
        encode_dynamic(packer, value)


def _mismatch(value: Any, shape: Shape) -> EncodeError:
    return EncodeError(f"Expected {shape.describe()}, got {type(value).__name__}")


def _checked_int(value: Any, shape: Shape) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise _mismatch(value, shape)
    if shape.kind is ShapeKind.INT:
        low, high = -(1 << (shape.bits - 1)), (1 << (shape.bits - 1)) - 1
    else:
        low, high = 0, (1 << shape.bits) - 1
    if not low <= value <= high:
        if shape.bits == 64:
            raise ValueTooLargeError(f"Integer {value} does not fit in {shape.describe()}")
        raise EncodeError(f"Value {value} out of bounds [{low}, {high}] for {shape.describe()}")
    return value


def _encode_sequence(packer: WirePacker, value: Any, shape: Shape) -> None:
    capacity = shape.length if shape.kind is ShapeKind.FIXED_ARRAY else None

    if shape.holds_bytes:
        if isinstance(value, _BYTES_LIKE):
            data = bytes(value)
        elif isinstance(value, (list, tuple)):
            try:
                data = bytes(value)
            except (TypeError, ValueError) as e:
                raise EncodeError(f"Invalid byte sequence for {shape.describe()}: {e}") from e
        else:
            raise _mismatch(value, shape)
        if capacity is not None:
            if len(data) > capacity:
                raise EncodeError(
                    f"{len(data)} bytes exceed the capacity of {shape.describe()}"
                )
            data = data.ljust(capacity, b"\x00")
        packer.write_bin(data)
        return

    if isinstance(value, (str, *_BYTES_LIKE)) or not isinstance(
        value, collections.abc.Sequence
    ):
        raise _mismatch(value, shape)

    items = list(value)
    if capacity is not None:
        if len(items) > capacity:
            raise EncodeError(
                f"{len(items)} elements exceed the capacity of {shape.describe()}"
            )
        items.extend(zero_value(shape.elem) for _ in range(capacity - len(items)))

    packer.write_array_header(len(items))
    with packer.nested():
        for item in items:
            encode_shaped(packer, item, shape.elem)


# Records


def record_entries(record: BaseModel) -> List[Tuple[FieldSchema, Any]]:
    """The (field, value) pairs a record writes, in declaration order.

    Skipped fields and ``omitempty`` fields holding their zero value are
    left out.
    """
    schema = RecordSchema.from_model(type(record))
    entries = []
    for field in schema.wire_fields:
        field_value = getattr(record, field.name)
        if field.omit_empty and is_zero(field_value, field.shape):
            continue
        entries.append((field, field_value))
    return entries


def encode_field(packer: WirePacker, field: FieldSchema, value: Any) -> None:
    """Write one record entry: the wire name, then the value."""
    packer.write_string(field.wire_name)
    if field.as_string:
        packer.write_string(format_field_text(field, value))
    else:
        encode_shaped(packer, value, field.shape)


def _encode_record(packer: WirePacker, record: BaseModel) -> None:
    entries = record_entries(record)
    packer.write_map_header(len(entries))
    with packer.nested():
        for field, field_value in entries:
            encode_field(packer, field, field_value)
