"""Shape-directed MessagePack decoder.

This module provides decode(), which reads exactly one wire value and builds
a Python value of the requested shape, decode_into() for filling an
existing record, decode_dynamic() for shape-agnostic reads, and unpack_*
helpers for single primitives and containers.

Numeric targets accept any numeric wire kind and convert it the way a cast
would: floats truncate toward zero and integers wrap to the target width.
Nil decodes to the zero value of any shape.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from ..config import CodecConfig
from ..exceptions import BufferTooSmallError, DecodeError, TypeMismatchError
from . import tags
from .fieldtext import parse_field_text
from .peekable import ByteSource
from .primitives import Tag, WireUnpacker, round_float32
from .schema import RecordSchema, zero_value
from .shape import (
    BOOL,
    BYTES,
    FLOAT32,
    FLOAT64,
    STRING,
    Shape,
    ShapeKind,
    fixed_array_of,
    mapping_of,
    optional_of,
    resolve_shape,
    sequence_of,
)
from .tags import Family
from .value import Value, read_value, read_value_from

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=BaseModel)

Source = Union[ByteSource, bytes, bytearray, memoryview, WireUnpacker]

_NUMERIC_FAMILIES = (Family.INT, Family.UINT, Family.FLOAT)


def _unpacker(source: Source, config: Optional[CodecConfig]) -> WireUnpacker:
    if isinstance(source, WireUnpacker):
        return source
    return WireUnpacker(source, config)


def decode(source: Source, shape: Any, *, config: Optional[CodecConfig] = None) -> Any:
    """Decode one wire value into a new value of the given shape.

    Passing a WireUnpacker (or a PeekableReader) lets consecutive calls read
    consecutive values from the same stream.

    Args:
        source: Bytes-like object, object with ``read(n)``, or WireUnpacker
        shape: Type annotation or Shape of the result
        config: Codec limits (defaults to DEFAULT_CONFIG)

    Returns:
        Decoded value

    Raises:
        UnsupportedShapeError: If the shape has no codec rule (before any
            byte is read)
        EndOfStreamError: If the source is empty at the start of the value
        TruncatedError: If the source ends inside the value
        TypeMismatchError: If the wire kind does not fit the shape
        DecodeError: For any other malformed input

    Examples:
        ```python
        from shapepack import decode, Int8

        decode(b"\\xcc\\xff", int)           # 255
        decode(b"\\xcc\\xff", Int8)          # -1
        decode(b"\\xc0", list[int])          # []
        decode(b"\\x92\\x01\\x02", list[int])  # [1, 2]
        ```
    """
    resolved = resolve_shape(shape)
    return decode_shaped(_unpacker(source, config), resolved)


def decode_into(source: Source, record: R, *, config: Optional[CodecConfig] = None) -> R:
    """Decode a wire map onto an existing record instance.

    Every field is first reset to its default (``omitempty`` fields to
    their zero value), then overwritten from the wire. A failed decode may
    leave the record partially updated.

    Args:
        source: Bytes-like object, object with ``read(n)``, or WireUnpacker
        record: Record instance to fill
        config: Codec limits (defaults to DEFAULT_CONFIG)

    Returns:
        The same record instance

    Raises:
        DecodeError: If the input is malformed or a field value is rejected
    """
    schema = RecordSchema.from_model(type(record))
    values = _decode_record_values(_unpacker(source, config), schema)
    for name, value in values.items():
        try:
            setattr(record, name, value)
        except ValidationError as e:
            raise DecodeError(f"Failed to assign {type(record).__name__}.{name}: {e}") from e
    return record


def decode_dynamic(source: Source, *, config: Optional[CodecConfig] = None) -> Value:
    """Decode one wire value without a target shape.

    Returns:
        A Value whose variant mirrors the wire kind
    """
    return read_value(_unpacker(source, config))


# Per-shape helpers


def unpack_bool(source: Source, *, config: Optional[CodecConfig] = None) -> bool:
    """Decode a boolean (Nil decodes to False)."""
    return decode_shaped(_unpacker(source, config), BOOL)


def unpack_int(source: Source, bits: int = 64, *, config: Optional[CodecConfig] = None) -> int:
    """Decode any numeric wire value as a signed integer of ``bits`` width."""
    return decode_shaped(_unpacker(source, config), Shape(ShapeKind.INT, bits=bits))


def unpack_uint(source: Source, bits: int = 64, *, config: Optional[CodecConfig] = None) -> int:
    """Decode any numeric wire value as an unsigned integer of ``bits`` width."""
    return decode_shaped(_unpacker(source, config), Shape(ShapeKind.UINT, bits=bits))


def unpack_float(
    source: Source, bits: int = 64, *, config: Optional[CodecConfig] = None
) -> float:
    """Decode any numeric wire value as a float (rounded to float32 if bits=32)."""
    shape = FLOAT32 if bits == 32 else FLOAT64
    return decode_shaped(_unpacker(source, config), shape)


def unpack_string(source: Source, *, config: Optional[CodecConfig] = None) -> str:
    """Decode a string; binary values are decoded as UTF-8."""
    return decode_shaped(_unpacker(source, config), STRING)


def unpack_bytes(source: Source, *, config: Optional[CodecConfig] = None) -> bytes:
    """Decode a binary value or an array of byte-sized integers."""
    return decode_shaped(_unpacker(source, config), BYTES)


def unpack_array(
    source: Source,
    elem: Any = Any,
    *,
    length: Optional[int] = None,
    config: Optional[CodecConfig] = None,
) -> List[Any]:
    """Decode an array into a list.

    Args:
        source: Input
        elem: Element type annotation or Shape
        length: Fixed capacity; shorter arrays are zero-padded, longer ones
            raise BufferTooSmallError
        config: Codec limits
    """
    elem_shape = resolve_shape(elem)
    if length is None:
        shape = sequence_of(elem_shape)
    else:
        shape = fixed_array_of(elem_shape, length)
    return decode_shaped(_unpacker(source, config), shape)


def unpack_map(
    source: Source,
    key: Any = Any,
    value: Any = Any,
    *,
    config: Optional[CodecConfig] = None,
) -> Dict[Any, Any]:
    """Decode a map into a dict (later duplicate keys win)."""
    shape = mapping_of(resolve_shape(key), resolve_shape(value))
    return decode_shaped(_unpacker(source, config), shape)


def unpack_record(
    source: Source, record_type: Type[R], *, config: Optional[CodecConfig] = None
) -> R:
    """Decode a map into a new instance of ``record_type``."""
    return decode_shaped(_unpacker(source, config), resolve_shape(record_type))


def unpack_optional(
    source: Source, elem: Any, *, config: Optional[CodecConfig] = None
) -> Any:
    """Decode a value that may be Nil; Nil gives None."""
    shape = optional_of(resolve_shape(elem))
    return decode_shaped(_unpacker(source, config), shape)


# Shape dispatch


def decode_shaped(unpacker: WireUnpacker, shape: Shape) -> Any:
    """Decode one wire value according to a resolved shape."""
    return _DECODERS[shape.kind](unpacker, shape)


def _mismatch(tag: Tag, shape: Shape) -> TypeMismatchError:
    return TypeMismatchError(f"Wire {tag.wire_type.name} cannot be assigned to {shape.describe()}")


def _decode_bool(unpacker: WireUnpacker, shape: Shape) -> bool:
    tag = unpacker.read_tag()
    if tag.family is Family.NIL:
        return False
    if tag.family is Family.BOOL:
        return unpacker.read_scalar(tag)
    raise _mismatch(tag, shape)


def _decode_number(unpacker: WireUnpacker, shape: Shape) -> Union[int, float]:
    tag = unpacker.read_tag()
    if tag.family is Family.NIL:
        return zero_value(shape)
    if tag.family not in _NUMERIC_FAMILIES:
        raise _mismatch(tag, shape)
    return convert_number(unpacker.read_scalar(tag), shape)


def convert_number(raw: Union[int, float], shape: Shape) -> Union[int, float]:
    """Convert a decoded number to a numeric shape with cast semantics.

    Raises:
        TypeMismatchError: If a NaN or infinity targets an integer shape
    """
    if shape.kind is ShapeKind.FLOAT:
        number = float(raw)
        if shape.bits == 32:
            number = round_float32(number)
        return number

    if isinstance(raw, float):
        if not math.isfinite(raw):
            raise TypeMismatchError(f"Cannot convert {raw} to {shape.describe()}")
        raw = int(raw)

    mask = (1 << shape.bits) - 1
    number = raw & mask
    if shape.kind is ShapeKind.INT and number >> (shape.bits - 1):
        number -= 1 << shape.bits
    return number


def _decode_string(unpacker: WireUnpacker, shape: Shape) -> str:
    tag = unpacker.read_tag()
    if tag.family is Family.NIL:
        return ""
    if tag.family is Family.STR:
        return unpacker.read_str(tag.length)
    if tag.family is Family.BIN:
        return unpacker.decode_text(unpacker.read_bin(tag.length))
    raise _mismatch(tag, shape)


def _as_container(items: Any, python_type: type) -> Any:
    if python_type is list:
        return items if isinstance(items, list) else list(items)
    return python_type(items)


def _decode_items(unpacker: WireUnpacker, elem: Shape, count: int) -> List[Any]:
    with unpacker.nested():
        return [decode_shaped(unpacker, elem) for _ in range(count)]


def _decode_sequence(unpacker: WireUnpacker, shape: Shape) -> Any:
    tag = unpacker.read_tag()
    if tag.family is Family.NIL:
        return zero_value(shape)
    if tag.family is Family.BIN and shape.holds_bytes:
        return _as_container(unpacker.read_bin(tag.length), shape.python_type)
    if tag.family is Family.ARRAY:
        return _as_container(_decode_items(unpacker, shape.elem, tag.length), shape.python_type)
    raise _mismatch(tag, shape)


def _decode_fixed_array(unpacker: WireUnpacker, shape: Shape) -> Any:
    tag = unpacker.read_tag()
    if tag.family is Family.NIL:
        return zero_value(shape)

    capacity = shape.length
    if tag.family is Family.BIN and shape.holds_bytes:
        if tag.length > capacity:
            raise BufferTooSmallError(
                f"Binary of {tag.length} bytes does not fit {shape.describe()}"
            )
        data = unpacker.read_bin(tag.length).ljust(capacity, b"\x00")
        return _as_container(data, shape.python_type)

    if tag.family is Family.ARRAY:
        if tag.length > capacity:
            raise BufferTooSmallError(
                f"Array of {tag.length} elements does not fit {shape.describe()}"
            )
        items = _decode_items(unpacker, shape.elem, tag.length)
        items.extend(zero_value(shape.elem) for _ in range(capacity - tag.length))
        return _as_container(items, shape.python_type)

    raise _mismatch(tag, shape)


def _decode_mapping(unpacker: WireUnpacker, shape: Shape) -> Dict[Any, Any]:
    tag = unpacker.read_tag()
    if tag.family is Family.NIL:
        return {}
    if tag.family is not Family.MAP:
        raise _mismatch(tag, shape)

    result: Dict[Any, Any] = {}
    with unpacker.nested():
        for _ in range(tag.length):
            key = decode_shaped(unpacker, shape.key)
            value = decode_shaped(unpacker, shape.value)
            try:
                result[key] = value
            except TypeError as e:
                raise TypeMismatchError(f"Unhashable map key {key!r}: {e}") from e
    return result


def _decode_record(unpacker: WireUnpacker, shape: Shape) -> BaseModel:
    schema = RecordSchema.from_model(shape.python_type)
    return schema.build(_decode_record_values(unpacker, schema))


def _decode_record_values(unpacker: WireUnpacker, schema: RecordSchema) -> Dict[str, Any]:
    tag = unpacker.read_tag()
    if tag.family is Family.NIL:
        return schema.default_values()
    if tag.family is not Family.MAP:
        raise TypeMismatchError(
            f"Wire {tag.wire_type.name} cannot be assigned to record "
            f"{schema.model_class.__name__}"
        )

    values = schema.map_start_values()

    with unpacker.nested():
        for _ in range(tag.length):
            key = decode_shaped(unpacker, STRING)
            field = schema.by_wire_name.get(key)
            if field is None:
                read_value(unpacker)
                logger.debug(
                    "Skipped unknown key %r while decoding %s", key, schema.model_class.__name__
                )
            elif field.as_string:
                text = decode_shaped(unpacker, STRING)
                values[field.name] = parse_field_text(field, text)
            else:
                values[field.name] = decode_shaped(unpacker, field.shape)
    return values


def _decode_optional(unpacker: WireUnpacker, shape: Shape) -> Any:
    if unpacker.peek_head() == tags.NIL:
        unpacker.read_tag()
        return None
    return decode_shaped(unpacker, shape.elem)


def _decode_enum(unpacker: WireUnpacker, shape: Shape) -> Any:
    tag = unpacker.read_tag()
    if tag.family is Family.NIL:
        return zero_value(shape)
    raw = read_value_from(unpacker, tag).to_python()
    try:
        return shape.python_type(raw)
    except (ValueError, TypeError) as e:
        raise TypeMismatchError(f"{raw!r} is not a valid {shape.describe()}") from e


def _decode_value(unpacker: WireUnpacker, shape: Shape) -> Value:
    return read_value(unpacker)


def _decode_any(unpacker: WireUnpacker, shape: Shape) -> Any:
    return read_value(unpacker).to_python()


_DECODERS: Dict[ShapeKind, Callable[[WireUnpacker, Shape], Any]] = {
    ShapeKind.BOOL: _decode_bool,
    ShapeKind.INT: _decode_number,
    ShapeKind.UINT: _decode_number,
    ShapeKind.FLOAT: _decode_number,
    ShapeKind.STRING: _decode_string,
    ShapeKind.SEQUENCE: _decode_sequence,
    ShapeKind.FIXED_ARRAY: _decode_fixed_array,
    ShapeKind.MAPPING: _decode_mapping,
    ShapeKind.RECORD: _decode_record,
    ShapeKind.OPTIONAL: _decode_optional,
    ShapeKind.ENUM: _decode_enum,
    ShapeKind.VALUE: _decode_value,
    ShapeKind.ANY: _decode_any,
}
