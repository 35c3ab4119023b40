"""shapepack: Shape-directed MessagePack codec

A Python library that reads and writes MessagePack, bit-for-bit, directed by
ordinary type annotations. Pydantic models are encoded as maps keyed by their
field wire names, and every value is written in its most compact form.

Key Features:
- Encode any Python value by runtime type, or by an explicit annotation
- Decode into typed targets (records, sized numbers, fixed arrays, optionals)
  with cast-style numeric conversion and Nil as zero value
- Shape-agnostic decoding into a dynamic Value
- Per-field wire names, skipping, omitempty and string-encoded numbers
- Streaming over any object with read()/write()

Quick Start:
    >>> from shapepack import BaseRecord, WireField, encode, decode
    >>>
    >>> class Reading(BaseRecord):
    ...     sensor: str = WireField("s")
    ...     value: int = WireField("v,omitempty", default=0)
    ...     raw: bytes = WireField("-", default=b"")
    >>>
    >>> data = encode(Reading(sensor="t1", value=7))
    >>> data
    b'\\x82\\xa1s\\xa2t1\\xa1v\\x07'
    >>> decode(data, Reading)
    Reading(sensor='t1', value=7, raw=b'')
"""

from __future__ import annotations

from .codec import (
    FieldSchema,
    PeekableReader,
    RecordSchema,
    Shape,
    ShapeKind,
    Value,
    ValueKind,
    WirePacker,
    WireType,
    WireUnpacker,
    Family,
    decode,
    decode_dynamic,
    decode_into,
    encode,
    encode_to,
    pack_array_header,
    pack_bin,
    pack_bool,
    pack_float32,
    pack_float64,
    pack_int,
    pack_map_header,
    pack_nil,
    pack_string,
    pack_uint,
    resolve_shape,
    unpack_array,
    unpack_bool,
    unpack_bytes,
    unpack_float,
    unpack_int,
    unpack_map,
    unpack_optional,
    unpack_record,
    unpack_string,
    unpack_uint,
)
from .config import DEFAULT_CONFIG, CodecConfig
from .exceptions import (
    BufferTooSmallError,
    DecodeError,
    EncodeError,
    EndOfStreamError,
    FieldDecodeError,
    LimitExceededError,
    MalformedTagError,
    SchemaError,
    ShapepackError,
    TruncatedError,
    TypeMismatchError,
    UnsupportedShapeError,
    ValueTooLargeError,
)
from .models import (
    BaseRecord,
    Byte,
    FixedBytes,
    FixedLength,
    FixedList,
    Float32,
    Float64,
    FloatWidth,
    Int8,
    Int16,
    Int32,
    Int64,
    IntWidth,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
    WireField,
)
from .utils import encoded_size, field_sizes

__version__ = "0.1.0"

__all__ = [
    # Core API
    "encode",
    "encode_to",
    "decode",
    "decode_into",
    "decode_dynamic",
    # Primitive encoders
    "pack_nil",
    "pack_bool",
    "pack_int",
    "pack_uint",
    "pack_float32",
    "pack_float64",
    "pack_string",
    "pack_bin",
    "pack_array_header",
    "pack_map_header",
    # Per-shape decoders
    "unpack_bool",
    "unpack_int",
    "unpack_uint",
    "unpack_float",
    "unpack_string",
    "unpack_bytes",
    "unpack_array",
    "unpack_map",
    "unpack_record",
    "unpack_optional",
    # Dynamic values and shapes
    "Value",
    "ValueKind",
    "Shape",
    "ShapeKind",
    "resolve_shape",
    "FieldSchema",
    "RecordSchema",
    # Wire layer
    "PeekableReader",
    "WirePacker",
    "WireUnpacker",
    "WireType",
    "Family",
    # Records
    "BaseRecord",
    "WireField",
    "FixedBytes",
    "FixedList",
    "FixedLength",
    "IntWidth",
    "FloatWidth",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "Byte",
    "Float32",
    "Float64",
    # Configuration
    "CodecConfig",
    "DEFAULT_CONFIG",
    # Exceptions
    "ShapepackError",
    "SchemaError",
    "UnsupportedShapeError",
    "EncodeError",
    "ValueTooLargeError",
    "DecodeError",
    "TruncatedError",
    "EndOfStreamError",
    "MalformedTagError",
    "TypeMismatchError",
    "BufferTooSmallError",
    "FieldDecodeError",
    "LimitExceededError",
    # Sizing
    "encoded_size",
    "field_sizes",
    # Version
    "__version__",
]
