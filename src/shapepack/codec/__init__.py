"""MessagePack codec for shapepack.

This module provides shape-directed encoding and decoding, the dynamic value
model, and the wire primitives both are built on.
"""

from __future__ import annotations

from .decoder import (
    decode,
    decode_dynamic,
    decode_into,
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
from .encoder import (
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
)
from .peekable import PeekableReader
from .primitives import WirePacker, WireUnpacker
from .schema import FieldSchema, RecordSchema, parse_tag
from .shape import Shape, ShapeKind, resolve_shape
from .tags import Family, WireType, classify
from .value import Value, ValueKind

__all__ = [
    "encode",
    "encode_to",
    "decode",
    "decode_into",
    "decode_dynamic",
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
    "Value",
    "ValueKind",
    "Shape",
    "ShapeKind",
    "resolve_shape",
    "FieldSchema",
    "RecordSchema",
    "parse_tag",
    "PeekableReader",
    "WirePacker",
    "WireUnpacker",
    "WireType",
    "Family",
    "classify",
]
