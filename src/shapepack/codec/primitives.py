"""Byte-level packing and unpacking of wire primitives.

This module provides the low-level writers and readers every higher layer is
built from. All multi-byte quantities are big-endian. Writers emit directly
to the sink; readers consume exactly the bytes of the value they return.
"""

from __future__ import annotations

import io
import math
import struct
from contextlib import contextmanager
from typing import Iterator, NamedTuple, Protocol, Union

from ..config import DEFAULT_CONFIG, CodecConfig
from ..exceptions import (
    DecodeError,
    EncodeError,
    EndOfStreamError,
    LimitExceededError,
    TruncatedError,
    ValueTooLargeError,
)
from . import tags
from .peekable import ByteSource, PeekableReader
from .tags import Family, WireType, classify, fix_length

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1
UINT64_MAX = (1 << 64) - 1
UINT32_MAX = 0xFFFFFFFF

# Bodies are pulled in bounded chunks so a forged length never forces a
# single huge allocation.
_CHUNK_SIZE = 64 * 1024

_U8 = struct.Struct(">B")
_U16 = struct.Struct(">H")
_U32 = struct.Struct(">I")
_U64 = struct.Struct(">Q")
_I8 = struct.Struct(">b")
_I16 = struct.Struct(">h")
_I32 = struct.Struct(">i")
_I64 = struct.Struct(">q")
_F32 = struct.Struct(">f")
_F64 = struct.Struct(">d")

_SCALAR_FORMATS: dict[WireType, struct.Struct] = {
    WireType.INT8: _I8,
    WireType.INT16: _I16,
    WireType.INT32: _I32,
    WireType.INT64: _I64,
    WireType.UINT8: _U8,
    WireType.UINT16: _U16,
    WireType.UINT32: _U32,
    WireType.UINT64: _U64,
    WireType.FLOAT32: _F32,
    WireType.FLOAT64: _F64,
}

_LENGTH_FORMATS: dict[int, struct.Struct] = {1: _U8, 2: _U16, 4: _U32}


def round_float32(value: float) -> float:
    """Round a float to the nearest single-precision value.

    Finite values beyond the float32 range saturate to a signed infinity.
    """
    try:
        return _F32.unpack(_F32.pack(value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


Scalar = Union[None, bool, int, float]


class ByteSink(Protocol):
    """Anything with a ``write(bytes)`` method."""

    def write(self, data: bytes, /) -> object: ...


class Tag(NamedTuple):
    """A decoded head: its wire type, the raw byte and any length."""

    wire_type: WireType
    head: int
    length: int = 0

    @property
    def family(self) -> Family:
        return self.wire_type.family


class WirePacker:
    """Writes wire primitives to a byte sink.

    Every method writes one complete primitive (tag plus payload) and picks
    the smallest tag able to represent it.

    Example:
        >>> sink = io.BytesIO()
        >>> packer = WirePacker(sink)
        >>> packer.write_int(-33)
        >>> packer.write_string("hi")
        >>> sink.getvalue()
        b'\\xd0\\xdf\\xa2hi'
    """

    def __init__(self, sink: ByteSink, config: CodecConfig | None = None) -> None:
        """Initialize a packer over the given sink.

        Args:
            sink: Object with a ``write(bytes)`` method
            config: Codec limits (defaults to DEFAULT_CONFIG)
        """
        self._sink = sink
        self.config = config or DEFAULT_CONFIG
        self._depth = 0

    @contextmanager
    def nested(self) -> Iterator[None]:
        """Track one level of container nesting.

        Raises:
            EncodeError: If nesting exceeds ``config.max_depth``
        """
        if self._depth >= self.config.max_depth:
            raise EncodeError(
                f"Maximum nesting depth {self.config.max_depth} exceeded "
                f"(self-referencing container?)"
            )
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1

    def write_raw(self, data: bytes) -> None:
        """Write bytes to the sink unchanged."""
        if data:
            self._sink.write(data)

    def write_nil(self) -> None:
        """Write the nil tag."""
        self._sink.write(b"\xc0")

    def write_bool(self, value: bool) -> None:
        """Write a boolean tag (0xc3 for True, 0xc2 for False)."""
        self._sink.write(b"\xc3" if value else b"\xc2")

    def write_int(self, value: int) -> None:
        """Write a signed integer using the minimal-width tag.

        Non-negative values that fit an unsigned form but not the matching
        signed one (e.g. 128-255) use the unsigned tag.

        Args:
            value: Integer in the int64 range

        Raises:
            ValueTooLargeError: If value is outside the int64 range
        """
        if value < INT64_MIN or value > INT64_MAX:
            raise ValueTooLargeError(f"Integer {value} does not fit in 64 bits")

        if value >= 0:
            if value <= tags.FIXINT_MAX:
                data = _U8.pack(value)
            elif value <= 0xFF:
                data = bytes((tags.UINT8, value))
            elif value <= 0x7FFF:
                data = bytes((tags.INT16,)) + _I16.pack(value)
            elif value <= 0xFFFF:
                data = bytes((tags.UINT16,)) + _U16.pack(value)
            elif value <= 0x7FFFFFFF:
                data = bytes((tags.INT32,)) + _I32.pack(value)
            elif value <= UINT32_MAX:
                data = bytes((tags.UINT32,)) + _U32.pack(value)
            else:
                data = bytes((tags.INT64,)) + _I64.pack(value)
        else:
            if value >= tags.NEGATIVE_FIXINT_MIN:
                data = _I8.pack(value)
            elif value >= -0x80:
                data = bytes((tags.INT8,)) + _I8.pack(value)
            elif value >= -0x8000:
                data = bytes((tags.INT16,)) + _I16.pack(value)
            elif value >= -0x80000000:
                data = bytes((tags.INT32,)) + _I32.pack(value)
            else:
                data = bytes((tags.INT64,)) + _I64.pack(value)

        self._sink.write(data)

    def write_uint(self, value: int) -> None:
        """Write an unsigned integer using the smallest UInt8/16/32/64 tag.

        Raises:
            EncodeError: If value is negative
            ValueTooLargeError: If value exceeds 2**64 - 1
        """
        if value < 0:
            raise EncodeError(f"write_uint requires non-negative value, got {value}")
        if value > UINT64_MAX:
            raise ValueTooLargeError(f"Unsigned integer {value} does not fit in 64 bits")

        if value <= 0xFF:
            data = bytes((tags.UINT8, value))
        elif value <= 0xFFFF:
            data = bytes((tags.UINT16,)) + _U16.pack(value)
        elif value <= UINT32_MAX:
            data = bytes((tags.UINT32,)) + _U32.pack(value)
        else:
            data = bytes((tags.UINT64,)) + _U64.pack(value)

        self._sink.write(data)

    def write_float32(self, value: float) -> None:
        """Write an IEEE 754 single-precision float.

        Raises:
            EncodeError: If value is finite but outside the float32 range
        """
        try:
            payload = _F32.pack(value)
        except OverflowError as err:
            raise EncodeError(f"Float {value} is out of float32 range") from err
        self._sink.write(bytes((tags.FLOAT32,)) + payload)

    def write_float64(self, value: float) -> None:
        """Write an IEEE 754 double-precision float."""
        self._sink.write(bytes((tags.FLOAT64,)) + _F64.pack(value))

    def write_string(self, value: str) -> None:
        """Write a UTF-8 string using FixStr/Str8/Str16/Str32 by byte length.

        Raises:
            ValueTooLargeError: If the encoded string exceeds 2**32 - 1 bytes
        """
        try:
            encoded = value.encode("utf-8", self._string_errors())
        except UnicodeEncodeError as err:
            raise EncodeError(f"String is not encodable as UTF-8: {err}") from err
        size = len(encoded)
        if size <= tags.FIXSTR_MAX:
            header = bytes((tags.FIXSTR_PREFIX | size,))
        elif size <= 0xFF:
            header = bytes((tags.STR8, size))
        elif size <= 0xFFFF:
            header = bytes((tags.STR16,)) + _U16.pack(size)
        elif size <= UINT32_MAX:
            header = bytes((tags.STR32,)) + _U32.pack(size)
        else:
            raise ValueTooLargeError(f"String of {size} bytes is too long to encode")
        self._sink.write(header + encoded)

    def write_bin(self, value: bytes) -> None:
        """Write a binary blob using Bin8/Bin16/Bin32 by length.

        Raises:
            ValueTooLargeError: If the blob exceeds 2**32 - 1 bytes
        """
        size = len(value)
        if size <= 0xFF:
            header = bytes((tags.BIN8, size))
        elif size <= 0xFFFF:
            header = bytes((tags.BIN16,)) + _U16.pack(size)
        elif size <= UINT32_MAX:
            header = bytes((tags.BIN32,)) + _U32.pack(size)
        else:
            raise ValueTooLargeError(f"Binary of {size} bytes is too long to encode")
        self._sink.write(header)
        self.write_raw(bytes(value))

    def write_array_header(self, count: int) -> None:
        """Write a FixArray/Array16/Array32 header for ``count`` elements.

        Raises:
            ValueTooLargeError: If count exceeds 2**32 - 1
        """
        self._sink.write(
            _container_header(count, tags.FIXARRAY_PREFIX, tags.ARRAY16, tags.ARRAY32, "Array")
        )

    def write_map_header(self, count: int) -> None:
        """Write a FixMap/Map16/Map32 header for ``count`` pairs.

        Raises:
            ValueTooLargeError: If count exceeds 2**32 - 1
        """
        self._sink.write(
            _container_header(count, tags.FIXMAP_PREFIX, tags.MAP16, tags.MAP32, "Map")
        )

    def _string_errors(self) -> str:
        # Surrogates produced by a surrogateescape decode must survive a
        # re-encode; every other handler encodes strictly.
        if self.config.unicode_errors == "surrogateescape":
            return "surrogateescape"
        return "strict"


def _container_header(count: int, fix_prefix: int, tag16: int, tag32: int, what: str) -> bytes:
    if count <= tags.FIXCONTAINER_MAX:
        return bytes((fix_prefix | count,))
    if count <= 0xFFFF:
        return bytes((tag16,)) + _U16.pack(count)
    if count <= UINT32_MAX:
        return bytes((tag32,)) + _U32.pack(count)
    raise ValueTooLargeError(f"{what} with {count} entries is too large to encode")


class WireUnpacker:
    """Reads wire primitives from a byte source.

    The source is wrapped in a PeekableReader so optional values can look at
    the next head byte without consuming it. Bytes-like inputs are read from
    an in-memory stream.

    Example:
        >>> unpacker = WireUnpacker(b"\\xcc\\x80")
        >>> tag = unpacker.read_tag()
        >>> unpacker.read_scalar(tag)
        128
    """

    def __init__(
        self,
        source: ByteSource | bytes | bytearray | memoryview,
        config: CodecConfig | None = None,
    ) -> None:
        """Initialize an unpacker over the given source.

        Args:
            source: Object with a ``read(n)`` method, or a bytes-like object
            config: Codec limits (defaults to DEFAULT_CONFIG)
        """
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = io.BytesIO(bytes(source))
        self._reader = PeekableReader.wrap(source)
        self.config = config or DEFAULT_CONFIG
        self._depth = 0

    @property
    def reader(self) -> PeekableReader:
        """The lookahead reader wrapping the source."""
        return self._reader

    @contextmanager
    def nested(self) -> Iterator[None]:
        """Track one level of container nesting.

        Raises:
            LimitExceededError: If nesting exceeds ``config.max_depth``
        """
        if self._depth >= self.config.max_depth:
            raise LimitExceededError(f"Maximum nesting depth {self.config.max_depth} exceeded")
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1

    def _end_of_input(self) -> DecodeError:
        if self._depth == 0:
            return EndOfStreamError("Source exhausted before the start of a value")
        return TruncatedError("Source ended before a nested value")

    def peek_head(self) -> int:
        """Return the next head byte without consuming it.

        Raises:
            EndOfStreamError: If input ends at a top-level value boundary
            TruncatedError: If input ends inside a value
        """
        try:
            return self._reader.peek()
        except EOFError:
            raise self._end_of_input() from None

    def read_exact(self, size: int) -> bytes:
        """Read exactly ``size`` bytes.

        Raises:
            TruncatedError: If fewer bytes are available
        """
        if size == 0:
            return b""

        chunks: list[bytes] = []
        remaining = size
        while remaining > 0:
            chunk = self._reader.read(min(remaining, _CHUNK_SIZE))
            if not chunk:
                raise TruncatedError(
                    f"Truncated data: expected {size} bytes, got {size - remaining}"
                )
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def read_tag(self) -> Tag:
        """Read a head byte and, for sized types, its length.

        Returns:
            The decoded Tag; ``length`` is set for str/bin/array/map

        Raises:
            EndOfStreamError: If input ends before a top-level value
            TruncatedError: If input ends inside a value
            MalformedTagError: If the head byte is not a known tag
            LimitExceededError: If the length exceeds the configured maximum
        """
        data = self._reader.read(1)
        if not data:
            raise self._end_of_input()
        head = data[0]
        wire_type = classify(head)
        if not wire_type.has_length:
            return Tag(wire_type, head)

        if wire_type.length_bytes == 0:
            length = fix_length(wire_type, head)
        else:
            fmt = _LENGTH_FORMATS[wire_type.length_bytes]
            (length,) = fmt.unpack(self.read_exact(fmt.size))

        self._check_length(wire_type, length)
        return Tag(wire_type, head, length)

    def _check_length(self, wire_type: WireType, length: int) -> None:
        if wire_type.family in (Family.ARRAY, Family.MAP):
            limit = self.config.max_container_length
        else:
            limit = self.config.max_bytes_length
        if length > limit:
            raise LimitExceededError(
                f"{wire_type.name} length {length} exceeds configured maximum {limit}"
            )

    def read_scalar(self, tag: Tag) -> Scalar:
        """Read the payload of a nil, bool, integer or float tag.

        Args:
            tag: Tag previously returned by read_tag()

        Returns:
            None, a bool, an int or a float

        Raises:
            DecodeError: If the tag is not a scalar type
            TruncatedError: If the payload is incomplete
        """
        wire_type = tag.wire_type
        if wire_type is WireType.NIL:
            return None
        if wire_type is WireType.FALSE:
            return False
        if wire_type is WireType.TRUE:
            return True
        if wire_type is WireType.POSITIVE_FIXINT:
            return tag.head
        if wire_type is WireType.NEGATIVE_FIXINT:
            return tag.head - 0x100

        fmt = _SCALAR_FORMATS.get(wire_type)
        if fmt is None:
            raise DecodeError(f"{wire_type.name} is not a scalar wire type")
        (value,) = fmt.unpack(self.read_exact(fmt.size))
        return value

    def read_str(self, size: int) -> str:
        """Read a string body of ``size`` bytes and decode it as UTF-8.

        Raises:
            TruncatedError: If fewer bytes are available
            DecodeError: If the bytes are not valid UTF-8 under the
                configured error handler
        """
        return self.decode_text(self.read_exact(size))

    def read_bin(self, size: int) -> bytes:
        """Read a binary body of ``size`` bytes."""
        return self.read_exact(size)

    def decode_text(self, data: bytes) -> str:
        """Decode raw bytes as UTF-8 using the configured error handler."""
        try:
            return data.decode("utf-8", self.config.unicode_errors)
        except UnicodeDecodeError as err:
            raise DecodeError(f"Invalid UTF-8 text: {err}") from err
