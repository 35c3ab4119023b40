"""Unit tests for encoding."""

from __future__ import annotations

import enum
import io
from typing import Annotated, Any, Dict, List, Optional

import pytest

from shapepack import (
    BaseRecord,
    CodecConfig,
    EncodeError,
    FixedLength,
    Float32,
    Int8,
    UInt8,
    UInt16,
    UnsupportedShapeError,
    Value,
    ValueTooLargeError,
    WireField,
    decode,
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


class Priority(enum.Enum):
    """Test enum."""

    LOW = 1
    HIGH = 2


class Label(enum.Enum):
    """Test enum with string values."""

    ON = "on"


class Inner(BaseRecord):
    """Nested record."""

    v: int = 0


class Outer(BaseRecord):
    """Record containing records, optionals and containers."""

    inner: Inner = WireField("i", default_factory=Inner)
    maybe: Optional[Inner] = WireField("m", default=None)
    values: List[UInt16] = WireField("vs", default_factory=list)


class Counted(BaseRecord):
    """Record with a required field that rejects its zero value."""

    n: int = WireField(ge=1)


class Holder(BaseRecord):
    """Record holding a constrained record under omitempty."""

    r: Counted = WireField("r,omitempty", default_factory=lambda: Counted(n=5))


class TestDynamicEncode:
    """Test encoding by runtime type."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, "c0"),
            (True, "c3"),
            (False, "c2"),
            (0, "00"),
            (255, "ccff"),
            (-33, "d0df"),
            ((1 << 64) - 1, "cfffffffffffffffff"),
            (3.14, "cb40091eb851eb851f"),
            ("", "a0"),
            (b"\x01\x02", "c4020102"),
            (bytearray(b"\x01"), "c40101"),
            ([], "90"),
            ({}, "80"),
        ],
    )
    def test_scalars(self, value: Any, expected: str) -> None:
        """Test scalar and empty container encodings."""
        assert encode(value) == bytes.fromhex(expected)

    def test_string_list(self) -> None:
        """Test a list of strings."""
        assert encode(["aaa", "bbb", "ccc"]) == bytes.fromhex("93a3616161a3626262a3636363")

    def test_map(self) -> None:
        """Test a single-entry map."""
        assert encode({"aaa": 1}) == bytes.fromhex("81a361616101")

    def test_tuple_as_array(self) -> None:
        """Test tuples encode as arrays."""
        assert encode((1, "a")) == b"\x92\x01\xa1a"

    def test_enum(self) -> None:
        """Test enums encode their member value."""
        assert encode(Priority.HIGH) == b"\x02"
        assert encode(Label.ON) == b"\xa2on"

    def test_value(self) -> None:
        """Test dynamic Values encode one to one."""
        value = Value.sequence([Value.unsigned(5), Value.integer(5), Value.floating(1.0)])
        assert encode(value) == bytes.fromhex("93cc0505cb3ff0000000000000")

    def test_integer_too_large(self) -> None:
        """Test ints beyond 64 bits are rejected."""
        with pytest.raises(ValueTooLargeError):
            encode(1 << 64)
        with pytest.raises(ValueTooLargeError):
            encode(-(1 << 63) - 1)

    def test_unsupported(self) -> None:
        """Test values without a wire form."""
        with pytest.raises(UnsupportedShapeError):
            encode({1, 2})
        with pytest.raises(UnsupportedShapeError):
            encode(object())

    def test_self_reference(self) -> None:
        """Test self-referencing containers hit the depth limit."""
        loop: List[Any] = []
        loop.append(loop)
        with pytest.raises(EncodeError, match="depth"):
            encode(loop, config=CodecConfig(max_depth=8))


class TestShapedEncode:
    """Test encoding directed by a shape."""

    def test_none_is_nil_for_any_shape(self) -> None:
        """Test None encodes as Nil regardless of shape."""
        assert encode(None, int) == b"\xc0"
        assert encode(None, List[int]) == b"\xc0"

    def test_sized_ints(self) -> None:
        """Test sized signed and unsigned shapes."""
        assert encode(-1, Int8) == b"\xff"
        assert encode(5, UInt8) == b"\xcc\x05"
        assert encode(0x1FF, UInt16) == b"\xcd\x01\xff"

    def test_width_bounds(self) -> None:
        """Test values outside the declared width."""
        with pytest.raises(EncodeError, match="out of bounds"):
            encode(128, Int8)
        with pytest.raises(EncodeError, match="out of bounds"):
            encode(-1, UInt8)

    def test_type_checks(self) -> None:
        """Test values of the wrong type for a shape."""
        with pytest.raises(EncodeError):
            encode("1", int)
        with pytest.raises(EncodeError):
            encode(True, int)
        with pytest.raises(EncodeError):
            encode(1, bool)
        with pytest.raises(EncodeError):
            encode(5, str)

    def test_floats(self) -> None:
        """Test float shapes pick their width."""
        assert encode(3.14, Float32) == bytes.fromhex("ca4048f5c3")
        assert encode(1, float) == bytes.fromhex("cb3ff0000000000000")

    def test_byte_list_as_bin(self) -> None:
        """Test a list of byte-sized elements is written as Bin."""
        assert encode([1, 2, 3], List[UInt8]) == b"\xc4\x03\x01\x02\x03"

    def test_bytes_32(self) -> None:
        """Test a 32 byte buffer uses Bin8."""
        data = encode(b"\xab" * 32, bytes)
        assert data[:2] == b"\xc4\x20"
        assert len(data) == 34

    def test_fixed_bytes_padded(self) -> None:
        """Test fixed byte arrays are padded to capacity."""
        shape = Annotated[bytes, FixedLength(4)]
        assert encode(b"\x01", shape) == b"\xc4\x04\x01\x00\x00\x00"

    def test_fixed_array_padded(self) -> None:
        """Test fixed arrays are padded with element zero values."""
        shape = Annotated[List[str], FixedLength(3)]
        assert encode(["a"], shape) == b"\x93\xa1a\xa0\xa0"

    def test_fixed_array_overflow(self) -> None:
        """Test more elements than capacity is rejected."""
        with pytest.raises(EncodeError, match="capacity"):
            encode([1, 2, 3], Annotated[List[int], FixedLength(2)])

    def test_mapping_shape(self) -> None:
        """Test typed mappings apply key and value shapes."""
        assert encode({"a": 1}, Dict[str, UInt8]) == b"\x81\xa1a\xcc\x01"

    def test_optional_shape(self) -> None:
        """Test optionals encode their pointee."""
        assert encode(5, Optional[UInt8]) == b"\xcc\x05"

    def test_enum_shape_requires_member(self) -> None:
        """Test enum shapes reject raw values."""
        assert encode(Priority.LOW, Priority) == b"\x01"
        with pytest.raises(EncodeError):
            encode(1, Priority)

    def test_any_shape(self) -> None:
        """Test Any falls back to runtime type."""
        assert encode([1, "x"], List[Any]) == b"\x92\x01\xa1x"


class TestRecordEncode:
    """Test record encoding."""

    def test_nested_records(self) -> None:
        """Test nested records, optionals and typed lists."""
        record = Outer(inner=Inner(v=1), values=[1, 300])
        expected = bytes.fromhex("83a16981a17601a16dc0a2767392cc01cd012c")
        assert encode(record) == expected

    def test_record_shape_mismatch(self) -> None:
        """Test a record shape rejects other records."""
        with pytest.raises(EncodeError):
            encode(Inner(), Outer)

    def test_omitempty_record_with_constraints(self) -> None:
        """Test emptiness of a record whose zero value fails validation."""
        assert encode(Holder()) == b"\x81\xa1r\x81\xa1n\x05"

    def test_fixed_array_of_constrained_records(self) -> None:
        """Test padding with records whose zero value fails validation."""
        shape = Annotated[List[Counted], FixedLength(2)]
        data = encode([Counted(n=1)], shape)
        assert data == b"\x92\x81\xa1n\x01\x81\xa1n\x00"

        padded = decode(b"\x91\x81\xa1n\x01", shape)
        assert padded[0] == Counted(n=1)
        assert padded[1].n == 0


class TestEncodeTo:
    """Test streaming output and primitive helpers."""

    def test_encode_to_sink(self, sink: io.BytesIO) -> None:
        """Test encode_to writes to the given sink."""
        encode_to(sink, 1)
        encode_to(sink, "a")
        assert sink.getvalue() == b"\x01\xa1a"

    def test_partial_output_on_failure(self, sink: io.BytesIO) -> None:
        """Test bytes written before a failure stay written."""
        with pytest.raises(UnsupportedShapeError):
            encode_to(sink, [1, object()])
        assert sink.getvalue() == b"\x92\x01"

    def test_pack_helpers(self, sink: io.BytesIO) -> None:
        """Test per-primitive helpers."""
        pack_nil(sink)
        pack_bool(sink, True)
        pack_int(sink, -1)
        pack_uint(sink, 0x1FF)
        pack_float32(sink, 3.14)
        pack_float64(sink, 3.14)
        pack_string(sink, "a")
        pack_bin(sink, b"\x00")
        pack_array_header(sink, 2)
        pack_map_header(sink, 1)
        assert sink.getvalue() == bytes.fromhex(
            "c0c3ffcd01ffca4048f5c3cb40091eb851eb851fa161c40100" "9281"
        )
