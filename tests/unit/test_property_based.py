"""Property-based tests using hypothesis."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from hypothesis import given
from hypothesis import strategies as st

from shapepack import (
    BaseRecord,
    Int8,
    Int16,
    UInt16,
    WireField,
    decode,
    decode_dynamic,
    encode,
    encoded_size,
)

INT64 = st.integers(min_value=-(1 << 63), max_value=(1 << 63) - 1)

scalars = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(min_value=-(1 << 63), max_value=(1 << 64) - 1),
    st.floats(allow_nan=False),
    st.text(max_size=40),
    st.binary(max_size=40),
)

documents = st.recursive(
    scalars,
    lambda children: st.one_of(
        st.lists(children, max_size=5),
        st.dictionaries(st.text(max_size=8), children, max_size=5),
    ),
    max_leaves=20,
)


class Limits(BaseRecord):
    """Nested record whose zero value fails validation."""

    low: int = WireField("lo", ge=1)
    high: int = WireField("hi,omitempty", default=100)


class Tuned(BaseRecord):
    """Record whose omitempty fields default to non-zero values."""

    gain: int = WireField("g,omitempty", default=5)
    label: str = WireField("l,omitempty", default="auto")
    enabled: bool = WireField("e,omitempty", default=True)
    ratio: float = WireField("r,omitempty", default=0.5)
    limits: Limits = WireField("lim,omitempty", default_factory=lambda: Limits(low=1))


class Reading(BaseRecord):
    """Record for property testing."""

    sensor: str = WireField("s", default="")
    value: Int16 = WireField("v", default=0)
    flags: List[bool] = WireField("f,omitempty", default_factory=list)
    note: Optional[str] = WireField("n", default=None)
    port: UInt16 = WireField("p,string", default=0)


def expected_int_width(value: int) -> int:
    """Encoded length of a signed integer under the minimal-width rules."""
    if -32 <= value <= 0x7F:
        return 1
    if value > 0:
        if value <= 0xFF:
            return 2
        if value <= 0xFFFF:
            return 3
        if value <= 0xFFFFFFFF:
            return 5
        return 9
    if value >= -0x80:
        return 2
    if value >= -0x8000:
        return 3
    if value >= -0x80000000:
        return 5
    return 9


class TestCodecProperties:
    """Property-based tests for the codec."""

    @given(document=documents)
    def test_dynamic_roundtrip(self, document: Any) -> None:
        """Test encode/decode is invertible for native data."""
        assert decode(encode(document), Any) == document

    @given(document=documents)
    def test_value_reencodes_identically(self, document: Any) -> None:
        """Test Values preserve the exact wire form."""
        data = encode(document)
        assert encode(decode_dynamic(data)) == data

    @given(value=INT64)
    def test_minimal_int_width(self, value: int) -> None:
        """Test integers use the narrowest tag."""
        assert len(encode(value)) == expected_int_width(value)
        assert encoded_size(value) == expected_int_width(value)

    @given(value=INT64)
    def test_int8_wraps(self, value: int) -> None:
        """Test narrowing to int8 behaves like a two's complement cast."""
        assert decode(encode(value), Int8) == ((value + 128) % 256) - 128

    @given(text=st.text())
    def test_string_header(self, text: str) -> None:
        """Test string headers follow the UTF-8 byte length."""
        size = len(text.encode("utf-8"))
        data = encode(text)
        if size <= 31:
            assert data[0] == 0xA0 | size
        elif size <= 0xFF:
            assert data[:2] == bytes((0xD9, size))
        assert decode(data, str) == text

    @given(
        sensor=st.text(max_size=20),
        value=st.integers(min_value=-(1 << 15), max_value=(1 << 15) - 1),
        flags=st.lists(st.booleans(), max_size=4),
        note=st.one_of(st.none(), st.text(max_size=10)),
        port=st.integers(min_value=0, max_value=0xFFFF),
    )
    def test_record_roundtrip(
        self, sensor: str, value: int, flags: List[bool], note: Optional[str], port: int
    ) -> None:
        """Test records survive a round trip."""
        record = Reading(sensor=sensor, value=value, flags=flags, note=note, port=port)
        assert decode(encode(record), Reading) == record

    @given(mapping=st.dictionaries(st.text(max_size=5), st.integers(0, 255), max_size=20))
    def test_typed_mapping_roundtrip(self, mapping: Dict[str, int]) -> None:
        """Test typed maps survive a round trip."""
        assert decode(encode(mapping), Dict[str, int]) == mapping

    @given(
        gain=INT64,
        label=st.text(max_size=8),
        enabled=st.booleans(),
        ratio=st.floats(allow_nan=False),
        low=st.integers(min_value=1, max_value=1000),
        high=st.integers(min_value=0, max_value=1000),
    )
    def test_omitempty_with_nonzero_defaults(
        self, gain: int, label: str, enabled: bool, ratio: float, low: int, high: int
    ) -> None:
        """Test zero values left out by omitempty come back as zero."""
        record = Tuned(
            gain=gain,
            label=label,
            enabled=enabled,
            ratio=ratio,
            limits=Limits(low=low, high=high),
        )
        assert decode(encode(record), Tuned) == record
