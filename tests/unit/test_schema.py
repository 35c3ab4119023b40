"""Unit tests for record schema introspection."""

from __future__ import annotations

import enum
from typing import Annotated, List, Optional

import pytest
from pydantic import BaseModel, Field

from shapepack import (
    BaseRecord,
    FixedBytes,
    FixedLength,
    Int16,
    RecordSchema,
    SchemaError,
    ShapeKind,
    Value,
    WireField,
)
from shapepack.codec.schema import is_zero, parse_tag, zero_value
from shapepack.codec.shape import resolve_shape


class Mode(enum.Enum):
    """Test enum."""

    IDLE = "idle"
    BUSY = "busy"


class Tagged(BaseRecord):
    """Record exercising every tag form."""

    plain: int = 0
    renamed: str = WireField("r", default="")
    hidden: int = WireField("-", default=7)
    placeholder: int = WireField("-,omitempty", default=0)
    sparse: Optional[int] = WireField(",omitempty", default=None)
    text_number: Int16 = WireField("n,string", default=0)


class TestParseTag:
    """Test wire tag parsing."""

    def test_empty(self) -> None:
        """Test an empty tag keeps the field name."""
        assert parse_tag("", "Field") == ("Field", False, False, False)

    def test_rename(self) -> None:
        """Test a bare name renames the field."""
        assert parse_tag("ccc", "CCC").wire_name == "ccc"

    def test_skip(self) -> None:
        """Test a lone dash skips the field."""
        assert parse_tag("-", "DDD").skip

    def test_dash_with_options(self) -> None:
        """Test a dash followed by options means the literal name _."""
        spec = parse_tag("-,omitempty", "FFF")
        assert spec.wire_name == "_"
        assert not spec.skip
        assert spec.omit_empty

    def test_options_only(self) -> None:
        """Test options without a name."""
        spec = parse_tag(",string", "HHH")
        assert spec.wire_name == "HHH"
        assert spec.as_string
        assert not spec.omit_empty

    def test_options_trimmed_and_unknown_ignored(self) -> None:
        """Test whitespace around options and unknown options."""
        spec = parse_tag(" id , omitempty , bogus , string", "x")
        assert spec == ("id", False, True, True)


class TestRecordSchema:
    """Test schema extraction from models."""

    def test_fields(self) -> None:
        """Test wire names and options per field."""
        schema = RecordSchema.from_model(Tagged)
        by_name = {field.name: field for field in schema.fields}

        assert by_name["plain"].wire_name == "plain"
        assert by_name["renamed"].wire_name == "r"
        assert by_name["hidden"].skip
        assert by_name["placeholder"].wire_name == "_"
        assert by_name["placeholder"].omit_empty
        assert by_name["sparse"].shape.kind is ShapeKind.OPTIONAL
        assert by_name["text_number"].as_string
        assert by_name["text_number"].shape.bits == 16

    def test_by_wire_name_excludes_skipped(self) -> None:
        """Test skipped fields cannot be matched on decode."""
        schema = RecordSchema.from_model(Tagged)
        assert set(schema.by_wire_name) == {"plain", "r", "_", "sparse", "n"}

    def test_cached(self) -> None:
        """Test schemas are built once per class."""
        assert RecordSchema.from_model(Tagged) is RecordSchema.from_model(Tagged)

    def test_default_values(self) -> None:
        """Test declared defaults are used, zero values otherwise."""

        class Partial(BaseModel):
            name: str
            count: int = 3
            tags: List[str] = Field(default_factory=lambda: ["a"])

        assert RecordSchema.from_model(Partial).default_values() == {
            "name": "",
            "count": 3,
            "tags": ["a"],
        }

    def test_map_start_values(self) -> None:
        """Test omitempty fields start at zero when reading a map."""

        class Defaults(BaseRecord):
            count: int = WireField("c,omitempty", default=4)
            mode: Mode = WireField("m,omitempty", default=Mode.BUSY)
            keep: int = WireField("k", default=2)

        schema = RecordSchema.from_model(Defaults)
        assert schema.default_values() == {"count": 4, "mode": Mode.BUSY, "keep": 2}
        assert schema.map_start_values() == {"count": 0, "mode": Mode.IDLE, "keep": 2}

    def test_zero_instance_skips_validation(self) -> None:
        """Test zero instances exist even when zero violates a constraint."""

        class Bounded(BaseRecord):
            n: int = WireField(ge=1)

        zero = RecordSchema.from_model(Bounded).zero_instance()
        assert isinstance(zero, Bounded)
        assert zero.n == 0

    def test_fixed_bytes_field(self) -> None:
        """Test FixedBytes fields resolve as fixed arrays."""

        class Packet(BaseRecord):
            digest: bytes = FixedBytes(length=4, tag="d")

        field = RecordSchema.from_model(Packet).fields[0]
        assert field.wire_name == "d"
        assert field.shape.kind is ShapeKind.FIXED_ARRAY
        assert field.shape.length == 4

    def test_non_string_tag_rejected(self) -> None:
        """Test wire tags must be strings."""

        class Broken(BaseModel):
            value: int = Field(default=0, json_schema_extra={"wire_tag": 5})

        with pytest.raises(SchemaError, match="wire tag"):
            RecordSchema.from_model(Broken)


class TestZeroValues:
    """Test zero values and emptiness."""

    def test_zero_values(self) -> None:
        """Test zero value of each shape kind."""
        assert zero_value(resolve_shape(bool)) is False
        assert zero_value(resolve_shape(float)) == 0.0
        assert zero_value(resolve_shape(str)) == ""
        assert zero_value(resolve_shape(bytes)) == b""
        assert zero_value(resolve_shape(Annotated[bytes, FixedLength(3)])) == b"\x00\x00\x00"
        assert zero_value(resolve_shape(Annotated[List[int], FixedLength(2)])) == [0, 0]
        assert zero_value(resolve_shape(dict)) == {}
        assert zero_value(resolve_shape(Optional[int])) is None
        assert zero_value(resolve_shape(Mode)) is Mode.IDLE
        assert zero_value(resolve_shape(Value)) == Value.nil()

    def test_zero_record(self) -> None:
        """Test a record's zero value holds its defaults."""
        zero = zero_value(resolve_shape(Tagged))
        assert isinstance(zero, Tagged)
        assert zero.hidden == 7

    def test_is_zero(self) -> None:
        """Test emptiness checks used by omitempty."""
        assert is_zero(0, resolve_shape(int))
        assert not is_zero(1, resolve_shape(int))
        assert is_zero(False, resolve_shape(bool))
        assert is_zero("", resolve_shape(str))
        assert is_zero([], resolve_shape(List[int]))
        assert not is_zero([0], resolve_shape(List[int]))
        assert is_zero(None, resolve_shape(Optional[int]))
        assert not is_zero(0, resolve_shape(Optional[int]))
        assert is_zero(b"\x00\x00", resolve_shape(Annotated[bytes, FixedLength(2)]))
        assert is_zero(Tagged(), resolve_shape(Tagged))
        assert not is_zero(Tagged(plain=1), resolve_shape(Tagged))
