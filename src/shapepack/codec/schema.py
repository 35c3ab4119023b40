"""Schema introspection for record models.

This module analyzes Pydantic models and extracts encoding-relevant
information for each field: its wire name, its resolved Shape and the
options carried by its wire tag.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, NamedTuple, Type

from pydantic import BaseModel, ValidationError
from pydantic.fields import FieldInfo

from ..exceptions import DecodeError, SchemaError
from ..models.fields import WIRE_TAG_KEY
from .shape import Shape, ShapeKind, resolve_shape
from .value import Value

logger = logging.getLogger(__name__)

SKIP_NAME = "-"
PLACEHOLDER_NAME = "_"


class TagSpec(NamedTuple):
    """Parsed form of a wire tag string."""

    wire_name: str
    skip: bool
    omit_empty: bool
    as_string: bool


def parse_tag(tag: str, field_name: str) -> TagSpec:
    """Parse a ``name,opt1,opt2`` wire tag.

    Args:
        tag: Raw tag string (may be empty)
        field_name: Field name used when the tag names no wire name

    Returns:
        TagSpec with the effective wire name and options

    Example:
        >>> parse_tag("ccc", "CCC")
        TagSpec(wire_name='ccc', skip=False, omit_empty=False, as_string=False)
        >>> parse_tag("-,omitempty", "FFF")
        TagSpec(wire_name='_', skip=False, omit_empty=True, as_string=False)
    """
    name, _, rest = tag.partition(",")
    name = name.strip()
    options = {opt.strip() for opt in rest.split(",")} if rest else set()

    skip = False
    if name == SKIP_NAME:
        if not rest.strip():
            skip = True
            wire_name = field_name
        else:
            wire_name = PLACEHOLDER_NAME
    elif name:
        wire_name = name
    else:
        wire_name = field_name

    return TagSpec(
        wire_name=wire_name,
        skip=skip,
        omit_empty="omitempty" in options,
        as_string="string" in options,
    )


@dataclass(frozen=True)
class FieldSchema:
    """Schema information for a single record field.

    Attributes:
        name: Python attribute name
        wire_name: Key written on the wire
        shape: Resolved shape of the field type
        skip: Field never appears on the wire
        omit_empty: Field is dropped from the output when zero
        as_string: Field value travels as its decimal text
        init_key: Keyword used to pass the field to the model constructor
        field_info: Pydantic FieldInfo (source of defaults)
    """

    name: str
    wire_name: str
    shape: Shape
    skip: bool
    omit_empty: bool
    as_string: bool
    init_key: str
    field_info: FieldInfo

    def default_value(self) -> Any:
        """The field's declared default, or the zero value of its shape."""
        if self.field_info.is_required():
            return zero_value(self.shape)
        return self.field_info.get_default(call_default_factory=True)


class RecordSchema:
    """Schema information for an entire record model.

    This class introspects a Pydantic model and extracts the wire layout of
    every field. Schemas are built once per model class.

    Example:
        >>> schema = RecordSchema.from_model(Sample)
        >>> [field.wire_name for field in schema.fields]
        ['AAA', 'BBB', 'ccc', 'DDD', '_']
    """

    def __init__(self, model_class: Type[BaseModel]) -> None:
        """Initialize schema from a Pydantic model.

        Args:
            model_class: Pydantic model class to introspect
        """
        self.model_class = model_class
        self.fields: List[FieldSchema] = []
        self._introspect()
        self.by_wire_name: Dict[str, FieldSchema] = {}
        for field in self.fields:
            if not field.skip:
                # Later duplicates shadow earlier ones
                self.by_wire_name[field.wire_name] = field

    @classmethod
    def from_model(cls, model_class: Type[BaseModel]) -> RecordSchema:
        """Return the (cached) schema of a Pydantic model.

        Args:
            model_class: Pydantic model class

        Returns:
            RecordSchema instance

        Raises:
            SchemaError: If a field type or tag cannot be handled
        """
        return _schema_for(model_class)

    def _introspect(self) -> None:
        for field_name, field_info in self.model_class.model_fields.items():
            self.fields.append(self._extract_field_schema(field_name, field_info))

    def _extract_field_schema(self, name: str, field_info: FieldInfo) -> FieldSchema:
        annotation = field_info.annotation
        if annotation is None:
            raise SchemaError(f"Field {name} has no type annotation")

        shape = resolve_shape(annotation, field_info.metadata)
        spec = parse_tag(_wire_tag(name, field_info), name)

        if isinstance(field_info.validation_alias, str):
            init_key = field_info.validation_alias
        else:
            init_key = field_info.alias or name

        return FieldSchema(
            name=name,
            wire_name=spec.wire_name,
            shape=shape,
            skip=spec.skip,
            omit_empty=spec.omit_empty,
            as_string=spec.as_string,
            init_key=init_key,
            field_info=field_info,
        )

    @property
    def wire_fields(self) -> List[FieldSchema]:
        """Fields that appear on the wire, in declaration order."""
        return [field for field in self.fields if not field.skip]

    def default_values(self) -> Dict[str, Any]:
        """Starting values for a decode: defaults, or zero values."""
        return {field.name: field.default_value() for field in self.fields}

    def map_start_values(self) -> Dict[str, Any]:
        """Starting values for a record read from a wire map.

        An ``omitempty`` field missing from the map was left out because it
        was zero, so it starts at its zero value rather than its default.
        """
        values = self.default_values()
        for field in self.wire_fields:
            if field.omit_empty:
                values[field.name] = zero_value(field.shape)
        return values

    def build(self, values: Dict[str, Any]) -> BaseModel:
        """Construct a model instance from field values keyed by field name.

        Raises:
            DecodeError: If the model rejects the values
        """
        by_name = {field.name: field for field in self.fields}
        kwargs = {by_name[name].init_key: value for name, value in values.items()}
        try:
            return self.model_class(**kwargs)
        except ValidationError as e:
            raise DecodeError(f"Failed to construct {self.model_class.__name__}: {e}") from e

    def zero_instance(self) -> BaseModel:
        """A model instance holding every field's default or zero value.

        The instance is built without validation: zero values need not
        satisfy field constraints such as ``ge=1``.
        """
        return self.model_class.model_construct(**self.default_values())


@functools.lru_cache(maxsize=None)
def _schema_for(model_class: Type[BaseModel]) -> RecordSchema:
    schema = RecordSchema(model_class)
    logger.debug(
        "Built record schema for %s: %s",
        model_class.__name__,
        ", ".join(f"{f.name}->{'(skip)' if f.skip else f.wire_name}" for f in schema.fields),
    )
    return schema


def _wire_tag(name: str, field_info: FieldInfo) -> str:
    extra = field_info.json_schema_extra
    if not isinstance(extra, dict):
        return ""
    tag = extra.get(WIRE_TAG_KEY, "")
    if not isinstance(tag, str):
        raise SchemaError(f"Field {name}: wire tag must be a string, got {tag!r}")
    return tag


def zero_value(shape: Shape) -> Any:
    """Return the zero value of a shape.

    Zero values are what a Nil on the wire decodes to, what a fixed-size
    array is padded with and what ``omitempty`` compares against.
    """
    kind = shape.kind
    if kind is ShapeKind.BOOL:
        return False
    if kind in (ShapeKind.INT, ShapeKind.UINT):
        return 0
    if kind is ShapeKind.FLOAT:
        return 0.0
    if kind is ShapeKind.STRING:
        return ""
    if kind is ShapeKind.SEQUENCE:
        return shape.python_type()
    if kind is ShapeKind.FIXED_ARRAY:
        if shape.holds_bytes and shape.python_type in (bytes, bytearray):
            return shape.python_type(shape.length)
        return shape.python_type(zero_value(shape.elem) for _ in range(shape.length))
    if kind is ShapeKind.MAPPING:
        return {}
    if kind is ShapeKind.RECORD:
        return RecordSchema.from_model(shape.python_type).zero_instance()
    if kind is ShapeKind.ENUM:
        return next(iter(shape.python_type))
    if kind is ShapeKind.VALUE:
        return Value.nil()
    # OPTIONAL and ANY
    return None


def is_zero(value: Any, shape: Shape) -> bool:
    """Whether ``value`` is the zero value of ``shape`` (for ``omitempty``)."""
    if value is None:
        return True

    kind = shape.kind
    if kind is ShapeKind.OPTIONAL:
        return False
    if kind is ShapeKind.ANY:
        return False
    if kind is ShapeKind.VALUE:
        return isinstance(value, Value) and value.is_nil
    if kind in (ShapeKind.SEQUENCE, ShapeKind.MAPPING):
        return len(value) == 0
    if kind is ShapeKind.FIXED_ARRAY:
        return all(is_zero(item, shape.elem) for item in value)
    if kind is ShapeKind.BOOL:
        return value is False
    return bool(value == zero_value(shape))

