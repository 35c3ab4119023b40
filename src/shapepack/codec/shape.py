"""Shape resolution from Python type annotations.

A Shape is the codec's view of a target type: which kind of value it holds,
how wide its numbers are, and the shapes of its elements. Shapes are
resolved once per annotation and cached.

Supported annotations:
    - bool, int, float, str, bytes, bytearray
    - Annotated[int, IntWidth(...)] and the sized aliases (Int8, UInt32, ...)
    - Annotated[float, FloatWidth(32)] (Float32)
    - list[T], tuple[T, ...], Sequence[T], dict[K, V], Mapping[K, V]
    - Optional[T] / T | None
    - Annotated[seq, FixedLength(n)] or a min_length == max_length constraint
    - Enum subclasses, pydantic BaseModel subclasses (records)
    - Value (dynamic value) and Any / object (native dynamic data)
"""

from __future__ import annotations

import collections.abc
import enum
import functools
import types
from dataclasses import dataclass, replace
from typing import Annotated, Any, Iterable, Optional, Union, get_args, get_origin

from pydantic import BaseModel
from pydantic.fields import FieldInfo

from ..exceptions import SchemaError, UnsupportedShapeError
from ..models.fields import FixedLength, FloatWidth, IntWidth
from .value import Value


class ShapeKind(enum.Enum):
    """The closed set of shapes a target may have."""

    BOOL = "bool"
    INT = "int"
    UINT = "uint"
    FLOAT = "float"
    STRING = "string"
    SEQUENCE = "sequence"
    FIXED_ARRAY = "fixed_array"
    MAPPING = "mapping"
    RECORD = "record"
    OPTIONAL = "optional"
    ENUM = "enum"
    VALUE = "value"
    ANY = "any"


@dataclass(frozen=True)
class Shape:
    """Resolved description of a decode/encode target.

    Attributes:
        kind: Shape kind
        bits: Width in bits for INT/UINT (8-64) and FLOAT (32/64)
        length: Capacity of a FIXED_ARRAY
        elem: Element shape for SEQUENCE/FIXED_ARRAY and pointee for OPTIONAL
        key: Key shape for MAPPING
        value: Value shape for MAPPING
        python_type: Concrete container, record or enum class
    """

    kind: ShapeKind
    bits: int = 0
    length: Optional[int] = None
    elem: Optional[Shape] = None
    key: Optional[Shape] = None
    value: Optional[Shape] = None
    python_type: Any = None

    @property
    def is_byte(self) -> bool:
        """Whether this is the 8-bit unsigned element of a byte sequence."""
        return self.kind is ShapeKind.UINT and self.bits == 8

    @property
    def holds_bytes(self) -> bool:
        """Whether this sequence is written as a binary blob."""
        return (
            self.kind in (ShapeKind.SEQUENCE, ShapeKind.FIXED_ARRAY)
            and self.elem is not None
            and self.elem.is_byte
        )

    def describe(self) -> str:
        """Short human-readable name used in error messages."""
        kind = self.kind
        if kind is ShapeKind.INT:
            return f"int{self.bits}"
        if kind is ShapeKind.UINT:
            return f"uint{self.bits}"
        if kind is ShapeKind.FLOAT:
            return f"float{self.bits}"
        if kind is ShapeKind.SEQUENCE:
            return f"{self.python_type.__name__}[{self.elem.describe()}]"
        if kind is ShapeKind.FIXED_ARRAY:
            return f"{self.python_type.__name__}[{self.elem.describe()}; {self.length}]"
        if kind is ShapeKind.MAPPING:
            return f"dict[{self.key.describe()}, {self.value.describe()}]"
        if kind is ShapeKind.OPTIONAL:
            return f"optional[{self.elem.describe()}]"
        if kind in (ShapeKind.RECORD, ShapeKind.ENUM):
            return self.python_type.__name__
        return kind.value


BOOL = Shape(ShapeKind.BOOL)
INT64 = Shape(ShapeKind.INT, bits=64)
UINT8 = Shape(ShapeKind.UINT, bits=8)
UINT64 = Shape(ShapeKind.UINT, bits=64)
FLOAT32 = Shape(ShapeKind.FLOAT, bits=32)
FLOAT64 = Shape(ShapeKind.FLOAT, bits=64)
STRING = Shape(ShapeKind.STRING)
ANY = Shape(ShapeKind.ANY)
VALUE = Shape(ShapeKind.VALUE)
BYTES = Shape(ShapeKind.SEQUENCE, elem=UINT8, python_type=bytes)


def sequence_of(elem: Shape, python_type: type = list) -> Shape:
    return Shape(ShapeKind.SEQUENCE, elem=elem, python_type=python_type)


def fixed_array_of(elem: Shape, length: int, python_type: type = list) -> Shape:
    return Shape(ShapeKind.FIXED_ARRAY, elem=elem, length=length, python_type=python_type)


def mapping_of(key: Shape, value: Shape) -> Shape:
    return Shape(ShapeKind.MAPPING, key=key, value=value, python_type=dict)


def optional_of(elem: Shape) -> Shape:
    return Shape(ShapeKind.OPTIONAL, elem=elem)


_SEQUENCE_ORIGINS = (
    list,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Iterable,
)
_MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)
_UNION_ORIGINS = (Union, types.UnionType)


def resolve_shape(annotation: Any, metadata: Iterable[Any] = ()) -> Shape:
    """Resolve a type annotation into a Shape.

    Args:
        annotation: Type annotation (or an already resolved Shape)
        metadata: Extra Annotated-style metadata, as pydantic stores it on
            FieldInfo.metadata

    Returns:
        The resolved Shape

    Raises:
        UnsupportedShapeError: If the annotation has no codec counterpart
        SchemaError: If a width or length marker does not fit the annotation

    Example:
        >>> resolve_shape(list[Int16]).elem
        Shape(kind=<ShapeKind.INT: 'int'>, bits=16, ...)
    """
    metadata = tuple(metadata)
    try:
        return _resolve_cached(annotation, metadata)
    except TypeError:
        # Unhashable annotation or metadata
        return _resolve_uncached(annotation, metadata)


def _resolve_uncached(annotation: Any, metadata: tuple[Any, ...]) -> Shape:
    shape = _resolve(annotation)
    if metadata:
        shape = _apply_metadata(shape, metadata)
    return shape


_resolve_cached = functools.lru_cache(maxsize=1024)(_resolve_uncached)


def _resolve(annotation: Any) -> Shape:
    if isinstance(annotation, Shape):
        return annotation

    origin = get_origin(annotation)

    if origin is Annotated:
        base, *extra = get_args(annotation)
        return _apply_metadata(_resolve(base), tuple(extra))

    if annotation is Any or annotation is object:
        return ANY
    if annotation is Value:
        return VALUE

    if origin in _UNION_ORIGINS:
        args = get_args(annotation)
        members = [arg for arg in args if arg is not type(None)]
        if len(members) == 1 and len(members) < len(args):
            return optional_of(_resolve(members[0]))
        raise UnsupportedShapeError(f"Only Optional unions are supported, got {annotation!r}")

    if origin is not None:
        return _resolve_generic(annotation, origin, get_args(annotation))

    if isinstance(annotation, type):
        # Enum first: IntEnum members are also ints
        if issubclass(annotation, enum.Enum):
            if not list(annotation):
                raise UnsupportedShapeError(f"Enum {annotation.__name__} has no members")
            return Shape(ShapeKind.ENUM, python_type=annotation)
        if annotation is bool:
            return BOOL
        if issubclass(annotation, BaseModel):
            return Shape(ShapeKind.RECORD, python_type=annotation)
        if annotation is int:
            return INT64
        if annotation is float:
            return FLOAT64
        if annotation is str:
            return STRING
        if annotation in (bytes, bytearray):
            return sequence_of(UINT8, annotation)
        if annotation in (list, tuple):
            return sequence_of(ANY, annotation)
        if annotation is dict:
            return mapping_of(ANY, ANY)

    raise UnsupportedShapeError(f"Unsupported type annotation: {annotation!r}")


def _resolve_generic(annotation: Any, origin: Any, args: tuple[Any, ...]) -> Shape:
    if origin in _SEQUENCE_ORIGINS:
        return sequence_of(_resolve(args[0]) if args else ANY, list)

    if origin is tuple:
        if not args:
            return sequence_of(ANY, tuple)
        if len(args) == 2 and args[1] is Ellipsis:
            return sequence_of(_resolve(args[0]), tuple)
        raise UnsupportedShapeError(
            f"Only homogeneous tuple[T, ...] is supported, got {annotation!r}"
        )

    if origin in _MAPPING_ORIGINS:
        if args:
            return mapping_of(_resolve(args[0]), _resolve(args[1]))
        return mapping_of(ANY, ANY)

    raise UnsupportedShapeError(f"Unsupported generic annotation: {annotation!r}")


def _constraint_items(item: Any) -> tuple[Any, ...]:
    # Field(min_length=...) inside Annotated keeps its constraints in .metadata
    if isinstance(item, FieldInfo):
        return tuple(item.metadata)
    return (item,)


def _apply_metadata(shape: Shape, metadata: tuple[Any, ...]) -> Shape:
    fixed: Optional[int] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None

    for item in metadata:
        for marker in _constraint_items(item):
            if isinstance(marker, IntWidth):
                if shape.kind not in (ShapeKind.INT, ShapeKind.UINT):
                    raise SchemaError(f"IntWidth applies to int annotations, not {shape.describe()}")
                kind = ShapeKind.INT if marker.signed else ShapeKind.UINT
                shape = replace(shape, kind=kind, bits=marker.bits)
            elif isinstance(marker, FloatWidth):
                if shape.kind is not ShapeKind.FLOAT:
                    raise SchemaError(
                        f"FloatWidth applies to float annotations, not {shape.describe()}"
                    )
                shape = replace(shape, bits=marker.bits)
            elif isinstance(marker, FixedLength):
                fixed = marker.length
            else:
                if getattr(marker, "min_length", None) is not None:
                    min_length = marker.min_length
                if getattr(marker, "max_length", None) is not None:
                    max_length = marker.max_length

    if fixed is None and shape.kind is ShapeKind.SEQUENCE:
        if min_length is not None and min_length == max_length:
            fixed = max_length

    if fixed is not None:
        if shape.kind is not ShapeKind.SEQUENCE:
            raise SchemaError(f"FixedLength applies to sequences, not {shape.describe()}")
        shape = fixed_array_of(shape.elem, fixed, shape.python_type)

    return shape
