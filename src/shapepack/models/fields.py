"""Field type helpers and utilities.

This module provides the annotation markers that select a wire width
(``IntWidth``, ``FloatWidth``, ``FixedLength``), ready-made sized numeric
aliases, and convenience functions for declaring record fields with wire
tags.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any, cast

from pydantic import Field
from pydantic.fields import FieldInfo

WIRE_TAG_KEY = "wire_tag"


@dataclass(frozen=True)
class IntWidth:
    """Marks an ``int`` annotation as a sized signed or unsigned integer.

    Example:
        >>> Port = Annotated[int, IntWidth(16, signed=False)]
    """

    bits: int
    signed: bool = True

    def __post_init__(self) -> None:
        if self.bits not in (8, 16, 32, 64):
            raise ValueError(f"bits must be 8, 16, 32 or 64, got {self.bits}")


@dataclass(frozen=True)
class FloatWidth:
    """Marks a ``float`` annotation as single (32) or double (64) precision."""

    bits: int

    def __post_init__(self) -> None:
        if self.bits not in (32, 64):
            raise ValueError(f"bits must be 32 or 64, got {self.bits}")


@dataclass(frozen=True)
class FixedLength:
    """Marks a sequence annotation as a fixed-size array of ``length`` items.

    Example:
        >>> Digest = Annotated[bytes, FixedLength(32)]
        >>> Triple = Annotated[list[Int32], FixedLength(3)]
    """

    length: int

    def __post_init__(self) -> None:
        if self.length < 0:
            raise ValueError(f"length must be non-negative, got {self.length}")


def _bounded(bits: int, signed: bool) -> Any:
    if signed:
        low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    else:
        low, high = 0, (1 << bits) - 1
    return Annotated[int, IntWidth(bits, signed), Field(ge=low, le=high)]


Int8 = _bounded(8, True)
Int16 = _bounded(16, True)
Int32 = _bounded(32, True)
Int64 = _bounded(64, True)
UInt8 = _bounded(8, False)
UInt16 = _bounded(16, False)
UInt32 = _bounded(32, False)
UInt64 = _bounded(64, False)
Byte = UInt8

Float32 = Annotated[float, FloatWidth(32)]
Float64 = Annotated[float, FloatWidth(64)]


def WireField(tag: str = "", *, length: int | None = None, **kwargs: Any) -> FieldInfo:
    """Create a record field carrying a wire tag.

    The tag is a comma-separated string ``name,opt1,opt2``:

    - ``name`` overrides the wire name (empty keeps the field name)
    - ``-`` alone skips the field entirely
    - ``-`` followed by options uses the literal wire name ``_``
    - ``omitempty`` drops the field from the output when it holds its zero value
    - ``string`` writes a bool/int/float field as its decimal text

    Args:
        tag: Wire tag string
        length: Optional fixed length for bytes/list fields
        **kwargs: Additional Field() arguments (default, description, etc.)

    Returns:
        Pydantic FieldInfo suitable for use as a field default.

    Example:
        >>> class Account(BaseRecord):
        ...     name: str = WireField("n")
        ...     secret: str = WireField("-", default="")
        ...     balance: int = WireField(",string", default=0)
        ...     note: str = WireField("note,omitempty", default="")
    """
    extra = dict(kwargs.pop("json_schema_extra", None) or {})
    extra[WIRE_TAG_KEY] = tag
    if length is not None:
        kwargs.setdefault("min_length", length)
        kwargs.setdefault("max_length", length)
    return cast(FieldInfo, Field(json_schema_extra=extra, **kwargs))


def FixedBytes(*, length: int, tag: str = "", **kwargs: Any) -> FieldInfo:
    """Create a fixed-length bytes field.

    Decoding zero-pads shorter wire values up to ``length`` and rejects
    longer ones.

    Args:
        length: Exact length in bytes
        tag: Optional wire tag (see WireField)
        **kwargs: Additional Field() arguments

    Example:
        >>> class Packet(BaseRecord):
        ...     digest: bytes = FixedBytes(length=16)
    """
    return WireField(tag, length=length, **kwargs)


def FixedList(*, length: int, tag: str = "", **kwargs: Any) -> FieldInfo:
    """Create a fixed-length list field (a fixed-size array on decode).

    Args:
        length: Exact number of elements
        tag: Optional wire tag (see WireField)
        **kwargs: Additional Field() arguments

    Example:
        >>> class Vector(BaseRecord):
        ...     coords: list[Float32] = FixedList(length=3)
    """
    return WireField(tag, length=length, **kwargs)
