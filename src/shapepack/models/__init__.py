"""Pydantic record modeling for shapepack.

This module provides the BaseRecord class, wire-tagged field helpers and the
sized numeric aliases used to declare records.
"""

from __future__ import annotations

from .base import BaseRecord
from .fields import (
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

__all__ = [
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
]
