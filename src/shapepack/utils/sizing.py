"""Encoded size calculation utilities.

This module provides functions to measure how many bytes a value or each
field of a record occupies on the wire.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel

from ..codec.encoder import encode_field, encode_to, record_entries
from ..codec.primitives import WirePacker
from ..config import CodecConfig


class _CountingSink:
    """Byte sink that only counts what is written to it."""

    def __init__(self) -> None:
        self.count = 0

    def write(self, data: bytes) -> int:
        self.count += len(data)
        return len(data)


def encoded_size(value: Any, shape: Any = None, *, config: Optional[CodecConfig] = None) -> int:
    """Calculate the encoded size of a value in bytes.

    Args:
        value: Value to measure
        shape: Optional type annotation or Shape (as for encode())
        config: Codec limits (defaults to DEFAULT_CONFIG)

    Returns:
        Number of bytes encode() would produce

    Raises:
        UnsupportedShapeError: If the value or shape has no wire form
        EncodeError: If the value does not fit the shape

    Example:
        >>> encoded_size("hello")
        6  # 1 tag byte + 5 UTF-8 bytes
        >>> encoded_size(300)
        3  # Int16 tag + 2 bytes
    """
    sink = _CountingSink()
    encode_to(sink, value, shape, config=config)
    return sink.count


def field_sizes(record: BaseModel, *, config: Optional[CodecConfig] = None) -> Dict[str, int]:
    """Get the encoded size of each field a record writes.

    Each size covers the field's wire name and its value. Skipped fields and
    empty ``omitempty`` fields are absent from the result. The record's own
    map header is not attributed to any field.

    Args:
        record: Record instance
        config: Codec limits (defaults to DEFAULT_CONFIG)

    Returns:
        Dictionary mapping field names to their encoded size in bytes

    Example:
        >>> field_sizes(Sample(AAA="1234567890", BBB=255))
        {'AAA': 15, 'BBB': 6, ...}
    """
    sizes: Dict[str, int] = {}
    for field, value in record_entries(record):
        sink = _CountingSink()
        encode_field(WirePacker(sink, config), field, value)
        sizes[field.name] = sink.count
    return sizes
