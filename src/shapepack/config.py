"""Pydantic configuration model for shapepack.

Codec limits are plain settings validated once at construction; the hot
encode/decode paths only read attributes from an already validated instance.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

UnicodeErrors = Literal["strict", "replace", "ignore", "surrogateescape"]


class CodecConfig(BaseModel):
    """Limits and options shared by encode and decode calls.

    Attributes:
        max_depth: Maximum nesting of arrays, maps and records
        max_container_length: Largest array/map entry count accepted on decode
        max_bytes_length: Largest string/binary length accepted on decode
        unicode_errors: Error handler used when decoding UTF-8 text
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_depth: int = Field(default=128, gt=0, description="Maximum nesting depth")
    max_container_length: int = Field(
        default=1 << 24,
        gt=0,
        le=0xFFFFFFFF,
        description="Maximum array/map entry count",
    )
    max_bytes_length: int = Field(
        default=1 << 28,
        gt=0,
        le=0xFFFFFFFF,
        description="Maximum string/binary length in bytes",
    )
    unicode_errors: UnicodeErrors = Field(
        default="strict",
        description="codecs error handler for wire strings",
    )


DEFAULT_CONFIG = CodecConfig()
