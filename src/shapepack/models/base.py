"""Base record class and shapepack-specific Pydantic configuration.

This module provides the BaseRecord class records may inherit from. Any
pydantic model can be encoded and decoded; BaseRecord only fixes the
configuration the codec works best with.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class BaseRecord(BaseModel):
    """Base class for shapepack records.

    Records are encoded as a map from wire field names to field values.
    Field wire names and options are declared with WireField():

    Example:
        >>> from shapepack import WireField, encode, decode
        >>> class Sample(BaseRecord):
        ...     AAA: str = ""
        ...     BBB: int = 0
        ...     CCC: str = WireField("ccc", default="")
        ...     DDD: int = WireField("-", default=0)
        >>> data = encode(Sample(AAA="x", BBB=1, CCC="y", DDD=99))
        >>> decode(data, Sample)
        Sample(AAA='x', BBB=1, CCC='y', DDD=0)
    """

    model_config = ConfigDict(
        # Lax validation so decoded ints may populate float fields
        strict=False,
        # Allow Value and other non-pydantic field types
        arbitrary_types_allowed=True,
        # decode_into() assigns field by field
        validate_assignment=True,
        # Forbid extra fields not defined in schema
        extra="forbid",
        # Decoder builds records by field name even when aliases are set
        populate_by_name=True,
    )
