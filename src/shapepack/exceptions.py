"""Exception hierarchy for shapepack.

This module defines all custom exceptions used throughout the package.
All exceptions inherit from ShapepackError for easy catching of any shapepack-specific error.
Errors raised by the underlying byte source or sink (OSError and friends) are
never wrapped; they propagate to the caller unchanged.
"""

from __future__ import annotations


class ShapepackError(Exception):
    """Base exception for all shapepack errors."""

    pass


class SchemaError(ShapepackError):
    """Raised when a target shape or record schema is invalid.

    Examples:
        - Annotation the codec cannot map onto a shape
        - Union types other than Optional[T]
        - Fixed-length metadata on a non-sequence type
    """

    pass


class UnsupportedShapeError(SchemaError):
    """Raised when a value or target shape has no codec rule.

    Examples:
        - Encoding a set, a function or an arbitrary object
        - Decoding into ``tuple[int, str]`` or ``Union[int, str]``
    """

    pass


class EncodeError(ShapepackError):
    """Raised when encoding a value fails.

    Examples:
        - Integer out of bounds for a sized field
        - Fixed-size array holding more elements than its capacity
        - ``string`` option on a field that is not a primitive
        - Nesting deeper than the configured maximum
    """

    pass


class ValueTooLargeError(EncodeError):
    """Raised when a value exceeds the largest wire encoding.

    Examples:
        - String or binary longer than 2**32 - 1 bytes
        - Array or map with more than 2**32 - 1 entries
        - Integer outside the 64-bit range
    """

    pass


class DecodeError(ShapepackError):
    """Raised when decoding binary data fails.

    Examples:
        - Truncated data (insufficient bytes)
        - Unknown tag byte
        - Wire value incompatible with the target shape
    """

    pass


class TruncatedError(DecodeError):
    """Raised when fewer bytes are available than a value declares."""

    pass


class EndOfStreamError(DecodeError):
    """Raised when the source is exhausted before a top-level value starts.

    Unlike TruncatedError this marks a clean end of input: no byte of the
    value was consumed.
    """

    pass


class MalformedTagError(DecodeError):
    """Raised when the leading byte of a value is not a known tag."""

    def __init__(self, head: int) -> None:
        super().__init__(f"Unrecognized tag byte 0x{head:02x}")
        self.head = head


class TypeMismatchError(DecodeError):
    """Raised when the decoded wire kind cannot be assigned to the target shape.

    Examples:
        - A string read into an integer field
        - A binary blob read into a list of strings
        - A map key that cannot be hashed
    """

    pass


class BufferTooSmallError(DecodeError):
    """Raised when a fixed-size target is shorter than the wire value."""

    pass


class FieldDecodeError(DecodeError):
    """Raised when a string-encoded record field cannot be parsed.

    Attributes:
        field_name: Name of the record field that failed to parse
    """

    def __init__(self, field_name: str, message: str) -> None:
        super().__init__(f"Field {field_name}: {message}")
        self.field_name = field_name


class LimitExceededError(DecodeError):
    """Raised when input exceeds a configured decode limit.

    Examples:
        - Array or map header advertising more entries than allowed
        - String or binary length above the configured maximum
        - Nesting deeper than the configured maximum
    """

    pass
