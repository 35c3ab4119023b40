"""Text form of record fields tagged with the ``string`` option.

Such fields travel as a wire string instead of their native encoding:
booleans as ``true``/``false``, integers in base 10 and floats in their
shortest round-trip decimal form (switching to exponent notation below
1e-4 and from 1e6 on, e.g. ``1e+06``). An absent optional is written as
``nil``; ``nil`` and ``null`` decode back to the field's zero value.
"""

from __future__ import annotations

import math
import re
from decimal import Decimal
from typing import Any

from ..exceptions import EncodeError, FieldDecodeError
from .primitives import round_float32
from .schema import FieldSchema, zero_value
from .shape import Shape, ShapeKind

NULL_LITERALS = frozenset({"null", "nil"})

_BOOL_LITERALS = {
    "1": True,
    "t": True,
    "T": True,
    "TRUE": True,
    "true": True,
    "True": True,
    "0": False,
    "f": False,
    "F": False,
    "FALSE": False,
    "false": False,
    "False": False,
}

_SIGNED_RE = re.compile(r"[+-]?[0-9]+")
_UNSIGNED_RE = re.compile(r"[0-9]+")
_INFINITY_WORDS = frozenset({"inf", "infinity"})

# Exponent notation is used outside [1e-4, 1e6)
_MIN_FIXED_EXP = -4
_MAX_FIXED_EXP = 6


def _pointee(shape: Shape) -> Shape:
    while shape.kind is ShapeKind.OPTIONAL:
        shape = shape.elem
    return shape


def format_field_text(field: FieldSchema, value: Any) -> str:
    """Render a field value as the text written on the wire.

    Args:
        field: Schema of the field being written
        value: Current field value

    Returns:
        Text form of the value

    Raises:
        EncodeError: If the field is not a bool, integer or float (or an
            optional of one), or a float32 value is out of range
    """
    if value is None:
        return "nil"

    shape = _pointee(field.shape)
    kind = shape.kind
    if kind is ShapeKind.BOOL:
        return "true" if value else "false"
    if kind in (ShapeKind.INT, ShapeKind.UINT):
        return str(int(value))
    if kind is ShapeKind.FLOAT:
        return format_float(float(value), shape.bits)

    raise EncodeError(
        f"Cannot pack field {field.name} of shape {field.shape.describe()} into string"
    )


def format_float(value: float, bits: int = 64) -> str:
    """Shortest decimal text that reads back as the same float.

    Args:
        value: Float to format
        bits: 32 to find the shortest form of the float32 nearest to value

    Returns:
        Decimal text such as ``3.14``, ``100``, ``1e+06`` or ``1.5e-07``

    Raises:
        EncodeError: If bits is 32 and value is finite but out of range
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"

    text = _shortest_float32(value) if bits == 32 else repr(value)
    sign, digit_tuple, exponent = Decimal(text).as_tuple()
    digits = "".join(str(d) for d in digit_tuple).rstrip("0")
    exponent += len(digit_tuple) - len(digits)

    # value == 0.<digits> * 10**point
    point = len(digits) + exponent
    exp = point - 1
    prefix = "-" if sign else ""

    if exp < _MIN_FIXED_EXP or exp >= _MAX_FIXED_EXP:
        mantissa = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
        return f"{prefix}{mantissa}e{'-' if exp < 0 else '+'}{abs(exp):02d}"
    if point <= 0:
        return f"{prefix}0.{'0' * -point}{digits}"
    if point >= len(digits):
        return f"{prefix}{digits}{'0' * (point - len(digits))}"
    return f"{prefix}{digits[:point]}.{digits[point:]}"


def _shortest_float32(value: float) -> str:
    target = round_float32(value)
    if math.isinf(target):
        raise EncodeError(f"Float {value} is out of float32 range")
    for precision in range(1, 10):
        text = f"{target:.{precision - 1}e}"
        if round_float32(float(text)) == target:
            return text
    return repr(target)


def parse_field_text(field: FieldSchema, text: str) -> Any:
    """Parse the wire text of a ``string`` field into a field value.

    Args:
        field: Schema of the field being read
        text: Decoded wire string

    Returns:
        Value for the field; ``nil``/``null`` give the field's zero value
        and string fields take the text unchanged

    Raises:
        FieldDecodeError: If the text does not parse for the field's shape
    """
    if text in NULL_LITERALS:
        return zero_value(field.shape)

    shape = _pointee(field.shape)
    kind = shape.kind

    if kind is ShapeKind.BOOL:
        try:
            return _BOOL_LITERALS[text]
        except KeyError:
            raise FieldDecodeError(field.name, f"invalid boolean {text!r}") from None

    if kind in (ShapeKind.INT, ShapeKind.UINT):
        return _parse_int(field, shape, text)

    if kind is ShapeKind.FLOAT:
        return _parse_float(field, shape, text)

    if kind is ShapeKind.STRING:
        return text

    raise FieldDecodeError(
        field.name, f"cannot assign a string to shape {field.shape.describe()}"
    )


def _parse_int(field: FieldSchema, shape: Shape, text: str) -> int:
    signed = shape.kind is ShapeKind.INT
    pattern = _SIGNED_RE if signed else _UNSIGNED_RE
    if not pattern.fullmatch(text):
        raise FieldDecodeError(field.name, f"invalid integer {text!r}")

    number = int(text)
    if signed:
        low, high = -(1 << (shape.bits - 1)), (1 << (shape.bits - 1)) - 1
    else:
        low, high = 0, (1 << shape.bits) - 1
    if not low <= number <= high:
        raise FieldDecodeError(
            field.name, f"{number} is out of range for {shape.describe()}"
        )
    return number


def _parse_float(field: FieldSchema, shape: Shape, text: str) -> float:
    # float() also accepts surrounding whitespace and digit separators
    if text != text.strip() or "_" in text:
        raise FieldDecodeError(field.name, f"invalid float {text!r}")
    try:
        number = float(text)
    except ValueError:
        raise FieldDecodeError(field.name, f"invalid float {text!r}") from None

    if math.isinf(number) and text.lstrip("+-").lower() not in _INFINITY_WORDS:
        raise FieldDecodeError(field.name, f"{text!r} is out of range for float64")
    if shape.bits == 32:
        number = round_float32(number)
    return number
