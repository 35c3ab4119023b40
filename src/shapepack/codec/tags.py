"""MessagePack tag grammar.

Every wire value starts with a single head byte. The head alone identifies
the wire type; variable-length types follow it with a 1, 2 or 4 byte
big-endian length, and the fix* forms pack a small length (or the value
itself) into the low bits of the head.

Classification order matters: the single-purpose tags in 0xc0..0xdf are
matched exactly before the masked families, because a naive prefix test on
e.g. 0xd0 would otherwise land in the wrong family.
"""

from __future__ import annotations

import enum

from ..exceptions import MalformedTagError

NIL = 0xC0
FALSE = 0xC2
TRUE = 0xC3
BIN8 = 0xC4
BIN16 = 0xC5
BIN32 = 0xC6
FLOAT32 = 0xCA
FLOAT64 = 0xCB
UINT8 = 0xCC
UINT16 = 0xCD
UINT32 = 0xCE
UINT64 = 0xCF
INT8 = 0xD0
INT16 = 0xD1
INT32 = 0xD2
INT64 = 0xD3
STR8 = 0xD9
STR16 = 0xDA
STR32 = 0xDB
ARRAY16 = 0xDC
ARRAY32 = 0xDD
MAP16 = 0xDE
MAP32 = 0xDF

FIXMAP_PREFIX = 0x80
FIXARRAY_PREFIX = 0x90
FIXSTR_PREFIX = 0xA0

# Largest values that fit into the fix* forms
FIXINT_MAX = 0x7F
NEGATIVE_FIXINT_MIN = -32
FIXSTR_MAX = 0x1F
FIXCONTAINER_MAX = 0x0F


class Family(enum.Enum):
    """Coarse grouping of wire types by the kind of value they carry."""

    NIL = "nil"
    BOOL = "bool"
    INT = "int"
    UINT = "uint"
    FLOAT = "float"
    STR = "str"
    BIN = "bin"
    ARRAY = "array"
    MAP = "map"


class WireType(enum.Enum):
    """Every tag form of the wire format."""

    NIL = enum.auto()
    FALSE = enum.auto()
    TRUE = enum.auto()
    POSITIVE_FIXINT = enum.auto()
    NEGATIVE_FIXINT = enum.auto()
    INT8 = enum.auto()
    INT16 = enum.auto()
    INT32 = enum.auto()
    INT64 = enum.auto()
    UINT8 = enum.auto()
    UINT16 = enum.auto()
    UINT32 = enum.auto()
    UINT64 = enum.auto()
    FLOAT32 = enum.auto()
    FLOAT64 = enum.auto()
    FIXSTR = enum.auto()
    STR8 = enum.auto()
    STR16 = enum.auto()
    STR32 = enum.auto()
    BIN8 = enum.auto()
    BIN16 = enum.auto()
    BIN32 = enum.auto()
    FIXARRAY = enum.auto()
    ARRAY16 = enum.auto()
    ARRAY32 = enum.auto()
    FIXMAP = enum.auto()
    MAP16 = enum.auto()
    MAP32 = enum.auto()

    @property
    def family(self) -> Family:
        """Family of values this wire type carries."""
        return _FAMILY[self]

    @property
    def length_bytes(self) -> int:
        """Size of the length suffix following the head (0 for fixed forms)."""
        return _LENGTH_BYTES.get(self, 0)

    @property
    def has_length(self) -> bool:
        """Whether the value carries a length (str, bin, array, map)."""
        return self.family in _SIZED_FAMILIES


_FAMILY: dict[WireType, Family] = {
    WireType.NIL: Family.NIL,
    WireType.FALSE: Family.BOOL,
    WireType.TRUE: Family.BOOL,
    WireType.POSITIVE_FIXINT: Family.INT,
    WireType.NEGATIVE_FIXINT: Family.INT,
    WireType.INT8: Family.INT,
    WireType.INT16: Family.INT,
    WireType.INT32: Family.INT,
    WireType.INT64: Family.INT,
    WireType.UINT8: Family.UINT,
    WireType.UINT16: Family.UINT,
    WireType.UINT32: Family.UINT,
    WireType.UINT64: Family.UINT,
    WireType.FLOAT32: Family.FLOAT,
    WireType.FLOAT64: Family.FLOAT,
    WireType.FIXSTR: Family.STR,
    WireType.STR8: Family.STR,
    WireType.STR16: Family.STR,
    WireType.STR32: Family.STR,
    WireType.BIN8: Family.BIN,
    WireType.BIN16: Family.BIN,
    WireType.BIN32: Family.BIN,
    WireType.FIXARRAY: Family.ARRAY,
    WireType.ARRAY16: Family.ARRAY,
    WireType.ARRAY32: Family.ARRAY,
    WireType.FIXMAP: Family.MAP,
    WireType.MAP16: Family.MAP,
    WireType.MAP32: Family.MAP,
}

_LENGTH_BYTES: dict[WireType, int] = {
    WireType.STR8: 1,
    WireType.STR16: 2,
    WireType.STR32: 4,
    WireType.BIN8: 1,
    WireType.BIN16: 2,
    WireType.BIN32: 4,
    WireType.ARRAY16: 2,
    WireType.ARRAY32: 4,
    WireType.MAP16: 2,
    WireType.MAP32: 4,
}

_SIZED_FAMILIES = frozenset({Family.STR, Family.BIN, Family.ARRAY, Family.MAP})

_EXACT: dict[int, WireType] = {
    NIL: WireType.NIL,
    FALSE: WireType.FALSE,
    TRUE: WireType.TRUE,
    BIN8: WireType.BIN8,
    BIN16: WireType.BIN16,
    BIN32: WireType.BIN32,
    FLOAT32: WireType.FLOAT32,
    FLOAT64: WireType.FLOAT64,
    UINT8: WireType.UINT8,
    UINT16: WireType.UINT16,
    UINT32: WireType.UINT32,
    UINT64: WireType.UINT64,
    INT8: WireType.INT8,
    INT16: WireType.INT16,
    INT32: WireType.INT32,
    INT64: WireType.INT64,
    STR8: WireType.STR8,
    STR16: WireType.STR16,
    STR32: WireType.STR32,
    ARRAY16: WireType.ARRAY16,
    ARRAY32: WireType.ARRAY32,
    MAP16: WireType.MAP16,
    MAP32: WireType.MAP32,
}


def classify(head: int) -> WireType:
    """Map a head byte onto its wire type.

    Args:
        head: Leading byte of a wire value (0-255)

    Returns:
        The wire type identified by the head

    Raises:
        MalformedTagError: If the byte is not a recognized tag
    """
    wire_type = _EXACT.get(head)
    if wire_type is not None:
        return wire_type

    if head & 0x80 == 0:
        return WireType.POSITIVE_FIXINT
    if head & 0xE0 == 0xE0:
        return WireType.NEGATIVE_FIXINT
    if head & 0xE0 == FIXSTR_PREFIX:
        return WireType.FIXSTR
    if head & 0xF0 == FIXARRAY_PREFIX:
        return WireType.FIXARRAY
    if head & 0xF0 == FIXMAP_PREFIX:
        return WireType.FIXMAP

    raise MalformedTagError(head)


def fix_length(wire_type: WireType, head: int) -> int:
    """Return the length packed into the low bits of a fix* head."""
    if wire_type is WireType.FIXSTR:
        return head & 0x1F
    if wire_type in (WireType.FIXARRAY, WireType.FIXMAP):
        return head & 0x0F
    raise ValueError(f"{wire_type.name} does not carry an inline length")
