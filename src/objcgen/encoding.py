"""Objective-C runtime type encodings (`@encode` strings).

A method encoding such as ``B24@0:8#16`` lists the return type followed by
the argument types, each optionally followed by a decimal stack offset.
The offsets carry no type information and are skipped.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Union


OPAQUE_PLACEHOLDER = "*mut c_void"

# Cap for the placeholder text of an aggregate with no closing brace.
UNTERMINATED_CAP = 10

_DIGITS = frozenset("0123456789")

_RUST_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class PrimitiveKind(enum.Enum):
    VOID = "v"
    BOOL = "B"
    INT8 = "c"
    UINT8 = "C"
    INT16 = "s"
    UINT16 = "S"
    INT32 = "i"
    UINT32 = "I"
    INTPTR = "l"
    UINTPTR = "L"
    INT64 = "q"
    UINT64 = "Q"
    FLOAT = "f"
    DOUBLE = "d"


_RUST_PRIMITIVES = {
    PrimitiveKind.VOID: "()",
    PrimitiveKind.BOOL: "bool",
    PrimitiveKind.INT8: "i8",
    PrimitiveKind.UINT8: "u8",
    PrimitiveKind.INT16: "i16",
    PrimitiveKind.UINT16: "u16",
    PrimitiveKind.INT32: "i32",
    PrimitiveKind.UINT32: "u32",
    PrimitiveKind.INTPTR: "isize",
    PrimitiveKind.UINTPTR: "usize",
    PrimitiveKind.INT64: "i64",
    PrimitiveKind.UINT64: "u64",
    PrimitiveKind.FLOAT: "f32",
    PrimitiveKind.DOUBLE: "f64",
}


@dataclass(frozen=True)
class Primitive:
    kind: PrimitiveKind


@dataclass(frozen=True)
class ReceiverRef:
    pass


@dataclass(frozen=True)
class ClassRef:
    pass


@dataclass(frozen=True)
class SelectorRef:
    pass


@dataclass(frozen=True)
class CStringPtr:
    pass


@dataclass(frozen=True)
class Pointer:
    pointee: "EncodedType"


@dataclass(frozen=True)
class AggregateRef:
    # Struct tag, e.g. "CGRect" for {CGRect=...}; may be "?" or empty.
    name: str


@dataclass(frozen=True)
class Unresolved:
    raw: str


EncodedType = Union[
    Primitive, ReceiverRef, ClassRef, SelectorRef, CStringPtr, Pointer, AggregateRef, Unresolved
]

VOID = Primitive(PrimitiveKind.VOID)
BOOL = Primitive(PrimitiveKind.BOOL)
FLOAT = Primitive(PrimitiveKind.FLOAT)
DOUBLE = Primitive(PrimitiveKind.DOUBLE)

_SINGLE_CHAR: dict[str, EncodedType] = {k.value: Primitive(k) for k in PrimitiveKind}
_SINGLE_CHAR.update(
    {
        "@": ReceiverRef(),
        "#": ClassRef(),
        ":": SelectorRef(),
        "*": CStringPtr(),
    }
)


@dataclass(frozen=True)
class MethodSignature:
    return_type: EncodedType
    # arg_types[0] is the receiver (@), arg_types[1] the selector (:).
    arg_types: tuple[EncodedType, ...]

    @property
    def params(self) -> tuple[EncodedType, ...]:
        """Argument types after the implicit receiver and selector."""
        return self.arg_types[2:]


def _matching_brace(s: str) -> int:
    depth = 0
    for i, ch in enumerate(s):
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
    return -1


def decode_one(s: str) -> tuple[EncodedType, int]:
    """Decode the type at the start of `s`.

    Returns the decoded type and the number of characters consumed.
    Unrecognized input never raises; it decodes to `Unresolved`.
    """
    if not s:
        return Unresolved("empty"), 0

    ch = s[0]
    known = _SINGLE_CHAR.get(ch)
    if known is not None:
        return known, 1

    if ch == "^":
        inner, consumed = decode_one(s[1:])
        return Pointer(inner), consumed + 1

    if ch == "{":
        end = _matching_brace(s)
        if end < 0:
            # Do not scan any further into corrupt input.
            return Unresolved(s[:UNTERMINATED_CAP]), 1
        interior = s[1:end]
        name = interior.split("=", 1)[0]
        return AggregateRef(name), end + 1

    return Unresolved(ch), 1


def decode_signature(raw: str) -> MethodSignature | None:
    """Decode a full method encoding such as ``@24@0:8@16`` or ``[v16@0:8]``."""
    clean = raw.strip().strip("[]").strip()
    if not clean:
        return None

    types: list[EncodedType] = []
    pos = 0
    while pos < len(clean):
        if clean[pos] in _DIGITS:
            while pos < len(clean) and clean[pos] in _DIGITS:
                pos += 1
            continue
        t, consumed = decode_one(clean[pos:])
        types.append(t)
        pos += max(consumed, 1)

    if not types:
        return None
    return MethodSignature(return_type=types[0], arg_types=tuple(types[1:]))


def is_valid_aggregate_name(name: str) -> bool:
    return bool(_RUST_IDENT_RE.match(name)) and name != "_"


def render_type(t: EncodedType) -> str:
    """Render `t` as a Rust type token. Never returns empty text."""
    if isinstance(t, Primitive):
        return _RUST_PRIMITIVES[t.kind]
    if isinstance(t, ReceiverRef):
        return "id"
    if isinstance(t, ClassRef):
        return "Class"
    if isinstance(t, SelectorRef):
        return "SEL"
    if isinstance(t, CStringPtr):
        return "*const i8"
    if isinstance(t, Pointer):
        if t.pointee == VOID:
            return "*mut c_void"
        return f"*mut {render_type(t.pointee)}"
    if isinstance(t, AggregateRef) and is_valid_aggregate_name(t.name):
        return t.name
    return OPAQUE_PLACEHOLDER
