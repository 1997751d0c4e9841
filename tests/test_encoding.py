from __future__ import annotations

import pytest

from objcgen.encoding import (
    BOOL,
    OPAQUE_PLACEHOLDER,
    VOID,
    AggregateRef,
    ClassRef,
    CStringPtr,
    Pointer,
    Primitive,
    PrimitiveKind,
    ReceiverRef,
    SelectorRef,
    Unresolved,
    decode_one,
    decode_signature,
    render_type,
)


@pytest.mark.parametrize(
    "code, expected",
    [
        ("v", VOID),
        ("B", BOOL),
        ("c", Primitive(PrimitiveKind.INT8)),
        ("Q", Primitive(PrimitiveKind.UINT64)),
        ("l", Primitive(PrimitiveKind.INTPTR)),
        ("d", Primitive(PrimitiveKind.DOUBLE)),
        ("@", ReceiverRef()),
        ("#", ClassRef()),
        (":", SelectorRef()),
        ("*", CStringPtr()),
    ],
)
def test_decode_one_single_char_codes(code: str, expected):
    t, consumed = decode_one(code + "rest")
    assert t == expected
    assert consumed == 1


def test_decode_one_empty_input():
    assert decode_one("") == (Unresolved("empty"), 0)


def test_decode_one_unknown_char_consumes_one():
    assert decode_one("?x") == (Unresolved("?"), 1)


def test_decode_one_pointer():
    assert decode_one("^v") == (Pointer(VOID), 2)
    assert decode_one("^^@") == (Pointer(Pointer(ReceiverRef())), 3)


def test_decode_one_nested_aggregate_uses_outer_tag():
    enc = "{CGRect={CGPoint=dd}{CGSize=dd}}"
    t, consumed = decode_one(enc + "16")
    assert t == AggregateRef("CGRect")
    assert consumed == len(enc)


def test_decode_one_aggregate_without_fields():
    assert decode_one("{CGPoint}") == (AggregateRef("CGPoint"), 9)


def test_decode_one_unterminated_aggregate_is_capped():
    t, consumed = decode_one("{CGRect=dddddddddddddddd")
    assert t == Unresolved("{CGRect=dd")
    assert consumed == 1


def test_decode_signature_skips_stack_offsets():
    sig = decode_signature("v16@0:8")
    assert sig is not None
    assert sig.return_type == VOID
    assert sig.arg_types == (ReceiverRef(), SelectorRef())
    assert sig.params == ()


def test_decode_signature_with_class_argument():
    sig = decode_signature("B24@0:8#16")
    assert sig is not None
    assert sig.return_type == BOOL
    assert len(sig.arg_types) == 3
    assert sig.arg_types[2] == ClassRef()


def test_decode_signature_strips_brackets_and_whitespace():
    sig = decode_signature("  [@24@0:8^{__CFString=}16]  ")
    assert sig is not None
    assert sig.params == (Pointer(AggregateRef("__CFString")),)


@pytest.mark.parametrize("raw", ["", "   ", "[]", "1624"])
def test_decode_signature_rejects_empty(raw: str):
    assert decode_signature(raw) is None


def test_decode_signature_reports_short_signatures():
    # The parser reports what it decoded; rejecting is the generator's job.
    sig = decode_signature("v16")
    assert sig is not None
    assert sig.arg_types == ()


def test_render_type_tokens():
    assert render_type(VOID) == "()"
    assert render_type(BOOL) == "bool"
    assert render_type(ReceiverRef()) == "id"
    assert render_type(ClassRef()) == "Class"
    assert render_type(SelectorRef()) == "SEL"
    assert render_type(CStringPtr()) == "*const i8"
    assert render_type(Pointer(VOID)) == "*mut c_void"
    assert render_type(Pointer(Primitive(PrimitiveKind.INT32))) == "*mut i32"
    assert render_type(AggregateRef("CGRect")) == "CGRect"


@pytest.mark.parametrize("t", [AggregateRef(""), AggregateRef("?"), Unresolved("{CGRect=dd"), Unresolved("empty")])
def test_render_type_opaque_placeholder(t):
    assert render_type(t) == OPAQUE_PLACEHOLDER


def test_render_type_pointer_to_anonymous_aggregate():
    t, _ = decode_one("^{?=ii}")
    assert render_type(t) == f"*mut {OPAQUE_PLACEHOLDER}"
