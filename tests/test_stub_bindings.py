from __future__ import annotations

import pytest

from objcgen.bindgen import generate_stub_bindings
from objcgen.signatures import (
    FunctionSignature,
    load_signatures,
    parse_signatures,
    render_function_binding,
)
from objcgen.tbd import StubExportSet, parse_tbd


def test_packaged_signature_table_loads():
    db = load_signatures()
    assert "NSLog" in db
    assert db["NSLog"].variadic is True
    assert db["NSMakeRange"].params == (("loc", "NSUInteger"), ("len", "NSUInteger"))
    assert db["NSMakeRange"].return_type == "NSRange"


def test_render_function_binding():
    assert render_function_binding(
        FunctionSignature(name="NSLog", return_type="()", params=(("format", "id"),), variadic=True)
    ) == "    pub fn NSLog(format: id, ...);"
    assert render_function_binding(
        FunctionSignature(name="NSPageSize", return_type="NSUInteger", params=())
    ) == "    pub fn NSPageSize() -> NSUInteger;"
    assert render_function_binding(
        FunctionSignature(name="NSVariadicOnly", return_type="()", params=(), variadic=True)
    ) == "    pub fn NSVariadicOnly(...);"


def test_parse_signatures_skips_malformed_entries():
    db = parse_signatures(
        '{"signatures": ['
        '{"name": "A", "return_type": "id", "params": [["x", "id"]]},'
        '{"name": "B", "return_type": "id", "params": [["x"]]},'
        '{"name": "", "return_type": "id", "params": []},'
        '{"name": "A", "return_type": "Class", "params": []}'
        "]}"
    )
    assert list(db) == ["A"]
    assert db["A"].return_type == "id"
    assert db["A"].variadic is False


@pytest.mark.parametrize("text", ["not json", "[]", '{"signatures": {}}'])
def test_parse_signatures_rejects_bad_tables(text: str):
    import objcgen.errors

    with pytest.raises(objcgen.errors.InputUnreadableError):
        parse_signatures(text)


def test_generate_stub_bindings_sample(sample_tbd_v3: str):
    stubs = parse_tbd(sample_tbd_v3)
    assert stubs is not None
    out = generate_stub_bindings(stubs)
    assert out == "\n".join(
        [
            "// Exports of /System/Library/Frameworks/Foundation.framework/Foundation",
            'unsafe extern "C" {',
            "    pub fn NSLog(format: id, ...);",
            "    pub fn NSStringFromClass(aClass: Class) -> id;",
            "    pub fn NSMakeRange(loc: NSUInteger, len: NSUInteger) -> NSRange;",
            "    pub static kCFCoreFoundationVersionNumber: id;",
            "}",
            "",
        ]
    )


def test_generate_stub_bindings_dedups_and_uses_given_table():
    stubs = StubExportSet(version=4, symbols=["_my_open", "_my_open", "_my_close", "_kMyKey", "_kMyKey"])
    db = {"my_open": FunctionSignature(name="my_open", return_type="i32", params=(("path", "*const i8"),))}
    out = generate_stub_bindings(stubs, signatures=db)
    assert out.count("pub fn my_open(path: *const i8) -> i32;") == 1
    assert "my_close" not in out
    assert out.count("pub static kMyKey: id;") == 1
    assert not out.startswith("//")


def test_generate_stub_bindings_empty():
    stubs = StubExportSet(version=3, symbols=["_OBJC_CLASS_$_Foo", "_UIThing"])
    assert generate_stub_bindings(stubs, signatures={}) == ""


def test_constants_are_not_counted_as_unknown_functions(caplog: pytest.LogCaptureFixture):
    stubs = StubExportSet(version=4, symbols=["_kMyKey", "_kOtherKey", "_my_close"])
    with caplog.at_level("DEBUG", logger="objcgen.bindgen"):
        out = generate_stub_bindings(stubs, signatures={})
    assert "pub static kMyKey: id;" in out
    assert "1 function symbol(s) without a known signature" in caplog.text
