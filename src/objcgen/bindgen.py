from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .classdump import ClassRecord, MethodRecord, parse_class_dump_file
from .encoding import (
    DOUBLE,
    FLOAT,
    AggregateRef,
    EncodedType,
    MethodSignature,
    decode_signature,
    render_type,
)
from .errors import MalformedSignatureError, UnrenderableIdentifierError
from .signatures import FunctionSignature, load_signatures, render_function_binding
from .tbd import StubExportSet, is_constant_symbol

logger = logging.getLogger(__name__)

MSG_SEND = "objc_msgSend"
MSG_SEND_STRET = "objc_msgSend_stret"
MSG_SEND_FPRET = "objc_msgSend_fpret"

_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_NON_IDENT_RE = re.compile(r"[^A-Za-z0-9_]")

_CLASS_NAME_SUBSTITUTIONS = (
    (".", "_"),
    ("-", "_"),
    (" ", "_"),
    ("+", "Plus"),
    ("$", "Dollar"),
    ("@", "At"),
)

_SELECTOR_SUBSTITUTIONS = (
    (":", "_"),
    ("-", "_"),
    ("+", "plus_"),
    ("$", "dollar_"),
    (".", "_"),
)

RUST_KEYWORDS = frozenset(
    {
        "abstract", "as", "async", "await", "become", "box", "break", "const", "continue",
        "crate", "do", "dyn", "else", "enum", "extern", "false", "final", "fn", "for", "if",
        "impl", "in", "let", "loop", "macro", "match", "mod", "move", "mut", "override",
        "priv", "pub", "ref", "return", "self", "Self", "static", "struct", "super", "trait",
        "true", "try", "type", "typeof", "union", "unsafe", "unsized", "use", "virtual",
        "where", "while", "yield",
    }
)

# Names every class unit defines itself.
_ACCESSOR_NAME = "class"
_STRING_HELPER_NAMES = ("from_str", "utf8_string")


@dataclass(frozen=True)
class BindgenOptions:
    # Rust module providing id/Class/SEL and the objc_msgSend entry points.
    runtime_module: str = "crate::objc"
    # Class that receives the hand-written text conversion helpers.
    string_class: str = "NSString"


def sanitize_class_name(name: str) -> str:
    """Map an Objective-C class name to a Rust type identifier.

    Raises UnrenderableIdentifierError when no valid identifier results.
    """
    out = name
    for old, new in _CLASS_NAME_SUBSTITUTIONS:
        out = out.replace(old, new)
    if not out or out[0].isdigit():
        raise UnrenderableIdentifierError(f"class name {name!r} has no identifier form")
    if not _IDENT_RE.match(out):
        raise UnrenderableIdentifierError(f"class name {name!r} contains unsupported characters")
    return out


def sanitize_selector(selector: str) -> str:
    """Map a selector such as ``init:with:`` to a Rust method name (``init_with``)."""
    out = selector
    for old, new in _SELECTOR_SUBSTITUTIONS:
        out = out.replace(old, new)
    out = _NON_IDENT_RE.sub("_", out).strip("_")
    if not out:
        raise UnrenderableIdentifierError(f"selector {selector!r} has no identifier form")
    if out[0].isdigit():
        out = f"_{out}"
    if out in RUST_KEYWORDS:
        out = f"{out}_"
    return out


def dispatch_selector(name: str) -> str:
    """Rebuild the runtime selector string from a dumped method name."""
    if ":" not in name:
        return name.strip()
    segments = name.split(":")
    return "".join(f"{seg.strip()}:" for seg in segments[:-1]) + segments[-1].strip()


def dispatch_function(return_type: EncodedType) -> str:
    """Pick the objc_msgSend variant for a return type's calling convention."""
    if isinstance(return_type, AggregateRef):
        return MSG_SEND_STRET
    if return_type in (FLOAT, DOUBLE):
        return MSG_SEND_FPRET
    return MSG_SEND


def method_signature(method: MethodRecord) -> MethodSignature:
    sig = decode_signature(method.type_encoding)
    if sig is None:
        raise MalformedSignatureError(f"unparseable encoding: {method.type_encoding}")
    if len(sig.arg_types) < 2:
        raise MalformedSignatureError(
            f"expected receiver and selector arguments, got {len(sig.arg_types)}: {method.type_encoding}"
        )
    return sig


def _rust_byte_str(s: str) -> str:
    out: list[str] = []
    for b in s.encode("utf-8"):
        ch = chr(b)
        if ch in {"\\", '"'}:
            out.append("\\" + ch)
        elif 0x20 <= b < 0x7F:
            out.append(ch)
        else:
            out.append(f"\\x{b:02x}")
    return "".join(out)


def _rust_str(s: str) -> str:
    out: list[str] = []
    for ch in s:
        if ch in {"\\", '"'}:
            out.append("\\" + ch)
        elif 0x20 <= ord(ch) < 0x7F:
            out.append(ch)
        else:
            out.append(f"\\u{{{ord(ch):x}}}")
    return "".join(out)


def _one_line(s: str) -> str:
    return " ".join(s.split())


def _preamble(opts: BindgenOptions) -> list[str]:
    return [
        "// Auto-generated Objective-C bindings from runtime introspection",
        "// DO NOT EDIT - regenerate with class_dump",
        "",
        f"use {opts.runtime_module}::{{",
        "    id, Class, SEL, objc_getClass, sel_registerName,",
        "    objc_ivar, objc_method, objc_method_description, objc_property_t,",
        "};",
        "use std::ffi::CString;",
        "use core::ffi::c_void;",
        "",
        "// Essential Foundation C functions",
        '#[cfg_attr(all(target_vendor = "apple", feature = "runtime"),',
        '           link(name = "Foundation", kind = "framework"))]',
        'unsafe extern "C" {',
        "    pub fn NSLog(format: id, ...);",
        "    pub fn NSClassFromString(aClassName: id) -> Class;",
        "    pub fn NSSelectorFromString(aSelectorName: id) -> SEL;",
        "    pub fn NSStringFromClass(aClass: Class) -> id;",
        "    pub fn NSStringFromSelector(aSelector: SEL) -> id;",
        "}",
        "",
        "// Basic Foundation types",
        "pub type NSInteger = isize;",
        "pub type NSUInteger = usize;",
        "pub type CGFloat = f64;",
        "pub type NSTimeInterval = f64;",
        "",
        "#[repr(C)]",
        "#[derive(Debug, Copy, Clone, PartialEq)]",
        "pub struct NSRange {",
        "    pub location: NSUInteger,",
        "    pub length: NSUInteger,",
        "}",
        "",
        "// Common opaque Foundation types",
        "#[repr(C)]",
        "pub struct NSZone {",
        "    _private: [u8; 0],",
        "}",
        "",
        "#[repr(C)]",
        "#[derive(Debug, Copy, Clone)]",
        "pub struct NSProgressFraction {",
        "    pub completed: i64,",
        "    pub total: i64,",
        "}",
        "",
        "#[repr(C)]",
        "#[derive(Debug, Copy, Clone)]",
        "pub struct NSDecimal {",
        "    _private: [u8; 20],",
        "}",
        "",
        "#[repr(C)]",
        "#[derive(Debug, Copy, Clone)]",
        "pub struct NSFastEnumerationState {",
        "    pub state: u64,",
        "    pub itemsPtr: *mut id,",
        "    pub mutationsPtr: *mut u64,",
        "    pub extra: [u64; 5],",
        "}",
        "",
    ]


def _render_wrapper(
    lines: list[str],
    *,
    method: MethodRecord,
    fn_name: str,
    sig: MethodSignature,
    opts: BindgenOptions,
) -> None:
    params = sig.params
    ret = render_type(sig.return_type)
    arg_names = [f"arg{i}" for i in range(len(params))]
    entry = dispatch_function(sig.return_type)

    decl_args = ", ".join(["&self", *(f"{n}: {render_type(t)}" for n, t in zip(arg_names, params))])
    fn_type_args = ", ".join(["id", "SEL", *(render_type(t) for t in params)])
    call_args = ", ".join(["self.0", "sel", *arg_names])

    lines.append("")
    lines.append(f"    /// Objective-C method `{_one_line(method.name)}`")
    lines.append(f"    /// Type encoding: `{_one_line(method.type_encoding)}`")
    lines.append("    #[inline]")
    lines.append(f"    pub unsafe fn {fn_name}({decl_args}) -> {ret} {{")
    lines.append(
        f'        let sel = sel_registerName(b"{_rust_byte_str(dispatch_selector(method.name))}\\0"'
        ".as_ptr() as *const i8);"
    )
    lines.append(f'        type MsgSend = unsafe extern "C" fn({fn_type_args}) -> {ret};')
    lines.append(
        f"        let msg_send: MsgSend = std::mem::transmute({opts.runtime_module}::{entry} as *const ());"
    )
    lines.append(f"        msg_send({call_args})")
    lines.append("    }")


def _render_string_helpers(lines: list[str], opts: BindgenOptions) -> None:
    rt = opts.runtime_module
    lines.append("")
    lines.append("    /// Create an instance from a Rust str via `stringWithUTF8String:`")
    lines.append("    pub unsafe fn from_str(s: &str) -> Option<Self> {")
    lines.append("        let class = Self::class();")
    lines.append('        let sel = sel_registerName(b"stringWithUTF8String:\\0".as_ptr() as *const i8);')
    lines.append("        let c_str = CString::new(s).ok()?;")
    lines.append('        type MsgSend = unsafe extern "C" fn(Class, SEL, *const i8) -> id;')
    lines.append(f"        let msg_send: MsgSend = std::mem::transmute({rt}::{MSG_SEND} as *const ());")
    lines.append("        let result = msg_send(class, sel, c_str.as_ptr());")
    lines.append("        if result.is_null() { None } else { Some(Self(result)) }")
    lines.append("    }")
    lines.append("")
    lines.append("    /// Get the UTF-8 C string via `UTF8String`")
    lines.append("    pub unsafe fn utf8_string(&self) -> Option<*const i8> {")
    lines.append('        let sel = sel_registerName(b"UTF8String\\0".as_ptr() as *const i8);')
    lines.append('        type MsgSend = unsafe extern "C" fn(id, SEL) -> *const i8;')
    lines.append(f"        let msg_send: MsgSend = std::mem::transmute({rt}::{MSG_SEND} as *const ());")
    lines.append("        let result = msg_send(self.0, sel);")
    lines.append("        if result.is_null() { None } else { Some(result) }")
    lines.append("    }")


def _render_class(lines: list[str], cls: ClassRecord, opts: BindgenOptions) -> bool:
    try:
        rust_name = sanitize_class_name(cls.name)
    except UnrenderableIdentifierError as e:
        logger.debug("skipping class: %s", e)
        return False

    is_string_class = cls.name == opts.string_class

    lines.append("")
    lines.append(f"/// Objective-C class: {_one_line(cls.name)}")
    if cls.superclass is not None:
        lines.append(f"/// Superclass: {_one_line(cls.superclass)}")
    lines.append("#[repr(transparent)]")
    lines.append(f"pub struct {rust_name}(pub id);")
    lines.append("")
    lines.append(f"impl {rust_name} {{")
    lines.append("    /// Get the Objective-C Class object")
    lines.append(f"    pub unsafe fn {_ACCESSOR_NAME}() -> Class {{")
    lines.append(f'        let name = CString::new("{_rust_str(cls.name)}").unwrap();')
    lines.append("        objc_getClass(name.as_ptr() as *const i8)")
    lines.append("    }")

    # sanitized name -> occurrences so far; `taken` holds every fn name in this unit.
    seen: dict[str, int] = {}
    taken: set[str] = {_ACCESSOR_NAME}
    if is_string_class:
        taken.update(_STRING_HELPER_NAMES)

    for method in cls.methods:
        try:
            base = sanitize_selector(method.name)
        except UnrenderableIdentifierError as e:
            logger.debug("%s: %s", cls.name, e)
            lines.append(f"    // Skipped: {_one_line(method.name)} (no identifier form)")
            continue

        n = seen.get(base, 0)
        fn_name = base if n == 0 else f"{base}_{n}"
        while fn_name in taken:
            n += 1
            fn_name = f"{base}_{n}"
        seen[base] = n + 1
        taken.add(fn_name)

        try:
            sig = method_signature(method)
        except MalformedSignatureError as e:
            logger.debug("%s %s: %s", cls.name, method.name, e)
            lines.append(f"    // Skipped: {_one_line(method.name)} ({_one_line(str(e))})")
            continue

        _render_wrapper(lines, method=method, fn_name=fn_name, sig=sig, opts=opts)

    if is_string_class:
        _render_string_helpers(lines, opts)

    lines.append("}")
    return True


def generate_rust_bindings(classes: Iterable[ClassRecord], opts: BindgenOptions | None = None) -> str:
    """Render Rust bindings for parsed class records.

    The output depends only on `classes` and `opts`; regenerating from the
    same records yields identical text.
    """
    opts = opts or BindgenOptions()
    lines = _preamble(opts)
    total = 0
    rendered = 0
    for cls in classes:
        total += 1
        if _render_class(lines, cls, opts):
            rendered += 1
    logger.info("generated bindings for %d of %d classes", rendered, total)
    lines.append("")
    return "\n".join(lines)


def generate_stub_bindings(
    stubs: StubExportSet,
    *,
    signatures: dict[str, FunctionSignature] | None = None,
) -> str:
    """Render an `extern "C"` block for the C-level exports of a stub library.

    Functions are emitted only when their signature is known. Constants are
    emitted as opaque object references. Returns "" when nothing applies.
    """
    if signatures is None:
        signatures = load_signatures()

    decls: list[str] = []
    emitted: set[str] = set()
    unknown = 0

    for symbol in stubs.function_symbols():
        if is_constant_symbol(symbol):
            continue
        name = symbol[1:] if symbol.startswith("_") else symbol
        if name in emitted:
            continue
        sig = signatures.get(name)
        if sig is None:
            unknown += 1
            continue
        emitted.add(name)
        decls.append(render_function_binding(sig))

    for symbol in stubs.constant_symbols():
        name = symbol[1:] if symbol.startswith("_") else symbol
        if name in emitted or not _IDENT_RE.match(name):
            continue
        emitted.add(name)
        decls.append(f"    pub static {name}: id;")

    if unknown:
        logger.debug("%d function symbol(s) without a known signature", unknown)
    if not decls:
        return ""

    lines: list[str] = []
    if stubs.install_name:
        lines.append(f"// Exports of {_one_line(stubs.install_name)}")
    lines.append('unsafe extern "C" {')
    lines.extend(decls)
    lines.append("}")
    lines.append("")
    return "\n".join(lines)


def generate_from_dump_file(
    dump_path: Path,
    out_path: Path,
    opts: BindgenOptions | None = None,
) -> list[ClassRecord]:
    """Parse a class dump file and write the generated bindings to `out_path`."""
    classes = parse_class_dump_file(dump_path)
    logger.info("parsed %d Objective-C classes from %s", len(classes), dump_path)

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(generate_rust_bindings(classes, opts), encoding="utf-8")
    return classes
