"""objcgen: Rust bindings from Objective-C class dumps, TBD stubs and type encodings."""

from __future__ import annotations

from . import errors
from .bindgen import BindgenOptions, generate_rust_bindings, generate_stub_bindings
from .classdump import parse_class_dump
from .encoding import decode_one, decode_signature, render_type
from .tbd import parse_tbd

__all__ = [
    "BindgenOptions",
    "decode_one",
    "decode_signature",
    "errors",
    "generate_rust_bindings",
    "generate_stub_bindings",
    "parse_class_dump",
    "parse_tbd",
    "render_type",
]
