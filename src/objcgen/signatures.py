"""Known C function signatures for symbols exported by stub libraries.

Stub descriptors only name symbols; the parameter and return types of C
functions come from this hand-maintained table.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from importlib import resources
from typing import Any

from .errors import InputUnreadableError

_DATA_FILE = "foundation_signatures.json"


@dataclass(frozen=True)
class FunctionSignature:
    name: str
    return_type: str
    params: tuple[tuple[str, str], ...]
    variadic: bool = False


def _signature_from_obj(obj: Any) -> FunctionSignature | None:
    if not isinstance(obj, dict):
        return None
    name = obj.get("name")
    ret = obj.get("return_type")
    params = obj.get("params")
    if not isinstance(name, str) or not isinstance(ret, str) or not name:
        return None
    if not isinstance(params, list):
        return None
    pairs: list[tuple[str, str]] = []
    for p in params:
        if not (isinstance(p, list) and len(p) == 2 and all(isinstance(x, str) for x in p)):
            return None
        pairs.append((p[0], p[1]))
    return FunctionSignature(
        name=name,
        return_type=ret,
        params=tuple(pairs),
        variadic=bool(obj.get("variadic", False)),
    )


def parse_signatures(text: str) -> dict[str, FunctionSignature]:
    try:
        obj = json.loads(text)
    except Exception as e:  # noqa: BLE001 - boundary parse
        raise InputUnreadableError(f"failed to parse signature table: {e}") from e
    raw = obj.get("signatures") if isinstance(obj, dict) else None
    if not isinstance(raw, list):
        raise InputUnreadableError("signature table: missing 'signatures' list")

    out: dict[str, FunctionSignature] = {}
    for item in raw:
        sig = _signature_from_obj(item)
        if sig is not None and sig.name not in out:
            out[sig.name] = sig
    return out


def load_signatures() -> dict[str, FunctionSignature]:
    """Load the packaged Foundation signature table."""
    text = resources.files("objcgen").joinpath("data").joinpath(_DATA_FILE).read_text(encoding="utf-8")
    return parse_signatures(text)


def render_function_binding(sig: FunctionSignature) -> str:
    """Render one declaration line for an `extern "C"` block."""
    parts = [f"{name}: {ty}" for name, ty in sig.params]
    if sig.variadic:
        parts.append("...")
    line = f"    pub fn {sig.name}({', '.join(parts)})"
    if sig.return_type != "()":
        line += f" -> {sig.return_type}"
    return line + ";"
