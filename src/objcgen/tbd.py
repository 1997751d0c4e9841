"""TAPI text-based stub library (`.tbd`) parsing.

Only the export stanzas are read. Each stanza contributes its `symbols`,
`objc-classes` and `objc-ivars` lists to one flattened `StubExportSet`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import InputUnreadableError

logger = logging.getLogger(__name__)

_V3_MARKER = "!tapi-tbd-v3"
_V4_MARKER = "!tapi-tbd-v4"
_GENERIC_HEADER = "--- !tapi-tbd"

# tbd-version -> stanza key holding the architecture/target list
_TARGET_KEYS = {3: "archs", 4: "targets"}

_LINKER_DIRECTIVE = "$ld$"
_RUNTIME_INFIX = "OBJC_"
_FUNCTION_PREFIXES = ("NS", "CF")


class _SchemaMismatch(Exception):
    pass


class _TbdLoader(yaml.SafeLoader):
    pass


# Plain scalars stay strings: symbol lists may hold names such as `YES` or `On`.
_TbdLoader.yaml_implicit_resolvers = {}


def _construct_tagged(loader: yaml.SafeLoader, tag_suffix: str, node: yaml.Node) -> Any:
    # Documents are tagged `!tapi-tbd`, `!tapi-tbd-v3`, ...; treat the tag as a plain mapping.
    if isinstance(node, yaml.MappingNode):
        return loader.construct_mapping(node, deep=True)
    if isinstance(node, yaml.SequenceNode):
        return loader.construct_sequence(node, deep=True)
    return loader.construct_scalar(node)


_TbdLoader.add_multi_constructor("!", _construct_tagged)


@dataclass
class StubExportSet:
    version: int
    install_name: str | None = None
    targets: list[str] = field(default_factory=list)
    symbols: list[str] = field(default_factory=list)
    objc_classes: list[str] = field(default_factory=list)
    objc_ivars: list[str] = field(default_factory=list)

    def function_symbols(self) -> list[str]:
        return [s for s in self.symbols if is_function_symbol(s)]

    def constant_symbols(self) -> list[str]:
        return [s for s in self.symbols if is_constant_symbol(s)]


def _comparison_name(symbol: str) -> str:
    return symbol[1:] if symbol.startswith("_") else symbol


def is_excluded_symbol(symbol: str) -> bool:
    return symbol.startswith(_LINKER_DIRECTIVE) or _RUNTIME_INFIX in symbol


def _has_function_prefix(name: str) -> bool:
    return name.startswith(_FUNCTION_PREFIXES)


def is_function_symbol(symbol: str) -> bool:
    if is_excluded_symbol(symbol):
        return False
    name = _comparison_name(symbol)
    return _has_function_prefix(name) or (name[:1].islower() and name[:1].isalpha())


def is_constant_symbol(symbol: str) -> bool:
    if is_excluded_symbol(symbol):
        return False
    name = _comparison_name(symbol)
    if not (len(name) >= 2 and name[0] == "k" and name[1].isupper()):
        return False
    # A platform prefix followed by mixed case reads as a function name.
    if _has_function_prefix(name) and any(c.islower() for c in name[2:]):
        return False
    return True


def classify_symbol(symbol: str) -> set[str]:
    """Return the derived views `symbol` belongs to ("function", "constant").

    Best-effort: a symbol may land in neither view or, for contrived
    names, in both.
    """
    kinds: set[str] = set()
    if is_function_symbol(symbol):
        kinds.add("function")
    if is_constant_symbol(symbol):
        kinds.add("constant")
    return kinds


def _string_list(stanza: dict[str, Any], key: str) -> list[str]:
    v = stanza.get(key)
    if v is None or v == "":
        return []
    if not isinstance(v, list) or not all(isinstance(x, str) for x in v):
        raise _SchemaMismatch(f"{key}: expected a list of strings")
    return list(v)


def _load_document(text: str) -> dict[str, Any]:
    # The first document describes the library itself; later ones are
    # inlined re-exported libraries.
    try:
        doc = next(yaml.load_all(text, Loader=_TbdLoader), None)
    except yaml.YAMLError as e:
        raise _SchemaMismatch(f"invalid YAML: {e}") from e
    if not isinstance(doc, dict):
        raise _SchemaMismatch("top-level document is not a mapping")
    return doc


def _parse_version(text: str, hint: int) -> StubExportSet:
    doc = _load_document(text)

    version = doc.get("tbd-version")
    version = int(version) if isinstance(version, str) and version.isdigit() else hint
    target_key = _TARGET_KEYS.get(version, _TARGET_KEYS[hint])

    install_name = doc.get("install-name")
    out = StubExportSet(
        version=version,
        install_name=install_name if isinstance(install_name, str) else None,
    )

    exports = doc.get("exports")
    if exports is None or exports == "":
        return out
    if not isinstance(exports, list):
        raise _SchemaMismatch("exports: expected a list")

    for stanza in exports:
        if not isinstance(stanza, dict):
            raise _SchemaMismatch("exports: expected a list of mappings")
        for t in _string_list(stanza, target_key):
            if t not in out.targets:
                out.targets.append(t)
        out.symbols.extend(_string_list(stanza, "symbols"))
        out.objc_classes.extend(_string_list(stanza, "objc-classes"))
        out.objc_ivars.extend(_string_list(stanza, "objc-ivars"))
    return out


def parse_tbd(text: str) -> StubExportSet | None:
    """Parse a TBD document.

    Returns None when no supported version marker is present, or when every
    matching version fails to deserialize. Callers treat None as "not this
    format".
    """
    first_line = text.split("\n", 1)[0].strip()
    attempts: list[int] = []
    # `--- !tapi-tbd-v4` also carries the generic prefix; it belongs to v4 only.
    generic = text.startswith(_GENERIC_HEADER) and first_line != f"--- {_V4_MARKER}"
    if _V3_MARKER in text or generic:
        attempts.append(3)
    if _V4_MARKER in text:
        attempts.append(4)

    for hint in attempts:
        try:
            return _parse_version(text, hint)
        except _SchemaMismatch as e:
            logger.debug("tbd v%d: %s", hint, e)
    return None


def parse_tbd_file(path: Path) -> StubExportSet | None:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise InputUnreadableError(f"failed to read {path}: {e}") from e
    return parse_tbd(text)
