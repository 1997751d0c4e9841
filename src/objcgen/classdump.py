"""Parse runtime class-introspection dumps.

Expected layout (leading/trailing whitespace per line is ignored)::

    @interface NSString
    Superclass: NSObject
    Methods (2):
        - length [Q16@0:8]
        - characterAtIndex: [S24@0:8Q16]
    Properties (1):
        @property length [TQ,R]
    @end
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .errors import InputUnreadableError

logger = logging.getLogger(__name__)

_INTERFACE = "@interface "
_SUPERCLASS = "Superclass: "
_METHODS = "Methods ("
_PROPERTIES = "Properties ("
_END = "@end"
_METHOD = "- "
_PROPERTY = "@property "
_ENCODING_OPEN = " ["


@dataclass(frozen=True)
class MethodRecord:
    name: str
    type_encoding: str


@dataclass(frozen=True)
class PropertyRecord:
    name: str
    attributes: str


@dataclass
class ClassRecord:
    name: str
    superclass: str | None = None
    methods: list[MethodRecord] = field(default_factory=list)
    properties: list[PropertyRecord] = field(default_factory=list)


def _split_bracketed(body: str) -> tuple[str, str] | None:
    parts = body.split(_ENCODING_OPEN, 1)
    if len(parts) != 2:
        return None
    name = parts[0].strip()
    raw = parts[1].strip()
    if raw.endswith("]"):
        raw = raw[:-1]
    return name, raw.strip()


def parse_class_dump(text: str) -> list[ClassRecord]:
    """Parse a class dump into class records, in document order.

    Lines that match no rule are ignored. A method line without a
    bracketed encoding is dropped. A record still open at end of input is
    kept.
    """
    classes: list[ClassRecord] = []
    current: ClassRecord | None = None
    in_methods = False
    in_properties = False
    dropped = 0

    for line in text.splitlines():
        line = line.strip()

        if line.startswith(_INTERFACE):
            if current is not None:
                classes.append(current)
            name = line[len(_INTERFACE) :].strip()
            current = ClassRecord(name=name)
            in_methods = False
            in_properties = False
        elif line.startswith(_SUPERCLASS):
            if current is not None:
                current.superclass = line[len(_SUPERCLASS) :].strip()
        elif line.startswith(_METHODS):
            in_methods = True
            in_properties = False
        elif line.startswith(_PROPERTIES):
            in_methods = False
            in_properties = True
        elif line == _END:
            in_methods = False
            in_properties = False
        elif in_methods and line.startswith(_METHOD):
            if current is None:
                continue
            split = _split_bracketed(line[len(_METHOD) :])
            if split is None:
                dropped += 1
                continue
            current.methods.append(MethodRecord(name=split[0], type_encoding=split[1]))
        elif in_properties and line.startswith(_PROPERTY):
            if current is None:
                continue
            body = line[len(_PROPERTY) :]
            split = _split_bracketed(body)
            if split is None:
                split = (body.strip(), "")
            current.properties.append(PropertyRecord(name=split[0], attributes=split[1]))

    if current is not None:
        classes.append(current)

    if dropped:
        logger.debug("dropped %d method line(s) without a type encoding", dropped)
    return classes


def parse_class_dump_file(path: Path) -> list[ClassRecord]:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise InputUnreadableError(f"failed to read {path}: {e}") from e
    return parse_class_dump(text)
