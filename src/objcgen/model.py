"""MessagePack export of the parsed interface model (v1)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import msgpack

from .classdump import ClassRecord, MethodRecord, PropertyRecord
from .errors import ModelDecodeError
from .tbd import StubExportSet

MODEL_VERSION = 1


@dataclass
class InterfaceModel:
    classes: list[ClassRecord] = field(default_factory=list)
    stubs: StubExportSet | None = None


def _class_to_obj(cls: ClassRecord) -> dict[str, Any]:
    return {
        "name": cls.name,
        "superclass": cls.superclass,
        "methods": [{"name": m.name, "encoding": m.type_encoding} for m in cls.methods],
        "properties": [{"name": p.name, "attributes": p.attributes} for p in cls.properties],
    }


def _stubs_to_obj(stubs: StubExportSet) -> dict[str, Any]:
    return {
        "version": stubs.version,
        "install_name": stubs.install_name,
        "targets": list(stubs.targets),
        "symbols": list(stubs.symbols),
        "objc_classes": list(stubs.objc_classes),
        "objc_ivars": list(stubs.objc_ivars),
    }


def encode_model(model: InterfaceModel) -> bytes:
    payload: dict[str, Any] = {
        "model_version": MODEL_VERSION,
        "classes": [_class_to_obj(c) for c in model.classes],
    }
    if model.stubs is not None:
        payload["stubs"] = _stubs_to_obj(model.stubs)
    return msgpack.packb(payload, use_bin_type=True)


def _str_list(obj: dict[str, Any], key: str) -> list[str]:
    v = obj.get(key, [])
    if not isinstance(v, list) or not all(isinstance(x, str) for x in v):
        raise ModelDecodeError(f"{key}: expected list of str")
    return list(v)


def _class_from_obj(obj: Any) -> ClassRecord:
    if not isinstance(obj, dict) or not isinstance(obj.get("name"), str):
        raise ModelDecodeError("invalid class entry")
    superclass = obj.get("superclass")
    if superclass is not None and not isinstance(superclass, str):
        raise ModelDecodeError(f"class {obj['name']}: invalid superclass")

    cls = ClassRecord(name=obj["name"], superclass=superclass)
    for key in ("methods", "properties"):
        if not isinstance(obj.get(key, []), list):
            raise ModelDecodeError(f"class {cls.name}: {key}: expected list")
    for m in obj.get("methods", []):
        if not isinstance(m, dict) or not isinstance(m.get("name"), str) or not isinstance(m.get("encoding"), str):
            raise ModelDecodeError(f"class {cls.name}: invalid method entry")
        cls.methods.append(MethodRecord(name=m["name"], type_encoding=m["encoding"]))
    for p in obj.get("properties", []):
        if not isinstance(p, dict) or not isinstance(p.get("name"), str) or not isinstance(p.get("attributes"), str):
            raise ModelDecodeError(f"class {cls.name}: invalid property entry")
        cls.properties.append(PropertyRecord(name=p["name"], attributes=p["attributes"]))
    return cls


def _stubs_from_obj(obj: Any) -> StubExportSet:
    if not isinstance(obj, dict):
        raise ModelDecodeError("invalid stubs entry")
    version = obj.get("version")
    install_name = obj.get("install_name")
    if not isinstance(version, int) or isinstance(version, bool):
        raise ModelDecodeError("stubs: invalid version")
    if install_name is not None and not isinstance(install_name, str):
        raise ModelDecodeError("stubs: invalid install_name")
    return StubExportSet(
        version=version,
        install_name=install_name,
        targets=_str_list(obj, "targets"),
        symbols=_str_list(obj, "symbols"),
        objc_classes=_str_list(obj, "objc_classes"),
        objc_ivars=_str_list(obj, "objc_ivars"),
    )


def decode_model(payload: bytes) -> InterfaceModel:
    try:
        obj = msgpack.unpackb(payload, raw=False)
    except Exception as e:  # noqa: BLE001 - boundary decoding error
        raise ModelDecodeError(str(e)) from e

    if not isinstance(obj, dict):
        raise ModelDecodeError("invalid model envelope")
    if obj.get("model_version") != MODEL_VERSION:
        raise ModelDecodeError(f"unsupported model_version: {obj.get('model_version')}")

    classes = obj.get("classes", [])
    if not isinstance(classes, list):
        raise ModelDecodeError("classes: expected list")
    stubs = obj.get("stubs")
    return InterfaceModel(
        classes=[_class_from_obj(c) for c in classes],
        stubs=_stubs_from_obj(stubs) if stubs is not None else None,
    )
