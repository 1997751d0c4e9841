from __future__ import annotations

import sys
from pathlib import Path

import objcgen


def main() -> None:
    # Usage: python examples/foundation_bindings.py <class_dump.txt> <Foundation.tbd> <out_dir>
    #
    # The class dump comes from a runtime introspection tool run on device;
    # the .tbd comes from an SDK (e.g. Foundation.framework/Foundation.tbd).
    dump_path, tbd_path, out_dir = (Path(a) for a in sys.argv[1:4])
    out_dir.mkdir(parents=True, exist_ok=True)

    classes = objcgen.parse_class_dump(dump_path.read_text(encoding="utf-8"))
    (out_dir / "objc_bindings.rs").write_text(objcgen.generate_rust_bindings(classes), encoding="utf-8")
    print(f"{len(classes)} classes -> {out_dir / 'objc_bindings.rs'}")

    stubs = objcgen.parse_tbd(tbd_path.read_text(encoding="utf-8"))
    if stubs is None:
        print(f"{tbd_path} is not a supported TBD document")
        return
    print(f"{len(stubs.function_symbols())} function symbols, {len(stubs.constant_symbols())} constants")
    (out_dir / "stub_bindings.rs").write_text(objcgen.generate_stub_bindings(stubs), encoding="utf-8")


if __name__ == "__main__":
    main()
