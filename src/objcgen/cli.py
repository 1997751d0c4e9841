from __future__ import annotations

import argparse
import importlib.metadata
import logging
import os
from pathlib import Path

_LOG_LEVEL_ENV = "OBJCGEN_LOG_LEVEL"


def _configure_logging(level_name: str | None) -> None:
    name = (level_name or os.environ.get(_LOG_LEVEL_ENV) or "WARNING").upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        raise SystemExit(f"unknown log level: {name}")
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="objcgen")
    parser.add_argument(
        "--log-level",
        default=None,
        help=f"Logging level (default: {_LOG_LEVEL_ENV} or WARNING).",
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("version", help="Print objcgen version.")

    p_gen = sub.add_parser("gen", help="Generate Rust bindings from a class dump.")
    p_gen.add_argument("--dump", required=True, help="Class dump text file.")
    p_gen.add_argument("--out", required=True, help="Output .rs file path.")
    p_gen.add_argument(
        "--string-class",
        default="NSString",
        help="Class that receives the from_str/utf8_string helpers.",
    )
    p_gen.add_argument(
        "--runtime-module",
        default="crate::objc",
        help="Rust module path providing id/Class/SEL and objc_msgSend.",
    )

    p_tbd = sub.add_parser("tbd", help="List exports of a TBD stub library.")
    p_tbd.add_argument("--file", required=True, help="TBD file path.")
    view = p_tbd.add_mutually_exclusive_group()
    view.add_argument("--functions", action="store_true", help="Only symbols classified as functions.")
    view.add_argument("--constants", action="store_true", help="Only symbols classified as constants.")
    view.add_argument("--classes", action="store_true", help="Only Objective-C class names.")

    p_stubs = sub.add_parser("stubs", help="Generate an extern block from a TBD stub library.")
    p_stubs.add_argument("--file", required=True, help="TBD file path.")
    p_stubs.add_argument("--out", required=True, help="Output .rs file path.")

    p_model = sub.add_parser("model", help="Write the parsed interface model as MessagePack.")
    p_model.add_argument("--out", required=True, help="Output file path.")
    p_model.add_argument("--dump", default=None, help="Class dump text file (optional).")
    p_model.add_argument("--tbd", default=None, help="TBD file path (optional).")

    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    if args.cmd == "version":
        try:
            print(importlib.metadata.version("objcgen"))
        except importlib.metadata.PackageNotFoundError:
            print("0.0.0")
        return

    if args.cmd == "gen":
        from .bindgen import BindgenOptions, generate_from_dump_file

        classes = generate_from_dump_file(
            Path(args.dump),
            Path(args.out),
            BindgenOptions(runtime_module=args.runtime_module, string_class=args.string_class),
        )
        print(f"parsed {len(classes)} classes -> {args.out}")
        return

    if args.cmd in {"tbd", "stubs"}:
        from .tbd import parse_tbd_file

        stubs = parse_tbd_file(Path(args.file))
        if stubs is None:
            raise SystemExit(f"not a supported TBD document: {args.file}")

        if args.cmd == "stubs":
            from .bindgen import generate_stub_bindings

            out = Path(args.out)
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_text(generate_stub_bindings(stubs), encoding="utf-8")
            return

        if args.functions:
            items = stubs.function_symbols()
        elif args.constants:
            items = stubs.constant_symbols()
        elif args.classes:
            items = stubs.objc_classes
        else:
            items = stubs.symbols
        for item in items:
            print(item)
        return

    if args.cmd == "model":
        from .classdump import parse_class_dump_file
        from .model import InterfaceModel, encode_model
        from .tbd import parse_tbd_file

        if args.dump is None and args.tbd is None:
            raise SystemExit("model requires --dump and/or --tbd")

        model = InterfaceModel()
        if args.dump is not None:
            model.classes = parse_class_dump_file(Path(args.dump))
        if args.tbd is not None:
            model.stubs = parse_tbd_file(Path(args.tbd))
            if model.stubs is None:
                raise SystemExit(f"not a supported TBD document: {args.tbd}")

        out = Path(args.out)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_bytes(encode_model(model))
        return
