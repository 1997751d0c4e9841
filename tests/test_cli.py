from __future__ import annotations

from pathlib import Path

import msgpack
import pytest

from objcgen.cli import main


def test_cli_gen_writes_bindings(tmp_path: Path, sample_dump: str, capsys: pytest.CaptureFixture[str]):
    dump = tmp_path / "dump.txt"
    dump.write_text(sample_dump, encoding="utf-8")
    out = tmp_path / "bindings.rs"

    main(["gen", "--dump", str(dump), "--out", str(out)])

    text = out.read_text(encoding="utf-8")
    assert "pub struct NSString(pub id);" in text
    assert "parsed 2 classes" in capsys.readouterr().out


def test_cli_tbd_views(tmp_path: Path, sample_tbd_v3: str, capsys: pytest.CaptureFixture[str]):
    tbd = tmp_path / "Foundation.tbd"
    tbd.write_text(sample_tbd_v3, encoding="utf-8")

    main(["tbd", "--file", str(tbd), "--constants"])
    assert capsys.readouterr().out.splitlines() == ["_kCFCoreFoundationVersionNumber"]

    main(["tbd", "--file", str(tbd), "--classes"])
    assert capsys.readouterr().out.splitlines() == ["NSObject", "NSString"]

    main(["tbd", "--file", str(tbd)])
    assert len(capsys.readouterr().out.splitlines()) == 5


def test_cli_tbd_rejects_unknown_format(tmp_path: Path):
    p = tmp_path / "plain.yaml"
    p.write_text("exports: []\n", encoding="utf-8")
    with pytest.raises(SystemExit, match=r"not a supported TBD document"):
        main(["tbd", "--file", str(p)])


def test_cli_stubs(tmp_path: Path, sample_tbd_v3: str):
    tbd = tmp_path / "Foundation.tbd"
    tbd.write_text(sample_tbd_v3, encoding="utf-8")
    out = tmp_path / "stubs.rs"

    main(["stubs", "--file", str(tbd), "--out", str(out)])
    assert "pub fn NSLog(format: id, ...);" in out.read_text(encoding="utf-8")


def test_cli_model(tmp_path: Path, sample_dump: str, sample_tbd_v3: str):
    dump = tmp_path / "dump.txt"
    dump.write_text(sample_dump, encoding="utf-8")
    tbd = tmp_path / "Foundation.tbd"
    tbd.write_text(sample_tbd_v3, encoding="utf-8")
    out = tmp_path / "model.msgpack"

    main(["model", "--dump", str(dump), "--tbd", str(tbd), "--out", str(out)])
    decoded = msgpack.unpackb(out.read_bytes(), raw=False)
    assert len(decoded["classes"]) == 2
    assert decoded["stubs"]["objc_classes"] == ["NSObject", "NSString"]


def test_cli_model_requires_an_input(tmp_path: Path):
    with pytest.raises(SystemExit, match=r"requires --dump and/or --tbd"):
        main(["model", "--out", str(tmp_path / "m.msgpack")])


def test_cli_rejects_unknown_log_level(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("OBJCGEN_LOG_LEVEL", "chatty")
    with pytest.raises(SystemExit, match=r"unknown log level: CHATTY"):
        main(["version"])
