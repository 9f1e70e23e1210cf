import logging
from pathlib import Path

import pytest

import photo_importer.main as main_module
from photo_importer import config
from photo_importer.main import build_parser, config_from_args, main
from conftest import FakeProvider, fixed_hash


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    # Drop the handlers main() installed; leave pytest's capture handlers alone
    root = logging.getLogger()
    for handler in list(root.handlers):
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()


def test_missing_roots_prints_usage(capsys, monkeypatch):
    def explode(*args, **kwargs):
        raise AssertionError("importer must not run")

    monkeypatch.setattr(main_module, "MediaImporter", explode)

    assert main(["--to", "/tmp"]) == 0
    out = capsys.readouterr().out
    assert "--from" in out
    assert "Sample usage" in out


def test_config_from_args(tmp_path):
    args = build_parser().parse_args([
        "--from", str(tmp_path), "--to", str(tmp_path / "out"),
        "--move", "--dry-run", "--max-procs", "3", "--exiftool",
    ])
    cfg = config_from_args(args)

    assert cfg.src_root == tmp_path.resolve()
    assert cfg.move and cfg.dry_run
    assert cfg.max_procs == 3
    assert cfg.backend == config.BACKEND_EXIFTOOL
    assert not cfg.exiftool_fallback


def test_try_exiftool_keeps_native_first(tmp_path):
    args = build_parser().parse_args(["--from", str(tmp_path), "--to", str(tmp_path), "--exiftool", "--try-exiftool"])
    cfg = config_from_args(args)
    assert cfg.backend == config.BACKEND_NATIVE
    assert cfg.exiftool_fallback


def test_defaults(tmp_path):
    cfg = config_from_args(build_parser().parse_args(["--from", str(tmp_path), "--to", str(tmp_path)]))
    assert not cfg.move and not cfg.dry_run
    assert cfg.max_procs >= 1
    assert cfg.backend == config.BACKEND_NATIVE


def test_rejects_zero_workers(tmp_path):
    with pytest.raises(SystemExit):
        main(["--from", str(tmp_path), "--to", str(tmp_path), "--max-procs", "0"])


def test_bad_source_exits_nonzero(tmp_path):
    assert main(["--from", str(tmp_path / "nope"), "--to", str(tmp_path)]) == 1


def test_full_run_prints_summary(monkeypatch, capsys, tmp_path):
    src = tmp_path / "card"
    dest = tmp_path / "library"
    src.mkdir()
    dest.mkdir()
    (src / "IMG_0001.JPG").write_bytes(b"jpeg")
    (src / "readme.txt").write_text("hi")

    provider = FakeProvider({"IMG_0001.JPG": {"Date/Time Original": "2021:05:07 14:30:00"}})
    real_importer = main_module.MediaImporter
    monkeypatch.setattr(main_module, "MediaImporter",
                        lambda cfg: real_importer(cfg, provider, fixed_hash("ab12")))

    log_file = tmp_path / "import.log"
    code = main(["--from", str(src), "--to", str(dest), "--log-file", str(log_file)])

    assert code == 0
    assert (dest / "2021" / "05-May" / "07-Friday" / "143000-AB12.jpg").exists()
    out = capsys.readouterr().out
    assert "Copied: 1, Moved: 0, Skipped: 0, Without metadata: 1, Failed: 0" in out
    assert "Copying file" in log_file.read_text()
