import json
import logging

import pytest

from linky_exporter.cli import build_parser
from linky_exporter.config import Config
from linky_exporter.main import apply_overrides, build_reader, main
from linky_exporter.services.serial_source import CaptureSource, SerialSource
from linky_exporter.tests.fake_stream import sample_stream


@pytest.fixture(autouse=True)
def restore_root():
    root = logging.getLogger()
    orig_handlers = list(root.handlers)
    orig_level = root.level
    yield
    root.handlers.clear()
    root.handlers.extend(orig_handlers)
    root.setLevel(orig_level)


@pytest.fixture
def capture(tmp_path):
    path = tmp_path / "linky.tic"
    path.write_bytes(sample_stream().getvalue())
    return path


def test_read_json_from_capture(capture, capsys):
    rc = main(["--quiet", "--capture", str(capture), "read", "--json"])
    assert rc == 0

    payload = json.loads(capsys.readouterr().out)["snapshot"]
    assert payload["prm"] == "01234567890123"
    assert payload["east"] == 8391124
    assert payload["sinsts1"] == -12
    assert payload["dpm1_timestamp"] == "H081225060000"
    assert payload["pjourf_next"].startswith("00008001")
    assert "erq1" not in payload


def test_read_json_all_fields(capture, capsys):
    assert main(["--quiet", "--capture", str(capture), "read", "--json", "--all-fields"]) == 0
    payload = json.loads(capsys.readouterr().out)["snapshot"]
    assert payload["erq1"] == 0
    assert "fields_seen" not in payload


def test_read_human_from_capture(capture, capsys):
    assert main(["--quiet", "--capture", str(capture), "read"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("[01234567890123] meter=041876097483")
    assert "EAST=8391124Wh" in out
    assert "relays closed: 1" in out


def test_read_failure_exit_code(tmp_path, capsys):
    rc = main(["--quiet", "--capture", str(tmp_path / "absent.tic"), "read"])
    assert rc == 1
    assert capsys.readouterr().out == ""


def test_bad_parity_exit_code(capsys):
    assert main(["--parity", "X", "read"]) == 3
    assert "parity" in capsys.readouterr().err


def test_missing_config_exit_code(tmp_path):
    assert main(["--config", str(tmp_path / "absent.conf"), "read"]) == 2


def test_flags_override_config_file(tmp_path):
    conf = tmp_path / "linky.conf"
    conf.write_text("[serial]\ndevice = /dev/ttyUSB0\nbaud_rate = 1200\n[exporter]\nport = 9000\n")
    args = build_parser().parse_args(
        ["--config", str(conf), "-b", "9600", "--timeout", "2.5", "--strict", "-p", "9100", "serve"]
    )
    cfg = apply_overrides(Config.load(args.config), args)

    assert cfg.serial.device == "/dev/ttyUSB0"
    assert cfg.serial.baud_rate == 9600
    assert cfg.serial.timeout == 2.5
    assert cfg.exporter.port == 9100
    assert cfg.decoder.strict is True


def test_reader_source_selection(capture):
    args = build_parser().parse_args(["-f", "/dev/ttyAMA0"])
    cfg = apply_overrides(Config.load(None), args)
    assert isinstance(build_reader(cfg, logging.getLogger("test")).source, SerialSource)

    args = build_parser().parse_args(["--capture", str(capture)])
    cfg = apply_overrides(Config.load(None), args)
    assert isinstance(build_reader(cfg, logging.getLogger("test")).source, CaptureSource)


def test_listen_flags_without_subcommand():
    args = build_parser().parse_args(["-f", "/dev/ttyUSB0", "-a", "127.0.0.1", "-p", "9902"])
    cfg = apply_overrides(Config.load(None), args)

    assert args.command is None
    assert cfg.serial.device == "/dev/ttyUSB0"
    assert cfg.exporter.address == "127.0.0.1"
    assert cfg.exporter.port == 9902


def test_listen_flags_are_accepted_with_read(capture, capsys):
    assert main(["--quiet", "-p", "9902", "--capture", str(capture), "read", "--json"]) == 0
    assert json.loads(capsys.readouterr().out)["snapshot"]["prm"] == "01234567890123"
