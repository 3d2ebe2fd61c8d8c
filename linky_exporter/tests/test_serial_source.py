import pytest
import serial

from linky_exporter.config import SerialConfig
from linky_exporter.errors import TicStreamError
from linky_exporter.logging import get_logger
from linky_exporter.services import serial_source
from linky_exporter.services.serial_source import SerialSource
from linky_exporter.services.tic_reader import TicReader
from linky_exporter.tests.fake_stream import FakeSerial, sample_stream


@pytest.fixture
def fake_serial(monkeypatch):
    FakeSerial.reset(sample_stream().getvalue())
    monkeypatch.setattr(serial_source.serial, "Serial", FakeSerial)
    yield FakeSerial
    FakeSerial.reset()


def _reader(cfg=None):
    source = SerialSource(cfg or SerialConfig(device="/dev/ttyTIC"), get_logger("test"))
    return TicReader(source, get_logger("test"))


def test_port_opened_with_configured_settings(fake_serial):
    cfg = SerialConfig(
        device="/dev/ttyAMA0",
        baud_rate=9600,
        frame_size=serial.SEVENBITS,
        parity=serial.PARITY_EVEN,
        stop_bits=serial.STOPBITS_ONE,
        timeout=5.0,
    )
    snap = _reader(cfg).read()

    assert snap.prm == "01234567890123"
    (port,) = fake_serial.instances
    assert port.kwargs == {
        "port": "/dev/ttyAMA0",
        "baudrate": 9600,
        "bytesize": 7,
        "parity": "E",
        "stopbits": 1,
        "timeout": 5.0,
    }
    assert port.closed


def test_device_absent_at_open(fake_serial):
    fake_serial.fail_open = serial.SerialException("[Errno 2] could not open port /dev/ttyTIC")
    with pytest.raises(TicStreamError, match="cannot open /dev/ttyTIC"):
        _reader().read()
    assert fake_serial.instances == []


def test_device_disconnected_mid_read(fake_serial):
    fake_serial.fail_after = 5
    with pytest.raises(TicStreamError, match="read failed"):
        _reader().read()
    assert fake_serial.instances[0].closed


def test_silent_device_times_out(fake_serial):
    fake_serial.data = b""
    with pytest.raises(TicStreamError, match="timed out"):
        _reader().read()
    assert fake_serial.instances[0].closed


def test_each_collection_reopens_the_device(fake_serial):
    reader = _reader()

    fake_serial.fail_open = serial.SerialException("could not open port")
    with pytest.raises(TicStreamError):
        reader.read()

    # Device plugged back in: the next collection recovers on its own.
    fake_serial.fail_open = None
    assert reader.read().east == 8391124
    assert reader.read().east == 8391124
    assert len(fake_serial.instances) == 2


def test_describe_mentions_line_settings():
    source = SerialSource(SerialConfig(device="/dev/serial0"), get_logger("test"))
    assert source.describe() == "/dev/serial0 (1200 7E1)"
