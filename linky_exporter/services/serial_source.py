# linky_exporter/services/serial_source.py

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

import serial

from linky_exporter.config import SerialConfig
from linky_exporter.errors import TicStreamError


class SerialSource:
    """Opens the meter's serial device, one fresh handle per collection."""

    def __init__(self, serial_cfg: SerialConfig, log: Any):
        self.cfg = serial_cfg
        self.log = log

    def describe(self) -> str:
        c = self.cfg
        return f"{c.device} ({c.baud_rate} {c.frame_size}{c.parity}{c.stop_bits})"

    @contextmanager
    def open(self) -> Iterator[serial.Serial]:
        c = self.cfg
        try:
            port = serial.Serial(
                port=c.device,
                baudrate=c.baud_rate,
                bytesize=c.frame_size,
                parity=c.parity,
                stopbits=c.stop_bits,
                timeout=c.timeout,
            )
        except (serial.SerialException, ValueError) as exc:
            raise TicStreamError(f"cannot open {c.device}: {exc}") from exc

        try:
            yield port
        finally:
            try:
                port.close()
            except serial.SerialException as exc:
                self.log.debug("%s: close failed: %s", c.device, exc)


class CaptureSource:
    """Replays a recorded TIC byte stream from a file instead of a device."""

    def __init__(self, path: str, log: Any):
        self.path = Path(path).expanduser()
        self.log = log

    def describe(self) -> str:
        return f"capture {self.path}"

    @contextmanager
    def open(self) -> Iterator[Any]:
        try:
            fh = self.path.open("rb")
        except OSError as exc:
            raise TicStreamError(f"cannot open capture {self.path}: {exc}") from exc
        with fh:
            yield fh
