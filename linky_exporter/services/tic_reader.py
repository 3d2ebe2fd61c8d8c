# linky_exporter/services/tic_reader.py

from __future__ import annotations

from typing import Any, Protocol

from linky_exporter.errors import TicFrameError, TicStreamError
from linky_exporter.models.snapshot import TicSnapshot
from linky_exporter.services.tic_decoder import FieldDecoder, split_line


STX = b"\x02"
ETX = b"\x03"


class LineStream(Protocol):
    def readline(self) -> bytes: ...


# ============================================================================
# Framer
# ============================================================================

def _next_line(stream: LineStream) -> bytes:
    try:
        line = stream.readline()
    except OSError as exc:
        # serial.SerialException is an OSError.
        raise TicStreamError(f"read failed: {exc}") from exc
    if not line:
        raise TicStreamError("stream closed or read timed out")
    if not line.endswith(b"\n"):
        raise TicStreamError("read timed out mid-line")
    return line


def read_frame(stream: LineStream, decoder: FieldDecoder) -> TicSnapshot:
    """
    Consume lines until one whole frame has been decoded.

    A line holding STX opens the frame; a line holding ETX closes it. Marker
    lines and blank lines are not decoded. When a single line carries both
    markers, the start is handled first: if the frame was already open the
    ETX ends it, otherwise the ETX is the tail of a frame we joined too late.
    """
    snapshot = TicSnapshot()
    inside = False
    field_lines = 0

    while True:
        line = _next_line(stream)

        opened_here = False
        if STX in line:
            opened_here = not inside
            inside = True

        if not inside:
            continue

        if ETX in line and not opened_here:
            if field_lines == 0:
                raise TicFrameError("frame ended without any field line")
            return snapshot

        if STX in line:
            continue

        # A field line is a label followed by at least one data token.
        tokens = split_line(line)
        if not tokens[0] or len(tokens) < 2:
            continue

        field_lines += 1
        decoder.decode_line(line, snapshot)


# ============================================================================
# Reader
# ============================================================================

class TicReader:
    """
    Per-collection entry point: open the source, read one frame, close it.

    The source is reopened on every call, so an unplugged or replugged
    device is picked up again on the next collection.
    """

    def __init__(self, source: Any, log: Any, strict: bool = False):
        """
        source: SerialSource | CaptureSource
            .open() → context manager yielding a LineStream
            .describe() → text for log lines

        log: logger interface
        """
        self.source = source
        self.log = log
        self.decoder = FieldDecoder(log, strict=strict)

    def read(self) -> TicSnapshot:
        self.log.debug("TIC: reading one frame from %s", self.source.describe())
        with self.source.open() as stream:
            snapshot = read_frame(stream, self.decoder)
        self.log.debug(
            "TIC: frame decoded (%d fields, prm=%s)",
            len(snapshot.fields_seen),
            snapshot.prm or "unknown",
        )
        return snapshot
