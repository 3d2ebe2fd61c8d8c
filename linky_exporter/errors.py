# linky_exporter/errors.py


class TicError(Exception):
    """Base class for failures that cost a whole collection cycle."""


class TicStreamError(TicError):
    """The byte source could not be opened, or a read failed before the frame ended."""


class TicFrameError(TicError):
    """A frame ended without carrying a single field line."""


class TicDecodeWarning(UserWarning):
    """A field line was dropped because its payload did not decode (strict mode only)."""
