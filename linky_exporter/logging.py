from __future__ import annotations

import logging
import sys
from typing import IO, Iterable


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
APP_LOGGER = "linky"


def resolve_level(name: str) -> int:
    level = logging.getLevelName(name.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name!r}")
    return level


class _ModuleLevelFilter(logging.Filter):
    """Pass records at `level` and above, plus everything from `modules`."""

    def __init__(self, level: int, modules: Iterable[str]):
        super().__init__()
        self.level = level
        self.modules = tuple(modules)

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno >= self.level:
            return True
        return any(record.name == m or record.name.startswith(m + ".") for m in self.modules)


class ConsoleLog:
    """
    Console logging for the exporter.

    Log lines go to stderr by default so that `read --json` can own stdout.
    """

    def __init__(
        self,
        level: str = "INFO",
        quiet: bool = False,
        debug_modules: Iterable[str] | None = None,
        stream: IO[str] | None = None,
    ):
        self.level = resolve_level(level)
        self.quiet = quiet
        self.debug_modules = list(debug_modules or [])
        self.stream = stream

    def setup(self) -> logging.Logger:
        root = logging.getLogger()
        root.handlers.clear()
        root.setLevel(logging.DEBUG)

        if not self.quiet:
            handler = logging.StreamHandler(self.stream or sys.stderr)
            handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
            if self.debug_modules:
                handler.setLevel(logging.DEBUG)
                handler.addFilter(_ModuleLevelFilter(self.level, self.debug_modules))
            else:
                handler.setLevel(self.level)
            root.addHandler(handler)

        return logging.getLogger(APP_LOGGER)


def get_logger(name: str) -> logging.Logger:
    """Child of the application logger, e.g. get_logger("collector") → linky.collector."""
    if name == APP_LOGGER or name.startswith(APP_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{APP_LOGGER}.{name}")
