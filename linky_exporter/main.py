# linky_exporter/main.py

import sys
from dataclasses import replace

from .cli import build_parser
from .config import (
    AppConfig,
    Config,
    parse_frame_size,
    parse_parity,
    parse_stop_bits,
    parse_timeout,
)
from .errors import TicError
from .logging import ConsoleLog, get_logger

from .services.collector import LinkyCollector
from .services.exporter import LinkyExporter
from .services.output_formatter import emit_human, emit_json
from .services.serial_source import CaptureSource, SerialSource
from .services.tic_reader import TicReader


def apply_overrides(app_cfg: AppConfig, args) -> AppConfig:
    """Command-line flags take precedence over the config file."""
    serial_kwargs = {}
    if args.device:
        serial_kwargs["device"] = args.device
    if args.baud is not None:
        serial_kwargs["baud_rate"] = args.baud
    if args.frame_size is not None:
        serial_kwargs["frame_size"] = parse_frame_size(args.frame_size)
    if args.parity is not None:
        serial_kwargs["parity"] = parse_parity(args.parity)
    if args.stop_bits is not None:
        serial_kwargs["stop_bits"] = parse_stop_bits(args.stop_bits)
    if args.timeout is not None:
        serial_kwargs["timeout"] = parse_timeout(args.timeout)

    exporter_kwargs = {}
    if args.address:
        exporter_kwargs["address"] = args.address
    if args.port is not None:
        exporter_kwargs["port"] = args.port

    decoder = app_cfg.decoder
    if args.strict is not None:
        decoder = replace(decoder, strict=args.strict)

    simulation = app_cfg.simulation
    if args.capture:
        simulation = replace(simulation, capture=args.capture)

    return replace(
        app_cfg,
        serial=replace(app_cfg.serial, **serial_kwargs),
        exporter=replace(app_cfg.exporter, **exporter_kwargs),
        decoder=decoder,
        simulation=simulation,
    )


def build_reader(app_cfg: AppConfig, log) -> TicReader:
    if app_cfg.simulation.capture:
        source = CaptureSource(app_cfg.simulation.capture, get_logger("source"))
    else:
        source = SerialSource(app_cfg.serial, get_logger("source"))
    return TicReader(source, get_logger("tic"), strict=app_cfg.decoder.strict)


def run_read(reader: TicReader, log, as_json: bool = False, all_fields: bool = False) -> int:
    try:
        snapshot = reader.read()
    except TicError as exc:
        log.error("Unable to read telemetry information: %s", exc)
        return 1
    if as_json:
        emit_json(snapshot, all_fields=all_fields)
    else:
        emit_human(snapshot)
    return 0


def run_serve(app_cfg: AppConfig, reader: TicReader, log) -> int:
    collector = LinkyCollector(reader, get_logger("collector"))
    exporter = LinkyExporter(app_cfg.exporter, collector, log)
    if app_cfg.serial.timeout is None and not app_cfg.simulation.capture:
        log.warning("Serial timeout disabled; a silent meter will stall scrapes indefinitely.")
    try:
        exporter.run()
    except KeyboardInterrupt:
        log.info("Interrupted, shutting down")
    return 0


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    command = args.command or "serve"

    try:
        app_cfg = apply_overrides(Config.load(args.config), args)
        console = ConsoleLog(
            level="DEBUG" if args.debug else app_cfg.logging.console_level,
            quiet=args.quiet or app_cfg.logging.console_quiet,
            debug_modules=app_cfg.logging.debug_modules,
        )
    except FileNotFoundError as exc:
        print(exc, file=sys.stderr)
        return 2
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 3

    log = console.setup()

    reader = build_reader(app_cfg, log)
    log.debug("Using %s", reader.source.describe())

    if command == "read":
        return run_read(reader, log, as_json=args.json, all_fields=args.all_fields)
    if command == "serve":
        return run_serve(app_cfg, reader, log)
    raise ValueError(f"Unsupported command: {command}")


if __name__ == "__main__":
    sys.exit(main())
