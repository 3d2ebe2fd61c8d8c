# linky_exporter/cli.py
import argparse

from linky_exporter import __version__


def build_parser():
    parser = argparse.ArgumentParser(
        prog="linky-exporter",
        description="Prometheus exporter for the Linky meter TIC stream"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--config",
        default=None,
        help="Path to configuration file (optional)"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose debug logging"
    )

    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress log output"
    )

    # Serial settings; flags win over the config file.
    parser.add_argument("-f", "--file", dest="device", help="Serial device (default /dev/serial0)")
    parser.add_argument("-b", "--baud", type=int, help="Baud rate (default 1200)")
    parser.add_argument("--frame-size", help="Data bits: 5, 6, 7 or 8 (default 7)")
    parser.add_argument("--parity", help="N, O, E, M, S or ParityNone..ParitySpace (default E)")
    parser.add_argument("--stop-bits", help="1, 15, 2 or Stop1, Stop1Half, Stop2 (default 1)")
    parser.add_argument("--timeout", help="Read timeout in seconds, 0 blocks forever (default 10)")
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Report field values that fail to decode as warnings",
    )
    parser.add_argument(
        "--capture",
        help="Replay a recorded TIC byte stream from this file instead of the device",
    )

    # Listen settings for `serve`.
    parser.add_argument("-a", "--address", help="Listen address (default 0.0.0.0)")
    parser.add_argument("-p", "--port", type=int, help="Listen port (default 9901)")

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("serve", help="Serve /metrics (default command)")

    cmd_read = sub.add_parser("read", help="Read and print a single frame")
    cmd_read.add_argument(
        "--json",
        action="store_true",
        help="Emit JSON instead of human-readable text",
    )
    cmd_read.add_argument(
        "--all-fields",
        action="store_true",
        help="With --json, include fields absent from the frame",
    )

    return parser
