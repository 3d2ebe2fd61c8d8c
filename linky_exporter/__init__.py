"""Prometheus exporter for the Linky meter's TIC telemetry stream."""

__version__ = "1.0.0"
