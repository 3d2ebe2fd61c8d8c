# linky_exporter/services/collector.py

from __future__ import annotations

import threading
from typing import Any, Dict, Iterator, List

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily
from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector

from linky_exporter.errors import TicError
from linky_exporter.services.metric_projector import (
    METRIC_FAMILIES,
    MetricFamilySpec,
    MetricSample,
    project,
)


def _new_family(spec: MetricFamilySpec) -> Metric:
    if spec.kind == "counter":
        return CounterMetricFamily(spec.name, spec.documentation, labels=spec.labels)
    return GaugeMetricFamily(spec.name, spec.documentation, labels=spec.labels)


def build_families(samples: List[MetricSample]) -> List[Metric]:
    """Group projected samples into their families, in METRIC_FAMILIES order."""
    families: Dict[str, Metric] = {}
    specs = {spec.name: spec for spec in METRIC_FAMILIES}
    for spec in METRIC_FAMILIES:
        families[spec.name] = _new_family(spec)
    for sample in samples:
        spec = specs[sample.name]
        families[spec.name].add_metric([sample.labels[label] for label in spec.labels], sample.value)
    return list(families.values())


class LinkyCollector(Collector):
    """
    Custom collector: every scrape reads one fresh frame from the meter.

    A failed read is logged and the scrape returns no Linky samples; the
    next scrape starts over. Reads are serialized so that two scrapes never
    share the serial device.
    """

    def __init__(self, reader: Any, log: Any):
        self.reader = reader
        self.log = log
        self._lock = threading.Lock()

    def describe(self) -> Iterator[Metric]:
        # Lets the registry check names without touching the device.
        for spec in METRIC_FAMILIES:
            yield _new_family(spec)

    def collect(self) -> Iterator[Metric]:
        with self._lock:
            try:
                snapshot = self.reader.read()
            except TicError as exc:
                self.log.error("Unable to read telemetry information: %s", exc)
                return
        yield from build_families(project(snapshot))
