# linky_exporter/services/metric_projector.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from linky_exporter.models.snapshot import TicSnapshot


@dataclass(frozen=True)
class MetricFamilySpec:
    name: str
    documentation: str
    labels: Tuple[str, ...]
    kind: str = "gauge"   # gauge | counter


@dataclass(frozen=True)
class MetricSample:
    name: str
    labels: Dict[str, str]
    value: float


INDEX_FIELDS: Tuple[str, ...] = (
    "east",
    "easf01", "easf02", "easf03", "easf04", "easf05",
    "easf06", "easf07", "easf08", "easf09", "easf10",
    "easd01", "easd02", "easd03", "easd04",
    "eait",
    "erq1", "erq2", "erq3", "erq4",
)

INFO_FIELDS = ("adsc", "vtic", "date", "ngtf", "ltarf", "stge", "msg1", "msg2", "ntarf")

PEAK_FIELDS = (
    "dpm1", "dpm1_timestamp", "fpm1", "fpm1_timestamp",
    "dpm2", "dpm2_timestamp", "fpm2", "fpm2_timestamp",
    "dpm3", "dpm3_timestamp", "fpm3", "fpm3_timestamp",
)


INFO = MetricFamilySpec(
    "linky_info",
    "Meter identity and textual status",
    ("prm",) + INFO_FIELDS,
)
INDEX = MetricFamilySpec(
    "linky_index_watthours_total",
    "Energy index in Wh",
    ("prm", "index"),
    kind="counter",
)
CURRENT = MetricFamilySpec(
    "linky_current_amperes",
    "RMS current in A",
    ("prm", "phase"),
)
VOLTAGE = MetricFamilySpec(
    "linky_voltage_volts",
    "RMS voltage in V",
    ("prm", "phase"),
)
SUBSCRIBED_POWER = MetricFamilySpec(
    "linky_subscribed_power_voltamperes",
    "Subscribed apparent power in VA",
    ("prm", "type"),
)
POWER = MetricFamilySpec(
    "linky_power_voltamperes",
    "Instantaneous apparent power in VA",
    ("prm", "direction", "phase"),
)
LOAD_MANAGEMENT = MetricFamilySpec(
    "linky_load_management_info",
    "Mobile peak periods announced by the provider",
    ("prm",) + PEAK_FIELDS + ("pm_profile",),
)
RELAYS = MetricFamilySpec(
    "linky_relays",
    "Relay states, one bit per relay (0 = open, 1 = closed), only the first is physical",
    ("prm", "relay"),
)
PROVIDER_DAY = MetricFamilySpec(
    "linky_provider_day_info",
    "Provider calendar: current day, next day and next day profile",
    ("prm", "current_day", "next_day", "next_day_profile"),
)

METRIC_FAMILIES: Tuple[MetricFamilySpec, ...] = (
    INFO,
    INDEX,
    CURRENT,
    VOLTAGE,
    SUBSCRIBED_POWER,
    POWER,
    LOAD_MANAGEMENT,
    RELAYS,
    PROVIDER_DAY,
)


def _sample(spec: MetricFamilySpec, value: float, *label_values: str) -> MetricSample:
    return MetricSample(spec.name, dict(zip(spec.labels, label_values)), float(value))


def project(snap: TicSnapshot) -> List[MetricSample]:
    """Fixed, ordered sample list for one decoded frame."""
    prm = snap.prm
    samples: List[MetricSample] = []

    samples.append(_sample(INFO, 1, prm, *(getattr(snap, f) for f in INFO_FIELDS)))

    for name in INDEX_FIELDS:
        samples.append(_sample(INDEX, getattr(snap, name), prm, name))

    for phase in (1, 2, 3):
        samples.append(_sample(CURRENT, getattr(snap, f"irms{phase}"), prm, str(phase)))
    for phase in (1, 2, 3):
        samples.append(_sample(VOLTAGE, getattr(snap, f"urms{phase}"), prm, str(phase)))

    # kVA → VA
    samples.append(_sample(SUBSCRIBED_POWER, snap.pref * 1000, prm, "pref"))
    samples.append(_sample(SUBSCRIBED_POWER, snap.pcoup * 1000, prm, "pcoup"))

    samples.append(_sample(POWER, snap.sinsts, prm, "drawn", "sum"))
    for phase in (1, 2, 3):
        samples.append(_sample(POWER, getattr(snap, f"sinsts{phase}"), prm, "drawn", str(phase)))
    samples.append(_sample(POWER, snap.sinsti, prm, "injected", "sum"))

    samples.append(
        _sample(LOAD_MANAGEMENT, 1, prm, *(getattr(snap, f) for f in PEAK_FIELDS), snap.ppointe)
    )

    samples.append(_sample(RELAYS, snap.relais, prm, "relays"))

    samples.append(_sample(PROVIDER_DAY, 1, prm, snap.njourf, snap.njourf_next, snap.pjourf_next))

    return samples
