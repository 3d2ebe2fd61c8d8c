from linky_exporter.models.snapshot import TicSnapshot
from linky_exporter.services.metric_projector import (
    INDEX_FIELDS,
    METRIC_FAMILIES,
    MetricSample,
    project,
)


def _by_name(samples, name):
    return [s for s in samples if s.name == name]


def test_index_sample_for_east():
    samples = project(TicSnapshot(prm="012345678901", east=1234567))

    assert MetricSample(
        name="linky_index_watthours_total",
        labels={"prm": "012345678901", "index": "east"},
        value=1234567.0,
    ) in samples


def test_fixed_sample_order_and_count():
    samples = project(TicSnapshot())

    assert len(samples) == 37
    names = [s.name for s in samples]
    family_order = [spec.name for spec in METRIC_FAMILIES]
    assert sorted(set(names), key=family_order.index) == family_order
    # Families come out grouped, in declaration order.
    assert names == sorted(names, key=family_order.index)
    assert [s.labels["index"] for s in _by_name(samples, "linky_index_watthours_total")] == list(INDEX_FIELDS)


def test_every_sample_carries_prm_and_its_family_labels():
    specs = {spec.name: spec for spec in METRIC_FAMILIES}
    for sample in project(TicSnapshot(prm="PRM-1")):
        assert sample.labels["prm"] == "PRM-1"
        assert tuple(sample.labels) == specs[sample.name].labels


def test_subscribed_power_in_va():
    samples = _by_name(project(TicSnapshot(pref=9, pcoup=6)), "linky_subscribed_power_voltamperes")
    assert [(s.labels["type"], s.value) for s in samples] == [("pref", 9000.0), ("pcoup", 6000.0)]


def test_power_directions_and_phases():
    snap = TicSnapshot(sinsts=948, sinsts1=-12, sinsts2=500, sinsts3=460, sinsti=30)
    samples = _by_name(project(snap), "linky_power_voltamperes")
    assert [(s.labels["direction"], s.labels["phase"], s.value) for s in samples] == [
        ("drawn", "sum", 948.0),
        ("drawn", "1", -12.0),
        ("drawn", "2", 500.0),
        ("drawn", "3", 460.0),
        ("injected", "sum", 30.0),
    ]


def test_current_and_voltage_per_phase():
    samples = project(TicSnapshot(irms1=4, irms2=5, irms3=6, urms1=231, urms2=232, urms3=233))
    current = _by_name(samples, "linky_current_amperes")
    voltage = _by_name(samples, "linky_voltage_volts")
    assert [(s.labels["phase"], s.value) for s in current] == [("1", 4.0), ("2", 5.0), ("3", 6.0)]
    assert [s.value for s in voltage] == [231.0, 232.0, 233.0]


def test_info_samples_are_presence_markers():
    snap = TicSnapshot(
        prm="P",
        adsc="041876097483",
        ngtf="      TEMPO     ",
        msg1="PAS DE MESSAGE",
        dpm1="00",
        dpm1_timestamp="H081225060000",
        ppointe="PM1",
        njourf="00",
        njourf_next="01",
        pjourf_next="00008001",
    )
    samples = project(snap)

    (info,) = _by_name(samples, "linky_info")
    assert info.value == 1.0
    assert info.labels["adsc"] == "041876097483"
    assert info.labels["ngtf"] == "      TEMPO     "
    assert info.labels["msg1"] == "PAS DE MESSAGE"

    (load,) = _by_name(samples, "linky_load_management_info")
    assert load.value == 1.0
    assert load.labels["dpm1"] == "00"
    assert load.labels["dpm1_timestamp"] == "H081225060000"
    assert load.labels["pm_profile"] == "PM1"

    (day,) = _by_name(samples, "linky_provider_day_info")
    assert day.value == 1.0
    assert day.labels == {"prm": "P", "current_day": "00", "next_day": "01", "next_day_profile": "00008001"}


def test_relay_state_value():
    (relay,) = _by_name(project(TicSnapshot(relais=5)), "linky_relays")
    assert relay.value == 5.0
    assert relay.labels == {"prm": "", "relay": "relays"}
