import pytest

from kymacol.builder import MetricConfig, MetricsBuilderConfig, ResourceAttributeConfig, with_resource, with_start_time
from kymacol.kymastats.metadata import (
    SCOPE_NAME,
    KymaMetricsBuilder,
    KymaResourceBuilder,
    default_metrics_builder_config,
    default_resource_attributes_config,
)
from kymacol.pdata import MetricType

ATTRS = [
    "k8s.namespace.name",
    "k8s.resource.group",
    "k8s.resource.kind",
    "k8s.resource.name",
    "k8s.resource.version",
]
METRICS = ["kyma.resource.status.conditions", "kyma.resource.status.state"]


def _all(enabled):
    return {
        "metrics": {name: {"enabled": enabled} for name in METRICS},
        "resource_attributes": {name: {"enabled": enabled} for name in ATTRS},
    }


CONFIGS = {
    "default": {},
    "all_set": _all(True),
    "none_set": _all(False),
    "filter_set_include": {
        "resource_attributes": {
            name: {"enabled": True, "metrics_include": [{"regexp": ".*"}]} for name in ATTRS
        }
    },
    "filter_set_exclude": {
        "resource_attributes": {
            name: {"enabled": True, "metrics_exclude": [{"strict": f"{name}-val"}]} for name in ATTRS
        }
    },
}


def load_config(name):
    return MetricsBuilderConfig.from_mapping(CONFIGS[name], default_metrics_builder_config())


def load_resource_attributes(name):
    return load_config(name).resource_attributes


def _expected(enabled):
    return MetricsBuilderConfig(
        metrics={name: MetricConfig(enabled=enabled) for name in METRICS},
        resource_attributes={name: ResourceAttributeConfig(enabled=enabled) for name in ATTRS},
    )


@pytest.mark.parametrize(
    "name, want",
    [
        ("default", default_metrics_builder_config()),
        ("all_set", _expected(True)),
        ("none_set", _expected(False)),
    ],
)
def test_metrics_builder_config(name, want):
    assert load_config(name) == want


@pytest.mark.parametrize(
    "name, want",
    [
        ("default", default_resource_attributes_config()),
        ("all_set", {n: ResourceAttributeConfig(enabled=True) for n in ATTRS}),
        ("none_set", {n: ResourceAttributeConfig(enabled=False) for n in ATTRS}),
    ],
)
def test_resource_attributes_config(name, want):
    assert load_resource_attributes(name) == want


def test_user_set_flag_is_tracked():
    cfg = load_config("none_set")
    assert cfg.metrics[METRICS[0]].enabled_set_by_user is True
    assert default_metrics_builder_config().metrics[METRICS[0]].enabled_set_by_user is False


def test_unknown_metric_in_config_rejected():
    with pytest.raises(ValueError):
        MetricsBuilderConfig.from_mapping(
            {"metrics": {"nope": {"enabled": True}}}, default_metrics_builder_config()
        )


@pytest.mark.parametrize(
    "name, expect_empty",
    [
        ("default", False),
        ("all_set", False),
        ("none_set", True),
        ("filter_set_include", False),
        ("filter_set_exclude", True),
    ],
)
def test_metrics_builder(name, expect_empty):
    start = 1_000_000_000
    ts = 1_000_001_000
    mb = KymaMetricsBuilder(load_config(name), with_start_time(start))

    mb.record_kyma_resource_status_conditions_data_point(ts, 1, "reason-val", "status-val", "type-val")
    mb.record_kyma_resource_status_state_data_point(ts, 1, "state-val")

    rb = mb.new_resource_builder()
    rb.set_k8s_namespace_name("k8s.namespace.name-val")
    rb.set_k8s_resource_group("k8s.resource.group-val")
    rb.set_k8s_resource_kind("k8s.resource.kind-val")
    rb.set_k8s_resource_name("k8s.resource.name-val")
    rb.set_k8s_resource_version("k8s.resource.version-val")
    res = rb.emit()
    metrics = mb.emit(with_resource(res))

    if expect_empty:
        assert len(metrics.resource_metrics) == 0
        return

    assert len(metrics.resource_metrics) == 1
    rm = metrics.resource_metrics[0]
    assert rm.resource == res
    assert len(rm.scope_metrics) == 1
    assert rm.scope_metrics[0].name == SCOPE_NAME
    ms = rm.scope_metrics[0].metrics
    assert len(ms) == 2
    assert len({m.name for m in ms}) == 2

    by_name = {m.name: m for m in ms}
    cond = by_name["kyma.resource.status.conditions"]
    assert cond.type == MetricType.GAUGE
    assert len(cond.data_points) == 1
    assert cond.description == (
        "The resource status conditions. Possible metric values for condition status are "
        "'True' => 1, 'False' => 0, and -1 for other status values."
    )
    assert cond.unit == "1"
    dp = cond.data_points[0]
    assert dp.start_timestamp == start
    assert dp.timestamp == ts
    assert dp.value == 1
    assert isinstance(dp.value, int)
    assert dp.attributes == {"reason": "reason-val", "status": "status-val", "type": "type-val"}

    state = by_name["kyma.resource.status.state"]
    assert state.type == MetricType.GAUGE
    assert len(state.data_points) == 1
    assert state.description == (
        "The resource status state, metric value is 1 for the last scraped resource "
        "status state, including state as metric attribute."
    )
    assert state.unit == "1"
    dp = state.data_points[0]
    assert dp.start_timestamp == start
    assert dp.timestamp == ts
    assert dp.value == 1
    assert dp.attributes == {"state": "state-val"}


def test_emit_clears_buffer():
    mb = KymaMetricsBuilder()
    mb.record_kyma_resource_status_state_data_point(5, 1, "Ready")
    first = mb.emit()
    second = mb.emit()
    assert first.data_point_count() == 1
    assert second.data_point_count() == 0


def test_emit_for_resource_groups_per_resource():
    mb = KymaMetricsBuilder()
    for name in ("a", "b"):
        mb.record_kyma_resource_status_state_data_point(5, 1, "Ready")
        rb = mb.new_resource_builder()
        rb.set_k8s_resource_name(name)
        mb.emit_for_resource(with_resource(rb.emit()))
    metrics = mb.emit()
    assert [rm.resource.attributes["k8s.resource.name"] for rm in metrics.resource_metrics] == ["a", "b"]
    assert metrics.data_point_count() == 2


@pytest.mark.parametrize("name, count", [("default", 5), ("all_set", 5), ("none_set", 0)])
def test_resource_builder(name, count):
    rb = KymaResourceBuilder(load_resource_attributes(name))
    rb.set_k8s_namespace_name("k8s.namespace.name-val")
    rb.set_k8s_resource_group("k8s.resource.group-val")
    rb.set_k8s_resource_kind("k8s.resource.kind-val")
    rb.set_k8s_resource_name("k8s.resource.name-val")
    rb.set_k8s_resource_version("k8s.resource.version-val")

    res = rb.emit()
    assert len(rb.emit().attributes) == 0
    assert len(res.attributes) == count
    if count:
        assert res.attributes == {attr: f"{attr}-val" for attr in ATTRS}