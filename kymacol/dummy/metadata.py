"""Metric and resource metadata of the dummy receiver."""

from __future__ import annotations

from ..builder import (
    BuilderOption,
    MetricConfig,
    MetricDefinition,
    MetricsBuilder,
    MetricsBuilderConfig,
    ResourceAttributeConfig,
    ResourceBuilder,
)
from ..pdata import MetricType

TYPE = "dummy"
SCOPE_NAME = "kymacol.receiver.dummy"
METRICS_STABILITY = "alpha"

DUMMY_METRIC = "dummy"
K8S_CLUSTER_NAME = "k8s.cluster.name"

DUMMY = MetricDefinition(
    name=DUMMY_METRIC,
    description="a dummy gauge",
    unit="{ event }",
    type=MetricType.GAUGE,
    attributes=("host",),
)


def default_resource_attributes_config() -> dict[str, ResourceAttributeConfig]:
    """Default resource attribute settings: the cluster name is disabled."""
    return {K8S_CLUSTER_NAME: ResourceAttributeConfig(enabled=False)}


def default_metrics_builder_config() -> MetricsBuilderConfig:
    """Default builder settings: the dummy metric is enabled."""
    return MetricsBuilderConfig(
        metrics={DUMMY_METRIC: MetricConfig(enabled=True)},
        resource_attributes=default_resource_attributes_config(),
    )


class DummyResourceBuilder(ResourceBuilder):
    """Resource builder for the dummy receiver's resource attributes."""

    def set_k8s_cluster_name(self, value: str) -> None:
        """Set the "k8s.cluster.name" attribute if enabled."""
        self.set_attribute(K8S_CLUSTER_NAME, value)


class DummyMetricsBuilder(MetricsBuilder):
    """Metrics builder producing the dummy gauge."""

    def __init__(
        self,
        config: MetricsBuilderConfig | None = None,
        *options: BuilderOption,
        build_version: str = "",
    ):
        super().__init__(
            (DUMMY,),
            config if config is not None else default_metrics_builder_config(),
            *options,
            scope_name=SCOPE_NAME,
            build_version=build_version,
        )

    def new_resource_builder(self) -> DummyResourceBuilder:
        """Return a resource builder for this builder's resource attributes."""
        return DummyResourceBuilder(self.config.resource_attributes)

    def record_dummy_data_point(self, timestamp: int, value: int, host: str) -> None:
        """Add a data point to the dummy metric."""
        self.record_data_point(DUMMY_METRIC, timestamp, value, {"host": host})