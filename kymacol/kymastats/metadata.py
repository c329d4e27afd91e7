"""Metric and resource metadata of the Kyma resource status receiver."""

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

TYPE = "kymastats"
SCOPE_NAME = "kymacol.receiver.kymastats"
METRICS_STABILITY = "alpha"

STATUS_CONDITIONS_METRIC = "kyma.resource.status.conditions"
STATUS_STATE_METRIC = "kyma.resource.status.state"

K8S_NAMESPACE_NAME = "k8s.namespace.name"
K8S_RESOURCE_GROUP = "k8s.resource.group"
K8S_RESOURCE_KIND = "k8s.resource.kind"
K8S_RESOURCE_NAME = "k8s.resource.name"
K8S_RESOURCE_VERSION = "k8s.resource.version"

RESOURCE_ATTRIBUTES = (
    K8S_NAMESPACE_NAME,
    K8S_RESOURCE_GROUP,
    K8S_RESOURCE_KIND,
    K8S_RESOURCE_NAME,
    K8S_RESOURCE_VERSION,
)

STATUS_CONDITIONS = MetricDefinition(
    name=STATUS_CONDITIONS_METRIC,
    description=(
        "The resource status conditions. Possible metric values for condition status are "
        "'True' => 1, 'False' => 0, and -1 for other status values."
    ),
    unit="1",
    type=MetricType.GAUGE,
    attributes=("reason", "status", "type"),
)

STATUS_STATE = MetricDefinition(
    name=STATUS_STATE_METRIC,
    description=(
        "The resource status state, metric value is 1 for the last scraped resource "
        "status state, including state as metric attribute."
    ),
    unit="1",
    type=MetricType.GAUGE,
    attributes=("state",),
)


def default_resource_attributes_config() -> dict[str, ResourceAttributeConfig]:
    """Default resource attribute settings: every attribute is enabled."""
    return {name: ResourceAttributeConfig(enabled=True) for name in RESOURCE_ATTRIBUTES}


def default_metrics_builder_config() -> MetricsBuilderConfig:
    """Default builder settings: both status metrics are enabled."""
    return MetricsBuilderConfig(
        metrics={
            STATUS_CONDITIONS_METRIC: MetricConfig(enabled=True),
            STATUS_STATE_METRIC: MetricConfig(enabled=True),
        },
        resource_attributes=default_resource_attributes_config(),
    )


class KymaResourceBuilder(ResourceBuilder):
    """Resource builder for the Kubernetes resource attributes."""

    def set_k8s_namespace_name(self, value: str) -> None:
        """Set the "k8s.namespace.name" attribute if enabled."""
        self.set_attribute(K8S_NAMESPACE_NAME, value)

    def set_k8s_resource_group(self, value: str) -> None:
        """Set the "k8s.resource.group" attribute if enabled."""
        self.set_attribute(K8S_RESOURCE_GROUP, value)

    def set_k8s_resource_kind(self, value: str) -> None:
        """Set the "k8s.resource.kind" attribute if enabled."""
        self.set_attribute(K8S_RESOURCE_KIND, value)

    def set_k8s_resource_name(self, value: str) -> None:
        """Set the "k8s.resource.name" attribute if enabled."""
        self.set_attribute(K8S_RESOURCE_NAME, value)

    def set_k8s_resource_version(self, value: str) -> None:
        """Set the "k8s.resource.version" attribute if enabled."""
        self.set_attribute(K8S_RESOURCE_VERSION, value)


class KymaMetricsBuilder(MetricsBuilder):
    """Metrics builder producing the resource status metrics."""

    def __init__(
        self,
        config: MetricsBuilderConfig | None = None,
        *options: BuilderOption,
        build_version: str = "",
    ):
        super().__init__(
            (STATUS_CONDITIONS, STATUS_STATE),
            config if config is not None else default_metrics_builder_config(),
            *options,
            scope_name=SCOPE_NAME,
            build_version=build_version,
        )

    def new_resource_builder(self) -> KymaResourceBuilder:
        """Return a resource builder for this builder's resource attributes."""
        return KymaResourceBuilder(self.config.resource_attributes)

    def record_kyma_resource_status_conditions_data_point(
        self, timestamp: int, value: int, reason: str, status: str, condition_type: str
    ) -> None:
        """Add a data point to the status conditions metric."""
        self.record_data_point(
            STATUS_CONDITIONS_METRIC,
            timestamp,
            value,
            {"reason": reason, "status": status, "type": condition_type},
        )

    def record_kyma_resource_status_state_data_point(
        self, timestamp: int, value: int, state: str
    ) -> None:
        """Add a data point to the status state metric."""
        self.record_data_point(STATUS_STATE_METRIC, timestamp, value, {"state": state})