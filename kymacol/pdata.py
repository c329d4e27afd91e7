"""In-memory metric data model: resources, scopes, metrics and data points."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any


class MetricType(enum.Enum):
    """Kind of a metric's data."""

    GAUGE = "gauge"
    SUM = "sum"


@dataclass
class Resource:
    """The entity that produced a set of metrics, described by attributes."""

    attributes: dict[str, Any] = field(default_factory=dict)


@dataclass
class NumberDataPoint:
    """A single numeric observation with timestamps in nanoseconds."""

    value: int | float = 0
    timestamp: int = 0
    start_timestamp: int = 0
    attributes: dict[str, Any] = field(default_factory=dict)


@dataclass
class Metric:
    """A named metric holding its data points."""

    name: str = ""
    description: str = ""
    unit: str = ""
    type: MetricType = MetricType.GAUGE
    data_points: list[NumberDataPoint] = field(default_factory=list)


@dataclass
class ScopeMetrics:
    """Metrics produced by one instrumentation scope."""

    name: str = ""
    version: str = ""
    metrics: list[Metric] = field(default_factory=list)


@dataclass
class ResourceMetrics:
    """Metrics grouped under one resource."""

    resource: Resource = field(default_factory=Resource)
    scope_metrics: list[ScopeMetrics] = field(default_factory=list)


@dataclass
class Metrics:
    """A batch of metrics for any number of resources."""

    resource_metrics: list[ResourceMetrics] = field(default_factory=list)

    def data_point_count(self) -> int:
        """Total number of data points across all resources, scopes and metrics."""
        return sum(
            len(metric.data_points)
            for rm in self.resource_metrics
            for scope in rm.scope_metrics
            for metric in scope.metrics
        )

    def append_resource_metrics(self) -> ResourceMetrics:
        """Append an empty ResourceMetrics and return it."""
        rm = ResourceMetrics()
        self.resource_metrics.append(rm)
        return rm