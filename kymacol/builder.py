"""Configurable metrics builder that accumulates data points per resource."""

from __future__ import annotations

import copy
import re
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .pdata import Metric, Metrics, MetricType, NumberDataPoint, Resource, ResourceMetrics, ScopeMetrics

BuilderOption = Callable[["MetricsBuilder"], None]
ResourceMetricsOption = Callable[[ResourceMetrics], None]


@dataclass(frozen=True)
class FilterConfig:
    """Matches attribute values either exactly (strict) or by regular expression."""

    strict: str | None = None
    regexp: str | None = None

    def __post_init__(self) -> None:
        if (self.strict is None) == (self.regexp is None):
            raise ValueError("a filter needs exactly one of 'strict' or 'regexp'")
        if self.regexp is not None:
            try:
                re.compile(self.regexp)
            except re.error as exc:
                raise ValueError(f"invalid regexp {self.regexp!r}: {exc}") from exc

    def matches(self, value: str) -> bool:
        """Return whether the value passes this filter."""
        if self.strict is not None:
            return value == self.strict
        return re.search(self.regexp, value) is not None


@dataclass
class MetricConfig:
    """Settings of one metric."""

    enabled: bool = False
    enabled_set_by_user: bool = field(default=False, compare=False)


@dataclass
class ResourceAttributeConfig:
    """Settings of one resource attribute, including value filters."""

    enabled: bool = False
    metrics_include: tuple[FilterConfig, ...] = ()
    metrics_exclude: tuple[FilterConfig, ...] = ()
    enabled_set_by_user: bool = field(default=False, compare=False)


def _check_keys(raw: Mapping[str, Any], allowed: set[str], what: str) -> None:
    unknown = set(raw) - allowed
    if unknown:
        raise ValueError(f"unknown keys for {what}: {', '.join(sorted(unknown))}")


def _bool(raw: Mapping[str, Any], current: bool, what: str) -> bool:
    value = raw.get("enabled", current)
    if not isinstance(value, bool):
        raise ValueError(f"'enabled' of {what} must be a boolean")
    return value


def _filters(items: Any, what: str) -> tuple[FilterConfig, ...]:
    if items is None:
        return ()
    if not isinstance(items, (list, tuple)):
        raise ValueError(f"filters of {what} must be a list")
    filters = []
    for item in items:
        if isinstance(item, FilterConfig):
            filters.append(item)
            continue
        if not isinstance(item, Mapping):
            raise ValueError(f"filter of {what} must be a mapping")
        _check_keys(item, {"strict", "regexp"}, f"a filter of {what}")
        filters.append(FilterConfig(**item))
    return tuple(filters)


def _metric_config(name: str, raw: Any, current: MetricConfig) -> MetricConfig:
    if raw is None:
        return current
    if not isinstance(raw, Mapping):
        raise ValueError(f"config of metric {name!r} must be a mapping")
    _check_keys(raw, {"enabled"}, f"metric {name!r}")
    return MetricConfig(
        enabled=_bool(raw, current.enabled, f"metric {name!r}"),
        enabled_set_by_user="enabled" in raw,
    )


def _resource_attribute_config(
    name: str, raw: Any, current: ResourceAttributeConfig
) -> ResourceAttributeConfig:
    if raw is None:
        return current
    if not isinstance(raw, Mapping):
        raise ValueError(f"config of resource attribute {name!r} must be a mapping")
    what = f"resource attribute {name!r}"
    _check_keys(raw, {"enabled", "metrics_include", "metrics_exclude"}, what)
    return ResourceAttributeConfig(
        enabled=_bool(raw, current.enabled, what),
        metrics_include=_filters(raw["metrics_include"], what)
        if "metrics_include" in raw
        else current.metrics_include,
        metrics_exclude=_filters(raw["metrics_exclude"], what)
        if "metrics_exclude" in raw
        else current.metrics_exclude,
        enabled_set_by_user="enabled" in raw,
    )


@dataclass
class MetricsBuilderConfig:
    """Which metrics and resource attributes a builder produces."""

    metrics: dict[str, MetricConfig] = field(default_factory=dict)
    resource_attributes: dict[str, ResourceAttributeConfig] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], defaults: MetricsBuilderConfig) -> MetricsBuilderConfig:
        """Overlay a mapping (as loaded from YAML) on a copy of the defaults."""
        config = copy.deepcopy(defaults)
        for name, raw in (data.get("metrics") or {}).items():
            if name not in config.metrics:
                raise ValueError(f"unknown metric {name!r}")
            config.metrics[name] = _metric_config(name, raw, config.metrics[name])
        for name, raw in (data.get("resource_attributes") or {}).items():
            if name not in config.resource_attributes:
                raise ValueError(f"unknown resource attribute {name!r}")
            config.resource_attributes[name] = _resource_attribute_config(
                name, raw, config.resource_attributes[name]
            )
        return config


@dataclass(frozen=True)
class MetricDefinition:
    """Static description of a metric a builder can record."""

    name: str
    description: str = ""
    unit: str = ""
    type: MetricType = MetricType.GAUGE
    attributes: tuple[str, ...] = ()


class ResourceBuilder:
    """Collects enabled resource attributes into a Resource."""

    def __init__(self, config: Mapping[str, ResourceAttributeConfig]):
        self._config = config
        self._resource = Resource()

    def set_attribute(self, name: str, value: Any) -> None:
        """Set an attribute if it is enabled in the configuration."""
        try:
            attribute = self._config[name]
        except KeyError:
            raise ValueError(f"unknown resource attribute {name!r}") from None
        if attribute.enabled:
            self._resource.attributes[name] = value

    def emit(self) -> Resource:
        """Return the built resource and start a fresh one."""
        resource, self._resource = self._resource, Resource()
        return resource


def _matches_any(filters: Iterable[FilterConfig], value: str) -> bool:
    return any(f.matches(value) for f in filters)


class MetricsBuilder:
    """Records data points for configured metrics and emits them grouped by resource."""

    def __init__(
        self,
        definitions: Iterable[MetricDefinition],
        config: MetricsBuilderConfig,
        *options: BuilderOption,
        scope_name: str = "",
        build_version: str = "",
    ):
        self.config = config
        self.scope_name = scope_name
        self.build_version = build_version
        self.start_time = time.time_ns()
        self._definitions = {d.name: d for d in definitions}
        missing = [name for name in self._definitions if name not in config.metrics]
        if missing:
            raise ValueError(f"no configuration for metrics: {', '.join(missing)}")
        self._pending = {name: self._new_metric(d) for name, d in self._definitions.items()}
        self._buffer = Metrics()
        self._include = {
            name: attr.metrics_include
            for name, attr in config.resource_attributes.items()
            if attr.metrics_include
        }
        self._exclude = {
            name: attr.metrics_exclude
            for name, attr in config.resource_attributes.items()
            if attr.metrics_exclude
        }
        for option in options:
            option(self)

    @staticmethod
    def _new_metric(definition: MetricDefinition) -> Metric:
        return Metric(
            name=definition.name,
            description=definition.description,
            unit=definition.unit,
            type=definition.type,
        )

    def new_resource_builder(self) -> ResourceBuilder:
        """Return a resource builder bound to this builder's resource attribute config."""
        return ResourceBuilder(self.config.resource_attributes)

    def record_data_point(
        self, name: str, timestamp: int, value: int | float, attributes: Mapping[str, Any]
    ) -> None:
        """Add a data point to the named metric, if that metric is enabled."""
        try:
            definition = self._definitions[name]
        except KeyError:
            raise ValueError(f"unknown metric {name!r}") from None
        if not self.config.metrics[name].enabled:
            return
        if set(attributes) != set(definition.attributes):
            raise ValueError(
                f"metric {name!r} takes attributes {list(definition.attributes)}, got {sorted(attributes)}"
            )
        self._pending[name].data_points.append(
            NumberDataPoint(
                value=value,
                timestamp=timestamp,
                start_timestamp=self.start_time,
                attributes={key: attributes[key] for key in definition.attributes},
            )
        )

    def emit_for_resource(self, *options: ResourceMetricsOption) -> None:
        """Move the recorded metrics under a new resource into the output buffer."""
        rm = ResourceMetrics()
        scope = ScopeMetrics(name=self.scope_name, version=self.build_version)
        rm.scope_metrics.append(scope)
        for name, definition in self._definitions.items():
            metric = self._pending[name]
            if self.config.metrics[name].enabled and metric.data_points:
                scope.metrics.append(metric)
                self._pending[name] = self._new_metric(definition)

        for option in options:
            option(rm)

        attributes = rm.resource.attributes
        for attr, filters in self._include.items():
            if attr in attributes and not _matches_any(filters, str(attributes[attr])):
                return
        for attr, filters in self._exclude.items():
            if attr in attributes and _matches_any(filters, str(attributes[attr])):
                return

        if rm.scope_metrics[0].metrics:
            self._buffer.resource_metrics.append(rm)

    def emit(self, *options: ResourceMetricsOption) -> Metrics:
        """Emit the pending resource and return everything accumulated so far."""
        self.emit_for_resource(*options)
        metrics, self._buffer = self._buffer, Metrics()
        return metrics

    def reset(self, *options: BuilderOption) -> None:
        """Restart the builder's start time, then apply the options."""
        self.start_time = time.time_ns()
        for option in options:
            option(self)


def with_start_time(start: int) -> BuilderOption:
    """Builder option setting the start timestamp applied to recorded data points."""

    def apply(builder: MetricsBuilder) -> None:
        builder.start_time = start

    return apply


def with_resource(resource: Resource) -> ResourceMetricsOption:
    """Resource-metrics option setting the emitted resource to a copy of the given one."""

    def apply(rm: ResourceMetrics) -> None:
        rm.resource = Resource(dict(resource.attributes))

    return apply


def with_start_time_override(start: int) -> ResourceMetricsOption:
    """Resource-metrics option overriding the start timestamp of every data point."""

    def apply(rm: ResourceMetrics) -> None:
        for metric in rm.scope_metrics[0].metrics:
            for point in metric.data_points:
                point.start_timestamp = start

    return apply