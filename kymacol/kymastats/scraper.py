"""Scraper and receiver turning the status of Kubernetes custom resources into metrics."""

from __future__ import annotations

import dataclasses
import logging
import threading
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from ..builder import MetricsBuilderConfig, with_resource
from ..pdata import Metrics
from .metadata import KymaMetricsBuilder, default_metrics_builder_config

MetricsConsumer = Callable[[Metrics], None]

AUTH_TYPE_SERVICE_ACCOUNT = "serviceAccount"


class ConfigError(ValueError):
    """The receiver configuration is invalid."""


class FieldNotFoundError(LookupError):
    """A required field is missing from a resource."""

    def __init__(self, field_name: str):
        super().__init__(f"field not found: {field_name}")
        self.field = field_name


class ResourceClient(Protocol):
    """Lists the objects of one resource kind as plain mappings."""

    def list_resources(self, resource: ResourceConfig) -> Iterable[Mapping[str, Any]]: ...


@dataclass(frozen=True)
class ResourceConfig:
    """A group, version and resource name identifying a resource kind."""

    group: str = ""
    version: str = ""
    resource: str = ""


@dataclass
class ControllerConfig:
    """Scrape scheduling, with durations in seconds."""

    collection_interval: float = 60.0
    initial_delay: float = 1.0
    timeout: float = 0.0

    def validate(self) -> None:
        """Raise ConfigError if the schedule cannot be used."""
        if self.collection_interval <= 0:
            raise ConfigError('"collection_interval": requires positive value')
        if self.timeout < 0:
            raise ConfigError('"timeout": requires positive value')


@dataclass
class KymaStatsConfig:
    """Settings of the Kyma resource status receiver."""

    auth_type: str = AUTH_TYPE_SERVICE_ACCOUNT
    context: str = ""
    controller: ControllerConfig = field(default_factory=ControllerConfig)
    metrics_builder: MetricsBuilderConfig = field(default_factory=default_metrics_builder_config)
    resources: list[ResourceConfig] = field(default_factory=list)
    k8s_leader_elector: str | None = None

    def validate(self) -> None:
        """Raise ConfigError if the settings are invalid."""
        self.controller.validate()
        if not self.resources:
            raise ConfigError("empty resources")


@dataclass(frozen=True)
class Condition:
    """One entry of a resource's status conditions."""

    type: str
    status: str
    reason: str


@dataclass
class ResourceStats:
    """The status information extracted from one resource."""

    namespace: str = ""
    name: str = ""
    group: str = ""
    version: str = ""
    kind: str = ""
    state: str = ""
    conditions: list[Condition] = field(default_factory=list)
    has_state: bool = False


def condition_status_to_value(status: str) -> int:
    """Map a condition status to a gauge value: True -> 1, False -> 0, else -1."""
    if status == "True":
        return 1
    if status == "False":
        return 0
    return -1


def _field(mapping: Mapping[str, Any], key: str, kind: type | tuple[type, ...], kind_name: str) -> Any:
    """Return the value under key, None if absent; raise TypeError if of the wrong type."""
    if key not in mapping:
        return None
    value = mapping[key]
    if not isinstance(value, kind):
        raise TypeError(f".{key} accessor error: {value!r} is of the type {type(value).__name__}, expected {kind_name}")
    return value


def _metadata_str(obj: Mapping[str, Any], key: str) -> str:
    metadata = obj.get("metadata")
    if isinstance(metadata, Mapping):
        value = metadata.get(key)
        if isinstance(value, str):
            return value
    return ""


def _kind(obj: Mapping[str, Any]) -> str:
    value = obj.get("kind")
    return value if isinstance(value, str) else ""


def _to_condition(raw: Any) -> Condition:
    if not isinstance(raw, Mapping):
        raise TypeError("condition is not a map")
    values = {}
    for key in ("type", "status", "reason"):
        value = _field(raw, key, str, "string")
        if value is None:
            raise FieldNotFoundError(key)
        values[key] = value
    return Condition(**values)


class KymaScraper:
    """Scrapes the status state and conditions of the configured resources."""

    def __init__(
        self,
        config: KymaStatsConfig,
        client: ResourceClient,
        logger: logging.Logger | None = None,
        build_version: str = "",
    ):
        self.config = config
        self._client = client
        self._logger = logger or logging.getLogger(__name__)
        self._builder = KymaMetricsBuilder(config.metrics_builder, build_version=build_version)
        self._should_scrape = threading.Event()

    def start(self, host: Any) -> None:
        """Enable scraping, directly or through the configured leader elector."""
        if self.config.k8s_leader_elector is None:
            self._should_scrape.set()
            return

        extensions = host.get_extensions() if host is not None else None
        if extensions is None:
            raise RuntimeError("extension list is empty")
        extension = extensions.get(self.config.k8s_leader_elector)
        if extension is None:
            raise LookupError("extension k8s leader elector not found")
        register = getattr(extension, "set_callback_funcs", None)
        if not callable(register):
            raise TypeError("referenced extension is not k8s leader elector")
        register(self._should_scrape.set, self._should_scrape.clear)

    def scrape(self) -> Metrics:
        """Collect the resource stats and return them as metrics."""
        if not self._should_scrape.is_set():
            return Metrics()

        stats = self.collect_resource_stats()
        now = time.time_ns()
        builder = self._builder

        for s in stats:
            if s.has_state:
                builder.record_kyma_resource_status_state_data_point(now, 1, s.state)

            rb = builder.new_resource_builder()
            if s.namespace:
                rb.set_k8s_namespace_name(s.namespace)
            rb.set_k8s_resource_name(s.name)
            rb.set_k8s_resource_group(s.group)
            rb.set_k8s_resource_version(s.version)
            rb.set_k8s_resource_kind(s.kind)

            for c in s.conditions:
                builder.record_kyma_resource_status_conditions_data_point(
                    now, condition_status_to_value(c.status), c.reason, c.status, c.type
                )

            builder.emit_for_resource(with_resource(rb.emit()))

        # leadership may have been lost during the scrape; avoid duplicate metrics
        if not self._should_scrape.is_set():
            return Metrics()
        return builder.emit()

    def collect_resource_stats(self) -> list[ResourceStats]:
        """List every configured resource and extract the status of each object."""
        result = []
        for resource in self.config.resources:
            try:
                items = list(self._client.list_resources(resource))
            except Exception:
                self._logger.error(
                    "Error fetching resource list (group=%s, version=%s, resource=%s)",
                    resource.group,
                    resource.version,
                    resource.resource,
                )
                raise

            for item in items:
                try:
                    stats = self._to_stats(item)
                except (TypeError, FieldNotFoundError) as exc:
                    self._logger.warning(
                        "Error converting unstructured resource to stats: %s "
                        "(name=%s, namespace=%s, kind=%s)",
                        exc,
                        _metadata_str(item, "name"),
                        _metadata_str(item, "namespace"),
                        _kind(item),
                    )
                    continue
                result.append(
                    dataclasses.replace(
                        stats, group=resource.group, version=resource.version, kind=resource.resource
                    )
                )
        return result

    def _to_stats(self, obj: Mapping[str, Any]) -> ResourceStats:
        name = _metadata_str(obj, "name")
        namespace = _metadata_str(obj, "namespace")
        kind = _kind(obj)

        status = _field(obj, "status", Mapping, "map")
        if status is None:
            raise FieldNotFoundError("status")

        try:
            state = _field(status, "state", str, "string")
        except TypeError as exc:
            self._logger.debug("Error retrieving state: state is not a string: %s (name=%s)", exc, name)
            state = None
        else:
            if state is None:
                self._logger.debug("Error retrieving state: state not found (name=%s)", name)

        stats = ResourceStats(
            namespace=namespace,
            name=name,
            kind=kind,
            state=state or "",
            has_state=state is not None,
        )

        try:
            raw_conditions = _field(status, "conditions", (list, tuple), "slice")
        except TypeError as exc:
            self._logger.debug(
                "Error retrieving conditions: conditions are not a slice: %s (name=%s)", exc, name
            )
            return stats
        if raw_conditions is None:
            self._logger.debug("Error retrieving conditions: conditions not found (name=%s)", name)
            return stats

        for raw in raw_conditions:
            try:
                stats.conditions.append(_to_condition(raw))
            except (TypeError, FieldNotFoundError) as exc:
                self._logger.warning(
                    "Error converting unstructured resource to stats, condition not supported: %s "
                    "(name=%s, namespace=%s, kind=%s)",
                    exc,
                    name,
                    namespace,
                    kind,
                )
        return stats


class KymaStatsReceiver:
    """Runs the scraper on the configured schedule and feeds the consumer."""

    def __init__(
        self,
        config: KymaStatsConfig,
        scraper: KymaScraper,
        consumer: MetricsConsumer,
        logger: logging.Logger | None = None,
    ):
        self.config = config
        self.scraper = scraper
        self._consumer = consumer
        self._logger = logger or logging.getLogger(__name__)
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        """Whether the scrape loop is alive."""
        return self._thread is not None and self._thread.is_alive()

    def start(self, host: Any) -> None:
        """Start the scraper and the scrape loop."""
        self.scraper.start(host)
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._stop,), name="kymastats-receiver", daemon=True
        )
        self._thread.start()

    def shutdown(self) -> None:
        """Stop the scrape loop and wait for it to finish."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def _run(self, stop: threading.Event) -> None:
        controller = self.config.controller
        if stop.wait(max(controller.initial_delay, 0.0)):
            return
        while True:
            self._scrape_once()
            if stop.wait(controller.collection_interval):
                return

    def _scrape_once(self) -> None:
        try:
            metrics = self.scraper.scrape()
        except Exception as exc:
            self._logger.error("Error scraping metrics: %s", exc)
            return
        try:
            self._consumer(metrics)
        except Exception as exc:
            self._logger.error("next consumer failed: %s", exc)


def create_default_config() -> KymaStatsConfig:
    """Return the default settings: service-account auth and the default schedule."""
    return KymaStatsConfig(
        auth_type=AUTH_TYPE_SERVICE_ACCOUNT,
        controller=ControllerConfig(),
        metrics_builder=default_metrics_builder_config(),
    )


def create_metrics_receiver(
    config: KymaStatsConfig,
    consumer: MetricsConsumer,
    client: ResourceClient,
    logger: logging.Logger | None = None,
) -> KymaStatsReceiver:
    """Create a receiver scraping resources through the given client."""
    if not isinstance(config, KymaStatsConfig):
        raise TypeError("invalid configuration")
    scraper = KymaScraper(config, client, logger)
    return KymaStatsReceiver(config, scraper, consumer, logger)