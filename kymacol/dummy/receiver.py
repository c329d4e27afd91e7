"""Receiver that periodically generates dummy gauges."""

from __future__ import annotations

import logging
import socket
import threading
from collections.abc import Callable
from dataclasses import dataclass

from ..duration import DurationError, format_duration, parse_duration
from ..pdata import Metric, Metrics, MetricType, NumberDataPoint, ScopeMetrics

MetricsConsumer = Callable[[Metrics], None]

DEFAULT_INTERVAL = format_duration(60.0)
_MIN_INTERVAL_MINUTES = 1
_DATA_POINTS = 5


class IntervalParseError(ValueError):
    """The interval is not a valid duration string."""


class IntervalTooShortError(ValueError):
    """The interval is shorter than one minute."""


@dataclass
class DummyConfig:
    """Settings of the dummy receiver."""

    interval: str = DEFAULT_INTERVAL

    def validate(self) -> float:
        """Check the settings and return the interval in seconds."""
        try:
            interval = parse_duration(self.interval)
        except DurationError as exc:
            raise IntervalParseError(f"interval must be a valid duration string: {exc}") from exc
        if interval / 60 < _MIN_INTERVAL_MINUTES:
            raise IntervalTooShortError(
                "when defined, the interval has to be set to at least 1 minute (1m)"
            )
        return interval


class DummyReceiver:
    """Generates a dummy gauge on every tick and hands it to the consumer."""

    def __init__(
        self,
        config: DummyConfig,
        consumer: MetricsConsumer,
        logger: logging.Logger | None = None,
    ):
        self.config = config
        self._consumer = consumer
        self._logger = logger or logging.getLogger(__name__)
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        """Whether the generating thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start generating metrics in a background thread."""
        self._logger.info("Starting dummy receiver (interval=%s)", self.config.interval)
        try:
            interval = parse_duration(self.config.interval)
        except DurationError as exc:
            raise IntervalParseError(f"failed to parse interval: {exc}") from exc
        if interval <= 0:
            raise IntervalParseError(f"failed to parse interval: {self.config.interval!r} is not positive")

        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(interval, self._stop), name="dummy-receiver", daemon=True
        )
        self._thread.start()

    def shutdown(self) -> None:
        """Stop generating and wait for the background thread to finish."""
        self._logger.info("Shutting down dummy receiver")
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def _run(self, interval: float, stop: threading.Event) -> None:
        while not stop.wait(interval):
            try:
                metrics = self.generate_metric()
            except OSError as exc:
                self._logger.error("Failed to generate metric: %s", exc)
                continue
            try:
                self._consumer(metrics)
            except Exception as exc:  # the consumer is foreign code; keep ticking
                self._logger.error("next consumer failed: %s", exc)

    def generate_metric(self) -> Metrics:
        """Build one batch: a gauge named "dummy" with five data points for this host."""
        self._logger.debug("Generating metric")
        host = socket.gethostname()

        metrics = Metrics()
        resource_metrics = metrics.append_resource_metrics()
        resource_metrics.resource.attributes["k8s.cluster.name"] = "test-cluster"
        metric = Metric(
            name="dummy",
            description="a dummy gauge",
            type=MetricType.GAUGE,
            data_points=[
                NumberDataPoint(value=i, attributes={"host": host}) for i in range(_DATA_POINTS)
            ],
        )
        resource_metrics.scope_metrics.append(ScopeMetrics(metrics=[metric]))
        return metrics


def create_default_config() -> DummyConfig:
    """Return the default settings: an interval of one minute."""
    return DummyConfig(interval=DEFAULT_INTERVAL)


def create_metrics_receiver(
    config: DummyConfig,
    consumer: MetricsConsumer,
    logger: logging.Logger | None = None,
) -> DummyReceiver:
    """Create a dummy receiver feeding the given consumer."""
    if not isinstance(config, DummyConfig):
        raise TypeError("invalid configuration")
    return DummyReceiver(config, consumer, logger)