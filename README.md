# kymacol

Two metric receivers built on a small in-memory metrics model.

- **dummy** emits a `dummy` gauge once per configured interval. The gauge has
  five integer data points with the values 0 to 4, and each point carries the
  host name as its `host` attribute. The resource carries
  `k8s.cluster.name = "test-cluster"`.
- **kymastats** lists custom resources through a client that you supply. It
  reports their `status.state` and `status.conditions` as the gauges
  `kyma.resource.status.state` and `kyma.resource.status.conditions`.

The package has no runtime dependencies.

## Installation

```
pip install .
pip install ".[test]"   # with pytest
```

## The metrics model

`kymacol.pdata` defines the model:

- `Metrics`, `ResourceMetrics`, `ScopeMetrics`, `Metric`, `NumberDataPoint` and `Resource`, all dataclasses.
- The `MetricType` enum, with the members `GAUGE` and `SUM`.

`Metrics` has two helpers:

- `Metrics.data_point_count()` counts every data point in a batch.
- `Metrics.append_resource_metrics()` appends an empty `ResourceMetrics` and returns it.

`kymacol.duration` converts duration strings:

- `parse_duration(text)` reads strings such as `"1m"`, `"30s"` or `"1h2m3.5s"` and returns seconds as a float. Malformed text raises `DurationError`, which is a `ValueError`.
- `format_duration(seconds)` writes a length in seconds back in that form. For example, `60.0` becomes `"1m0s"`.

## Dummy receiver

```python
from kymacol.dummy.receiver import DummyConfig, create_metrics_receiver

batches = []
config = DummyConfig(interval="1m")
config.validate()
receiver = create_metrics_receiver(config, batches.append)
receiver.start()
# ... one Metrics batch is passed to the consumer per interval ...
receiver.shutdown()
```

`DummyConfig.validate()` returns the interval in seconds. It raises one of two errors:

- `IntervalParseError` when the interval is not a valid duration.
- `IntervalTooShortError` when the interval is shorter than one minute.

`create_default_config()` returns a config with the interval `"1m0s"`.

`DummyReceiver.start()` checks only that the interval parses and is positive. It does not apply the one-minute minimum; call `validate()` for that. The receiver then generates in a background thread. If the consumer raises an error, the receiver logs it and keeps running.

`DummyReceiver.generate_metric()` builds one batch on demand.

`create_metrics_receiver` raises `TypeError` for anything that is not a `DummyConfig`.

## Kyma stats receiver

```python
from kymacol.kymastats.scraper import ResourceConfig, create_default_config, create_metrics_receiver

class Client:
    def list_resources(self, resource):
        # return the objects of this group/version/resource as plain dicts
        return []

config = create_default_config()
config.resources = [ResourceConfig("operator.kyma-project.io", "v1alpha1", "telemetries")]
config.validate()

batches = []
receiver = create_metrics_receiver(config, batches.append, Client())
receiver.start(host=None)
# ...
receiver.shutdown()
```

### Configuration

`KymaStatsConfig` holds these fields:

- `auth_type` and `context`
- `controller`, a `ControllerConfig` with the fields `collection_interval`, `initial_delay` and `timeout`, all in seconds
- `metrics_builder`
- `resources`
- `k8s_leader_elector`

`KymaStatsConfig.validate()` raises `ConfigError` in these cases:

- `collection_interval` is not positive.
- `timeout` is negative.
- `resources` is empty.

### Scraping

`KymaStatsReceiver` does its first scrape after `initial_delay`. After that it scrapes once every `collection_interval`. If a scrape or the consumer raises an error, the receiver logs it and keeps running.

The scraping itself is done by `KymaScraper`. `KymaScraper.scrape()` and `KymaScraper.collect_resource_stats()` can also be called directly.

The scraper reads these fields from each object:

- `metadata.name`
- `metadata.namespace`
- `kind`
- `status`

It skips some input:

- An object without a `status` mapping is skipped.
- A condition that is not a mapping, or that lacks a string `type`, `status` or `reason`, is skipped.

If `list_resources` raises, the whole scrape fails with that error.

Each condition gets the value that `condition_status_to_value` gives it:

- `1` for `"True"`
- `0` for `"False"`
- `-1` for any other status

### Leader election

When `config.k8s_leader_elector` is set, `start(host)` calls `host.get_extensions()` and looks the name up in the returned mapping. The extension found there must have a `set_callback_funcs(on_leading, on_stopping)` method. From then on the scraper emits metrics only while it holds leadership.

Missing pieces raise errors:

- no extensions: `RuntimeError`
- no extension under that name: `LookupError`
- an extension without that method: `TypeError`

## Metric builders

`kymacol.builder.MetricsBuilder` collects data points per `MetricDefinition` and groups them under resources. It includes the following:

- `ResourceBuilder` sets only the resource attributes that are enabled.
- `MetricsBuilderConfig.from_mapping(data, defaults)` overlays a mapping, for example one loaded from YAML, on the defaults. It rejects unknown keys with `ValueError`.
- The `metrics_include` and `metrics_exclude` filters (`FilterConfig`, strict or regexp) decide which resources are emitted.
- The options `with_start_time`, `with_resource` and `with_start_time_override`.

The concrete builders are `DummyMetricsBuilder` (in `kymacol.dummy.metadata`) and `KymaMetricsBuilder` (in `kymacol.kymastats.metadata`).

## What the package does not do

- It has no command-line program and no collector pipeline. You call the receivers from your own code and pass a callable as the consumer.
- It does not talk to Kubernetes. It has no API client and no authentication. `auth_type` and `context` are stored but not used. You must supply the object that lists resources.
- It does not read configuration files and does not export metrics anywhere.