from __future__ import annotations

from prometheus_client import CollectorRegistry

from infrastructure.metrics.prometheus_runtime import PrometheusMetricsRegistry
from infrastructure.metrics.recorder import MetricsRecorder


def test_metrics_recorder_updates_prometheus_metrics() -> None:
    registry = CollectorRegistry()
    metrics_registry = PrometheusMetricsRegistry(registry=registry)
    MetricsRecorder.configure(metrics_registry, default_labels={"service": "test"})

    MetricsRecorder.observe_refresh_duration("hosts", 0.25)
    MetricsRecorder.increment_refresh_failures("hosts", "InvalidNumericTextError")
    MetricsRecorder.increment_series_registered("hosts", 3)
    MetricsRecorder.increment_series_reaped("hosts", 2)

    duration_sum = registry.get_sample_value(
        "query_refresh_duration_seconds_sum",
        labels={"query": "hosts", "service": "test"},
    )
    assert duration_sum == 0.25

    failures_total = registry.get_sample_value(
        "query_refresh_failures_total",
        labels={"query": "hosts", "error": "InvalidNumericTextError", "service": "test"},
    )
    assert failures_total == 1.0

    registered_total = registry.get_sample_value(
        "query_series_registered_total",
        labels={"query": "hosts", "service": "test"},
    )
    assert registered_total == 3.0

    reaped_total = registry.get_sample_value(
        "query_series_reaped_total",
        labels={"query": "hosts", "service": "test"},
    )
    assert reaped_total == 2.0

    MetricsRecorder.reset()


def test_metrics_recorder_uses_configured_histogram_buckets() -> None:
    registry = CollectorRegistry()
    metrics_registry = PrometheusMetricsRegistry(
        registry=registry,
        histogram_buckets={"query_refresh_duration_seconds": [0.1, 1.0]},
    )
    MetricsRecorder.configure(metrics_registry)

    MetricsRecorder.observe_refresh_duration("hosts", 0.5)

    assert registry.get_sample_value("query_refresh_duration_seconds_bucket", {"query": "hosts", "le": "0.1"}) == 0.0
    assert registry.get_sample_value("query_refresh_duration_seconds_bucket", {"query": "hosts", "le": "1.0"}) == 1.0

    MetricsRecorder.reset()


def test_metrics_recorder_is_noop_until_configured() -> None:
    MetricsRecorder.reset()

    MetricsRecorder.observe_refresh_duration("hosts", 1.0)
    MetricsRecorder.increment_series_registered("hosts")
