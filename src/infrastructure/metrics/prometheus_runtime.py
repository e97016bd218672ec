"""
エクスポータ自身のメトリクスを prometheus-client で記録する MetricsRegistry と、
`/metrics` エンドポイントの起動ヘルパ。
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

from prometheus_client import (
    CollectorRegistry,
    Counter as PrometheusCounter,
    Histogram as PrometheusHistogram,
    start_http_server,
)

from .protocols import Counter, Histogram, MetricsRegistry

LOGGER = logging.getLogger("query_result_exporter.metrics")

MetricKey = tuple[str, str, tuple[str, ...]]


class _LabeledAdapter:
    def __init__(self, metric: Any) -> None:
        self._metric = metric

    def _resolve(self, labels: Mapping[str, str] | None) -> Any:
        return self._metric.labels(**labels) if labels else self._metric


class _CounterAdapter(_LabeledAdapter, Counter):
    def inc(self, value: float = 1.0, labels: Mapping[str, str] | None = None) -> None:
        self._resolve(labels).inc(value)


class _HistogramAdapter(_LabeledAdapter, Histogram):
    def observe(self, value: float, labels: Mapping[str, str] | None = None) -> None:
        self._resolve(labels).observe(value)


@dataclass
class PrometheusMetricsRegistry(MetricsRegistry):
    """
    prometheus-client を利用する MetricsRegistry 実装。

    同じ (種別, 名前, ラベル名集合) の要求には同一のメトリクスを返す。
    histogram_buckets にメトリクス名があればそのバケット境界を使う。
    """

    registry: CollectorRegistry
    histogram_buckets: Mapping[str, Sequence[float]] | None = None

    _metrics: dict[MetricKey, Any] = field(default_factory=dict, init=False)

    def counter(self, name: str, documentation: str, labels: tuple[str, ...] | None = None) -> Counter:
        def _build(label_names: tuple[str, ...]) -> PrometheusCounter:
            return PrometheusCounter(name, documentation, labelnames=label_names, registry=self.registry)

        return _CounterAdapter(self._get_or_create("counter", name, labels, _build))

    def histogram(self, name: str, documentation: str, labels: tuple[str, ...] | None = None) -> Histogram:
        buckets = (self.histogram_buckets or {}).get(name)

        def _build(label_names: tuple[str, ...]) -> PrometheusHistogram:
            if buckets:
                return PrometheusHistogram(
                    name,
                    documentation,
                    labelnames=label_names,
                    buckets=tuple(float(boundary) for boundary in buckets),
                    registry=self.registry,
                )
            return PrometheusHistogram(name, documentation, labelnames=label_names, registry=self.registry)

        return _HistogramAdapter(self._get_or_create("histogram", name, labels, _build))

    def _get_or_create(
        self,
        kind: str,
        name: str,
        labels: Sequence[str] | None,
        factory: Callable[[tuple[str, ...]], Any],
    ) -> Any:
        label_names = tuple(sorted(labels or ()))
        key = (kind, name, label_names)
        metric = self._metrics.get(key)
        if metric is None:
            metric = factory(label_names)
            self._metrics[key] = metric
        return metric


@dataclass
class MetricsEndpoint:
    """
    起動済みの `/metrics` HTTP サーバ。
    """

    host: str
    port: int
    server: Any
    thread: threading.Thread

    def close(self, timeout: float = 5.0) -> None:
        self.server.shutdown()
        self.server.server_close()
        self.thread.join(timeout)
        LOGGER.info("Stopped metrics endpoint on %s:%d", self.host, self.port)


def start_metrics_http_server(
    registry: CollectorRegistry,
    *,
    host: str,
    port: int,
) -> MetricsEndpoint | None:
    """
    registry の内容を `/metrics` で公開する HTTP サーバをデーモンスレッドで起動する。
    port が 0 以下の場合はサーバを起動しない。
    """

    if port <= 0:
        return None
    server, thread = start_http_server(port, addr=host, registry=registry)
    LOGGER.info("Serving metrics on %s:%d", host, port)
    return MetricsEndpoint(host=host, port=port, server=server, thread=thread)
