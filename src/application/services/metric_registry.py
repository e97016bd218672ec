"""
プロセス全体で共有するゲージ登録簿と、クエリごとの系列集合。
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Mapping

from application import observability
from domain.models import QuerySpec
from domain.services.interfaces import ExpositionBackend, GaugeHandle
from domain.value_objects import FacetKey, exposed_metric_name

LOGGER = logging.getLogger("query_result_exporter.registry")

GAUGE_DOCUMENTATION = "Result of an SQL query"


@dataclass(frozen=True)
class Series:
    """
    MetricSet 内の 1 系列。

    Attributes:
        key: ファセットから生成した識別子。
        metric_name: 公開されるメトリクス名（``query_result_`` 付き）。
        labels: 公開ラベル。
        handle: 値を更新するためのゲージ参照。
    """

    key: FacetKey
    metric_name: str
    labels: Mapping[str, str]
    handle: GaugeHandle


class MetricSet:
    """
    1 つの QuerySpec が所有する系列集合。

    登録・解除は MetricRegistry のロックで直列化し、値の更新はロックを取らない。
    ``refresh_lock`` は同一クエリのバッチが重複して走らないようにするために使う。
    """

    def __init__(self, spec: QuerySpec, *, registry: "MetricRegistry") -> None:
        self._spec = spec
        self._registry = registry
        self._series: dict[FacetKey, Series] = {}
        self.refresh_lock = threading.Lock()

    @property
    def spec(self) -> QuerySpec:
        return self._spec

    def get_or_create(self, key: FacetKey, name: str, facets: Mapping[str, str]) -> Series:
        """
        key に対応する系列を返す。未登録であればゲージを生成して登録する。

        既存の系列は name が異なっていてもそのまま返す。

        Raises:
            MetricRegistrationError: 公開基盤への登録に失敗した場合。
        """

        with self._registry.lock:
            series = self._series.get(key)
            if series is not None:
                return series

            metric_name = exposed_metric_name(name)
            labels = dict(facets)
            handle = self._registry.backend.register_gauge(metric_name, GAUGE_DOCUMENTATION, labels)
            series = Series(key=key, metric_name=metric_name, labels=labels, handle=handle)
            self._series[key] = series

        LOGGER.info("Registering metric %s with facets %s", metric_name, key)
        observability.metrics_recorder.increment_series_registered(self._spec.name)
        return series

    def set_value(self, series: Series, value: float) -> None:
        series.handle.set(value)

    def unregister(self, key: FacetKey) -> None:
        """
        系列を公開基盤と集合の双方から取り除く。

        Raises:
            KeyError: key が登録されていない場合。
        """

        with self._registry.lock:
            series = self._series[key]
            self._registry.backend.unregister_gauge(series.handle)
            del self._series[key]

        LOGGER.info("Unregistering metric %s with facets %s", series.metric_name, key)

    def known_keys(self) -> frozenset[FacetKey]:
        with self._registry.lock:
            return frozenset(self._series)

    def get(self, key: FacetKey) -> Series | None:
        with self._registry.lock:
            return self._series.get(key)

    def __len__(self) -> int:
        with self._registry.lock:
            return len(self._series)

    def __contains__(self, key: object) -> bool:
        with self._registry.lock:
            return key in self._series


class MetricRegistry:
    """
    ExpositionBackend をラップし、全 MetricSet の登録・解除を単一ロックで直列化する。
    """

    def __init__(self, backend: ExpositionBackend, *, lock: threading.Lock | None = None) -> None:
        self._backend = backend
        self._lock = lock or threading.Lock()
        self._metric_sets: dict[str, MetricSet] = {}

    @property
    def backend(self) -> ExpositionBackend:
        return self._backend

    @property
    def lock(self) -> threading.Lock:
        return self._lock

    def metric_set(self, spec: QuerySpec) -> MetricSet:
        """
        spec.name に対応する MetricSet を返す。初回呼び出し時に生成する。
        """

        with self._lock:
            metric_set = self._metric_sets.get(spec.name)
            if metric_set is None:
                metric_set = MetricSet(spec, registry=self)
                self._metric_sets[spec.name] = metric_set
            return metric_set
