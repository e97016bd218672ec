"""
エクスポータ自身の稼働状況（リフレッシュ時間・失敗数・系列の登録/解除数）を記録する。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from .protocols import Counter, Histogram, MetricsRegistry


@dataclass(frozen=True)
class _QueryMetrics:
    refresh_duration: Histogram
    refresh_failures: Counter
    series_registered: Counter
    series_reaped: Counter

    @classmethod
    def register(cls, registry: MetricsRegistry, base_labels: tuple[str, ...]) -> "_QueryMetrics":
        per_query = base_labels + ("query",)
        return cls(
            refresh_duration=registry.histogram(
                "query_refresh_duration_seconds",
                "Duration of a query refresh (fetch, process and reap) in seconds",
                labels=per_query,
            ),
            refresh_failures=registry.counter(
                "query_refresh_failures",
                "Number of query refreshes aborted by an error",
                labels=per_query + ("error",),
            ),
            series_registered=registry.counter(
                "query_series_registered",
                "Number of result series registered",
                labels=per_query,
            ),
            series_reaped=registry.counter(
                "query_series_reaped",
                "Number of stale result series unregistered",
                labels=per_query,
            ),
        )


class MetricsRecorder:
    """
    プロセス全体で共有するメトリクス記録ヘルパ。configure 前の呼び出しは無視する。

    default_labels（environment 等）は全メトリクスのラベルに付与する。
    """

    _metrics: _QueryMetrics | None = None
    _default_labels: Mapping[str, str] = {}

    @classmethod
    def configure(
        cls,
        registry: MetricsRegistry,
        *,
        default_labels: Mapping[str, str] | None = None,
    ) -> None:
        cls._default_labels = dict(default_labels or {})
        cls._metrics = _QueryMetrics.register(registry, tuple(cls._default_labels))

    @classmethod
    def _labels(cls, **labels: str) -> Mapping[str, str]:
        return {**cls._default_labels, **labels}

    @classmethod
    def observe_refresh_duration(cls, query: str, duration_seconds: float) -> None:
        if cls._metrics is None:
            return
        cls._metrics.refresh_duration.observe(duration_seconds, labels=cls._labels(query=query))

    @classmethod
    def increment_refresh_failures(cls, query: str, error: str) -> None:
        if cls._metrics is None:
            return
        cls._metrics.refresh_failures.inc(labels=cls._labels(query=query, error=error))

    @classmethod
    def increment_series_registered(cls, query: str, count: int = 1) -> None:
        if cls._metrics is None or count <= 0:
            return
        cls._metrics.series_registered.inc(float(count), labels=cls._labels(query=query))

    @classmethod
    def increment_series_reaped(cls, query: str, count: int) -> None:
        if cls._metrics is None or count <= 0:
            return
        cls._metrics.series_reaped.inc(float(count), labels=cls._labels(query=query))

    @classmethod
    def reset(cls) -> None:
        cls._metrics = None
        cls._default_labels = {}
