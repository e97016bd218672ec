"""
クエリを実行し、結果をゲージ系列へ反映するユースケース。
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Protocol, Sequence

from application import observability
from application.services.metric_registry import MetricRegistry
from application.services.reaper import StaleMetricReaper
from application.services.result_processor import ResultProcessor
from domain.models import QueryDefinition, ResultRow
from domain.value_objects import FacetKey

LOGGER = logging.getLogger("query_result_exporter.refresh")


class QueryExecutor(Protocol):
    """
    クエリ定義を実行し、結果行を返す。
    """

    def fetch(self, definition: QueryDefinition) -> Sequence[ResultRow]:
        ...


@dataclass(frozen=True)
class RefreshResult:
    """
    1 バッチの処理結果。
    """

    query: str
    row_count: int
    touched: frozenset[FacetKey]
    reaped: frozenset[FacetKey]
    duration_seconds: float


class QueryRefreshUseCase(Protocol):
    def refresh(self, definition: QueryDefinition) -> RefreshResult:
        ...


class QueryRefreshService(QueryRefreshUseCase):
    """
    fetch → process → reap を 1 バッチとして実行する。

    同一クエリのバッチは MetricSet.refresh_lock で直列化する。
    処理に失敗した場合は reap を行わず、既存の系列をそのまま残して例外を再送出する。
    """

    def __init__(
        self,
        *,
        executor: QueryExecutor,
        registry: MetricRegistry,
        processor: ResultProcessor | None = None,
        reaper: StaleMetricReaper | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._executor = executor
        self._registry = registry
        self._processor = processor or ResultProcessor()
        self._reaper = reaper or StaleMetricReaper()
        self._clock = clock or time.perf_counter

    @property
    def registry(self) -> MetricRegistry:
        return self._registry

    def refresh(self, definition: QueryDefinition) -> RefreshResult:
        name = definition.name
        metric_set = self._registry.metric_set(definition.spec)

        with metric_set.refresh_lock:
            start = self._clock()
            with observability.telemetry_span("query.refresh", {"query": name}):
                try:
                    rows = self._executor.fetch(definition)
                    touched = self._processor.process(definition.spec, rows, metric_set)
                except Exception as exc:
                    observability.metrics_recorder.increment_refresh_failures(name, type(exc).__name__)
                    LOGGER.error("Query refresh failed. query=%s error=%s", name, exc)
                    raise
                reaped = self._reaper.reap(metric_set, touched)
            duration = self._clock() - start
            observability.metrics_recorder.observe_refresh_duration(name, duration)

        LOGGER.info(
            "Query refreshed. query=%s rows=%d series=%d reaped=%d duration_seconds=%.3f",
            name,
            len(rows),
            len(touched),
            len(reaped),
            duration,
        )
        return RefreshResult(
            query=name,
            row_count=len(rows),
            touched=touched,
            reaped=reaped,
            duration_seconds=duration,
        )
