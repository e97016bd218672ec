"""
直近のバッチで更新されなかった系列を解除する。
"""

from __future__ import annotations

import logging
from typing import AbstractSet

from application import observability
from domain.value_objects import FacetKey

from .metric_registry import MetricSet

LOGGER = logging.getLogger("query_result_exporter.reaper")


class StaleMetricReaper:
    """
    MetricSet の既知キーのうち touched に含まれないものを unregister する。

    ResultProcessor.process が成功したバッチに対してのみ呼び出すこと。
    """

    def reap(self, metric_set: MetricSet, touched: AbstractSet[FacetKey]) -> frozenset[FacetKey]:
        stale = metric_set.known_keys() - frozenset(touched)
        for key in sorted(stale):
            metric_set.unregister(key)

        if stale:
            LOGGER.debug("Reaped %d stale series for query %s", len(stale), metric_set.spec.name)
            observability.metrics_recorder.increment_series_reaped(metric_set.spec.name, len(stale))
        return stale
