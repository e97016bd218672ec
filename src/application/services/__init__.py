"""
アプリケーションサービスの公開API。
"""

from .metric_registry import GAUGE_DOCUMENTATION, MetricRegistry, MetricSet, Series
from .reaper import StaleMetricReaper
from .result_processor import (
    BatchContext,
    MultiDimensionalStrategy,
    ProcessingStrategy,
    ResultProcessor,
    SingleDimensionalStrategy,
)

__all__ = [
    "GAUGE_DOCUMENTATION",
    "MetricRegistry",
    "MetricSet",
    "Series",
    "StaleMetricReaper",
    "BatchContext",
    "MultiDimensionalStrategy",
    "ProcessingStrategy",
    "ResultProcessor",
    "SingleDimensionalStrategy",
]
