"""
インフラ層のパッケージ初期化。
"""

from .databases import (
    PostgresConfig,
    PostgresConnectionProvider,
    PostgresPoolConfig,
    PostgresQueryExecutor,
    QueryExecutionError,
)
from .metrics import (
    MetricsRecorder,
    PrometheusMetricsRegistry,
    PrometheusSeriesBackend,
    configure_tracing,
    start_metrics_http_server,
)

__all__ = [
    "PostgresConfig",
    "PostgresConnectionProvider",
    "PostgresPoolConfig",
    "PostgresQueryExecutor",
    "QueryExecutionError",
    "MetricsRecorder",
    "PrometheusMetricsRegistry",
    "PrometheusSeriesBackend",
    "configure_tracing",
    "start_metrics_http_server",
]
