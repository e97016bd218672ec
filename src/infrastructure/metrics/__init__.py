"""
メトリクス・トレーシング関連の公開API。
"""

from .prometheus_runtime import MetricsEndpoint, PrometheusMetricsRegistry, start_metrics_http_server
from .recorder import MetricsRecorder
from .series_backend import PrometheusSeriesBackend
from .tracing import TracingConfigurationError, TracingManager, configure_tracing

__all__ = [
    "MetricsEndpoint",
    "PrometheusMetricsRegistry",
    "PrometheusSeriesBackend",
    "MetricsRecorder",
    "TracingConfigurationError",
    "TracingManager",
    "configure_tracing",
    "start_metrics_http_server",
]
