"""
アプリケーション層から利用する観測性フック。

bootstrap で実装が登録されるまでは内部メトリクス・スパンとも no-op。
利用側は ``observability.metrics_recorder`` をモジュール属性として参照すること
（``from ... import metrics_recorder`` では差し替えが反映されない）。
"""

from __future__ import annotations

from contextlib import nullcontext
from typing import Callable, ContextManager, Mapping, Protocol

SpanFactory = Callable[[str, Mapping[str, object] | None], ContextManager[object]]


class MetricsRecorderProtocol(Protocol):
    def observe_refresh_duration(self, query: str, duration_seconds: float) -> None: ...

    def increment_refresh_failures(self, query: str, error: str) -> None: ...

    def increment_series_registered(self, query: str, count: int = 1) -> None: ...

    def increment_series_reaped(self, query: str, count: int) -> None: ...

    def reset(self) -> None: ...


class _NoopMetricsRecorder(MetricsRecorderProtocol):
    def observe_refresh_duration(self, query: str, duration_seconds: float) -> None:
        return None

    def increment_refresh_failures(self, query: str, error: str) -> None:
        return None

    def increment_series_registered(self, query: str, count: int = 1) -> None:
        return None

    def increment_series_reaped(self, query: str, count: int) -> None:
        return None

    def reset(self) -> None:
        return None


metrics_recorder: MetricsRecorderProtocol = _NoopMetricsRecorder()
_span_factory: SpanFactory | None = None


def use_metrics_recorder(recorder: MetricsRecorderProtocol) -> None:
    global metrics_recorder
    metrics_recorder = recorder


def use_telemetry_span(factory: SpanFactory | None) -> None:
    global _span_factory
    _span_factory = factory


def telemetry_span(name: str, attributes: Mapping[str, object] | None = None) -> ContextManager[object]:
    """
    登録済みのファクトリでスパンを開始する。未登録なら何もしないコンテキストを返す。
    """

    if _span_factory is None:
        return nullcontext()
    return _span_factory(name, attributes)


def reset_observability() -> None:
    use_metrics_recorder(_NoopMetricsRecorder())
    use_telemetry_span(None)
