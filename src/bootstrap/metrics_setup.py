"""
metrics セクションに従って内部メトリクス・トレーシング・`/metrics` エンドポイントを初期化する。
"""

from __future__ import annotations

from typing import Any, Mapping

from prometheus_client import CollectorRegistry
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from application.observability import reset_observability, use_metrics_recorder, use_telemetry_span
from infrastructure.metrics import (
    MetricsEndpoint,
    MetricsRecorder,
    PrometheusMetricsRegistry,
    TracingConfigurationError,
    TracingManager,
    configure_tracing,
    start_metrics_http_server,
)

from .container import InvalidConfigurationError, MetricsConfigurator


class PrometheusOptionsModel(BaseModel):
    """metrics.options の検証モデル。"""

    model_config = ConfigDict(extra="forbid")

    host: str = "0.0.0.0"
    port: int = Field(default=0, ge=0, le=65535)
    default_labels: dict[str, str] = Field(default_factory=dict)
    histogram_buckets: dict[str, list[float]] = Field(default_factory=dict)
    otel: dict[str, Any] | None = None

    @field_validator("default_labels", mode="before")
    @classmethod
    def _stringify_labels(cls, value: object) -> object:
        if isinstance(value, Mapping):
            return {key: str(label) for key, label in value.items()}
        return value

    @field_validator("histogram_buckets")
    @classmethod
    def _require_boundaries(cls, value: dict[str, list[float]]) -> dict[str, list[float]]:
        empty = sorted(name for name, boundaries in value.items() if not boundaries)
        if empty:
            raise ValueError(f"バケット境界が空です: {', '.join(empty)}")
        return value


class MetricsConfiguratorRegistry(MetricsConfigurator):
    """
    metrics.provider の値に応じて初期化処理を委譲する。
    """

    def __init__(self, delegates: Mapping[str, MetricsConfigurator]) -> None:
        if not delegates:
            raise ValueError("メトリクス設定の委譲先が定義されていません。")
        self._delegates = dict(delegates)

    def configure(self, config: Mapping[str, Any]) -> None:
        provider = _provider(config)
        try:
            delegate = self._delegates[provider]
        except KeyError as exc:
            known = ", ".join(sorted(self._delegates))
            raise InvalidConfigurationError(
                f"metrics.provider '{provider}' は未対応です（対応: {known}）。"
            ) from exc
        delegate.configure(config)


class NoopMetricsConfigurator(MetricsConfigurator):
    """
    provider: noop。内部メトリクスとトレーシングを無効化し、エンドポイントも起動しない。
    """

    EXPECTED_PROVIDER = "noop"

    def configure(self, config: Mapping[str, Any]) -> None:
        _expect_provider(config, self.EXPECTED_PROVIDER)
        reset_observability()


class PrometheusMetricsConfigurator(MetricsConfigurator):
    """
    provider: prometheus。

    内部メトリクスをクエリ結果と同じ registry に登録し、otel 設定があればトレーシングを
    有効化したうえで `/metrics` エンドポイントを起動する。
    """

    EXPECTED_PROVIDER = "prometheus"

    def __init__(self, registry: CollectorRegistry) -> None:
        self._registry = registry
        self.endpoint: MetricsEndpoint | None = None

    def configure(self, config: Mapping[str, Any]) -> None:
        _expect_provider(config, self.EXPECTED_PROVIDER)
        try:
            options = PrometheusOptionsModel.model_validate(config.get("options") or {})
        except ValidationError as exc:
            raise InvalidConfigurationError(f"metrics.options の検証に失敗しました: {exc}") from exc

        MetricsRecorder.configure(
            PrometheusMetricsRegistry(registry=self._registry, histogram_buckets=options.histogram_buckets),
            default_labels=options.default_labels,
        )
        use_metrics_recorder(MetricsRecorder)

        if options.otel is not None:
            environment = options.default_labels.get("environment")
            try:
                tracing_enabled = configure_tracing(options.otel, environment=environment)
            except TracingConfigurationError as exc:
                raise InvalidConfigurationError(f"metrics.options.otel が不正です: {exc}") from exc
            if tracing_enabled:
                use_telemetry_span(TracingManager.span)

        self.endpoint = start_metrics_http_server(self._registry, host=options.host, port=options.port)


def _provider(config: Mapping[str, Any]) -> str:
    provider = config.get("provider")
    if not isinstance(provider, str) or not provider:
        raise InvalidConfigurationError("metrics.provider は非空の文字列で指定してください。")
    return provider


def _expect_provider(config: Mapping[str, Any], expected: str) -> None:
    provider = _provider(config)
    if provider != expected:
        raise InvalidConfigurationError(f"metrics.provider '{provider}' は '{expected}' 用の初期化では扱えません。")
