"""
OpenTelemetry トレーシングの初期化とスパン生成ヘルパ。

クエリのリフレッシュ 1 回ごとに ``query.refresh`` スパンを発行する。
未設定の場合、スパンは生成されない。
"""

from __future__ import annotations

import atexit
from contextlib import contextmanager
from typing import Iterator, Mapping

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SpanExporter

DEFAULT_SERVICE_NAME = "query-result-exporter"


class TracingConfigurationError(ValueError):
    """OTel 設定値が不正な場合の例外。"""


class TracingManager:
    _tracer_provider: TracerProvider | None = None
    _tracer = trace.get_tracer(__name__)
    _configured = False

    @classmethod
    def configure(
        cls,
        *,
        exporter: SpanExporter,
        service_name: str,
        environment: str | None = None,
    ) -> None:
        attributes = {"service.name": service_name}
        if environment:
            attributes["deployment.environment"] = environment

        provider = TracerProvider(resource=Resource.create(attributes))
        provider.add_span_processor(BatchSpanProcessor(exporter))
        trace.set_tracer_provider(provider)
        cls._tracer_provider = provider
        cls._tracer = provider.get_tracer(service_name)
        cls._configured = True

        atexit.register(cls.shutdown)

    @classmethod
    def shutdown(cls) -> None:
        if cls._tracer_provider is not None:
            cls._tracer_provider.shutdown()
            cls._tracer_provider = None
        cls._configured = False

    @classmethod
    @contextmanager
    def span(cls, name: str, attributes: Mapping[str, object] | None = None) -> Iterator[object]:
        if not cls._configured:
            yield None
            return
        with cls._tracer.start_as_current_span(name) as span:
            for key, value in (attributes or {}).items():
                if isinstance(value, (str, bool, int, float)):
                    span.set_attribute(key, value)
                else:
                    span.set_attribute(key, str(value))
            yield span


def configure_tracing(options: Mapping[str, object], *, environment: str | None = None) -> bool:
    """
    metrics.options.otel の設定から OTLP エクスポータを構成する。

    Returns:
        bool: トレーシングを有効化した場合 True。
    """

    if not bool(options.get("enabled", True)):
        return False

    endpoint = options.get("endpoint")
    if not isinstance(endpoint, str) or not endpoint:
        raise TracingConfigurationError("otel.endpoint が設定されていません。")

    service_name = options.get("service_name", DEFAULT_SERVICE_NAME)
    if not isinstance(service_name, str) or not service_name:
        raise TracingConfigurationError("otel.service_name は非空の文字列である必要があります。")

    headers = options.get("headers")
    if headers is not None and not isinstance(headers, Mapping):
        raise TracingConfigurationError("otel.headers は Mapping である必要があります。")

    timeout_raw = options.get("timeout_seconds", 10.0)
    try:
        timeout = int(float(str(timeout_raw)))
    except ValueError as exc:
        raise TracingConfigurationError("otel.timeout_seconds は数値である必要があります。") from exc

    exporter = OTLPSpanExporter(
        endpoint=endpoint,
        insecure=bool(options.get("insecure", True)),
        timeout=timeout,
        headers={str(key): str(value) for key, value in headers.items()} if headers else None,
    )
    TracingManager.configure(exporter=exporter, service_name=service_name, environment=environment)
    return True
