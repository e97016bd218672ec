"""
ランタイム依存関係のビルダー。
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence, cast

from prometheus_client import CollectorRegistry

from application.services import MetricRegistry
from application.usecases import QueryExecutor, QueryRefreshService
from bootstrap import (
    BootstrapContainer,
    BootstrapContext,
    ConfigBundle,
    DictConfigLoggingConfigurator,
    InvalidConfigurationError,
    MetricsConfiguratorRegistry,
    NoopMetricsConfigurator,
    PrometheusMetricsConfigurator,
    YamlConfigLoader,
    load_query_definitions,
)
from domain.models import QueryDefinition
from infrastructure.databases import PostgresConfig, PostgresConnectionProvider, PostgresQueryExecutor
from infrastructure.metrics import PrometheusSeriesBackend


@dataclass(frozen=True)
class ExporterComponents:
    """
    エクスポータの稼働に必要な組み立て済みコンポーネント。
    """

    context: BootstrapContext
    definitions: Sequence[QueryDefinition]
    registry: MetricRegistry
    refresh_service: QueryRefreshService
    connection_provider: PostgresConnectionProvider | None = None

    def close(self) -> None:
        if self.connection_provider is not None:
            self.connection_provider.close()


def resolve_project_root() -> Path:
    """
    QUERY_EXPORTER_ROOT が設定されていればそれを、なければカレントディレクトリを返す。
    """

    return Path(os.getenv("QUERY_EXPORTER_ROOT", Path.cwd()))


def bootstrap(
    project_root: Path,
    *,
    environment: str | None = None,
    collector_registry: CollectorRegistry | None = None,
) -> BootstrapContext:
    registry = collector_registry or CollectorRegistry()
    container = BootstrapContainer(
        project_root=project_root,
        config_loader_factory=lambda root: YamlConfigLoader(root, environment=environment),
        logging_configurator=DictConfigLoggingConfigurator(),
        metrics_configurator=MetricsConfiguratorRegistry(
            {
                PrometheusMetricsConfigurator.EXPECTED_PROVIDER: PrometheusMetricsConfigurator(registry),
                NoopMetricsConfigurator.EXPECTED_PROVIDER: NoopMetricsConfigurator(),
            }
        ),
        collector_registry=registry,
        query_loader=load_query_definitions,
    )
    return container.initialize()


def build_postgres_executor(config: ConfigBundle) -> tuple[PostgresQueryExecutor, PostgresConnectionProvider]:
    postgres_section = cast(Mapping[str, object], config.require_section("postgres"))
    try:
        postgres_config = PostgresConfig.from_mapping(postgres_section)
    except ValueError as exc:
        raise InvalidConfigurationError(str(exc)) from exc
    provider = PostgresConnectionProvider(postgres_config)
    return PostgresQueryExecutor(provider), provider


def build_exporter_components(
    context: BootstrapContext,
    *,
    executor: QueryExecutor | None = None,
) -> ExporterComponents:
    """
    初期化済みのコンテキストから MetricRegistry とリフレッシュサービスを組み立てる。

    executor を渡さない場合は postgres セクションから PostgresQueryExecutor を生成する。
    """

    provider: PostgresConnectionProvider | None = None
    if executor is None:
        executor, provider = build_postgres_executor(context.config)

    registry = MetricRegistry(PrometheusSeriesBackend(registry=context.collector_registry))
    refresh_service = QueryRefreshService(executor=executor, registry=registry)
    return ExporterComponents(
        context=context,
        definitions=context.definitions,
        registry=registry,
        refresh_service=refresh_service,
        connection_provider=provider,
    )
