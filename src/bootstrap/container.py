"""
エクスポータ起動時の初期化を束ねる DI コンテナ。

設定のロード、ロギングの適用、クエリ定義の検証、メトリクス初期化をこの順に行う。
クエリ定義が不正な場合は `/metrics` エンドポイントを起動する前に失敗させる。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Protocol, Sequence

from prometheus_client import CollectorRegistry

from domain.models import QueryDefinition

LOGGER = logging.getLogger("query_result_exporter.bootstrap")


class ConfigLoader(Protocol):
    def load(self) -> "ConfigBundle":
        ...


class LoggingConfigurator(Protocol):
    def configure(self, config: Mapping[str, Any]) -> None:
        ...


class MetricsConfigurator(Protocol):
    def configure(self, config: Mapping[str, Any]) -> None:
        ...


class BootstrapError(RuntimeError):
    """起動時の初期化に失敗したことを表す基底例外。"""


class MissingConfigurationError(BootstrapError):
    """必須の設定ファイル・セクション・キーが存在しない。"""


class InvalidConfigurationError(BootstrapError):
    """設定値の型や内容が不正。"""


@dataclass(frozen=True)
class ConfigBundle:
    """
    マージ・検証済みの設定ツリー。
    """

    root: Mapping[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return dict(self.root)

    def require_section(self, section: str) -> Mapping[str, Any]:
        """
        Raises:
            MissingConfigurationError: セクションが存在しない場合。
            InvalidConfigurationError: セクションがマッピングではない場合。
        """

        value = self._lookup(section)
        if not isinstance(value, Mapping):
            raise InvalidConfigurationError(f"設定セクション '{section}' は Mapping である必要があります。")
        return value

    def require_list(self, section: str) -> Sequence[Any]:
        value = self._lookup(section)
        if not isinstance(value, (list, tuple)):
            raise InvalidConfigurationError(f"設定セクション '{section}' は配列である必要があります。")
        return value

    def require_value(self, section: str, key: str) -> Any:
        mapping = self.require_section(section)
        if key not in mapping:
            raise MissingConfigurationError(f"設定キー '{section}.{key}' が存在しません。")
        return mapping[key]

    def _lookup(self, section: str) -> Any:
        try:
            return self.root[section]
        except KeyError as exc:
            raise MissingConfigurationError(f"設定セクション '{section}' が存在しません。") from exc


QueryLoader = Callable[[ConfigBundle], Sequence[QueryDefinition]]


@dataclass(frozen=True)
class BootstrapContext:
    """
    初期化済みの設定・クエリ定義と、系列を公開する Prometheus レジストリ。
    """

    config: ConfigBundle
    collector_registry: CollectorRegistry
    definitions: tuple[QueryDefinition, ...] = ()

    def definition(self, name: str) -> QueryDefinition:
        """
        Raises:
            KeyError: name のクエリが定義されていない場合。
        """

        for definition in self.definitions:
            if definition.name == name:
                return definition
        raise KeyError(name)


@dataclass
class BootstrapContainer:
    """
    Attributes:
        project_root: configs/ を含むディレクトリ。
        config_loader_factory: project_root から ConfigLoader を生成する。
        logging_configurator: logging セクションを適用する。
        metrics_configurator: metrics セクションを適用する。
        collector_registry: クエリ結果と内部メトリクスを登録する Prometheus レジストリ。
        query_loader: queries セクションを QueryDefinition 列へ変換する。
    """

    project_root: Path
    config_loader_factory: Callable[[Path], ConfigLoader]
    logging_configurator: LoggingConfigurator
    metrics_configurator: MetricsConfigurator
    collector_registry: CollectorRegistry
    query_loader: QueryLoader

    def initialize(self) -> BootstrapContext:
        """
        Raises:
            BootstrapError: 設定の欠落・不正、またはクエリ定義の検証エラー。
        """

        bundle = self.config_loader_factory(self.project_root).load()

        self.logging_configurator.configure(bundle.require_section("logging"))
        definitions = tuple(self.query_loader(bundle))
        self.metrics_configurator.configure(bundle.require_section("metrics"))

        LOGGER.info("Bootstrapped exporter with %d queries", len(definitions))
        return BootstrapContext(
            config=bundle,
            collector_registry=self.collector_registry,
            definitions=definitions,
        )
