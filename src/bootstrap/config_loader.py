"""
設定 YAML 群を読み込み、検証済みの ConfigBundle を生成するローダ。
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from domain.models import QueryDefinition, QuerySpec

from .container import (
    ConfigBundle,
    ConfigLoader,
    InvalidConfigurationError,
    MissingConfigurationError,
)


class LoggingConfigModel(BaseModel):
    """logging 設定の最小検証モデル。"""

    model_config = ConfigDict(extra="allow")

    version: int


class MetricsConfigModel(BaseModel):
    """metrics 設定の最小検証モデル。"""

    model_config = ConfigDict(extra="allow")

    provider: str


class QueryConfigModel(BaseModel):
    """queries 配列の 1 要素。"""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    sql: str = Field(min_length=1)
    interval_seconds: float = Field(default=60.0, gt=0)
    multi_dimensional: bool = False
    data_field: str = ""
    data_labels: list[str] = Field(default_factory=list)
    data_label_name: str = "metric"
    data_metric_column: str = ""

    def to_definition(self) -> QueryDefinition:
        spec = QuerySpec(
            name=self.name,
            multi_dimensional=self.multi_dimensional,
            data_field=self.data_field,
            data_labels=tuple(self.data_labels),
            data_label_name=self.data_label_name,
            data_metric_column=self.data_metric_column,
        )
        return QueryDefinition(spec=spec, sql=self.sql, interval_seconds=self.interval_seconds)


class AppConfigModel(BaseModel):
    """
    アプリケーション全体の設定バリデーション。

    必須セクション（logging, metrics, queries）の存在と最低限の構造のみを検証し、
    その他のセクション（postgres 等）は追加情報として保持する。
    """

    model_config = ConfigDict(extra="allow")

    logging: LoggingConfigModel
    metrics: MetricsConfigModel
    queries: list[QueryConfigModel]

    @field_validator("queries")
    @classmethod
    def _unique_query_names(cls, value: list[QueryConfigModel]) -> list[QueryConfigModel]:
        names = [query.name for query in value]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"クエリ名が重複しています: {', '.join(duplicates)}")
        return value


class YamlConfigLoader(ConfigLoader):
    """
    ``configs/base`` 配下の YAML を全て読み込み、``configs/envs/<env>`` の差分を重ねる。

    同一ディレクトリ内のファイルはパス順にマージする。環境差分は base に存在する
    キーのみ上書きでき、配列（queries 等）は要素単位ではなく丸ごと置き換わる。
    """

    ENV_VAR = "SERVICE_ENV"

    def __init__(
        self,
        project_root: Path,
        *,
        environment: str | None = None,
        configs_dir_name: str = "configs",
    ) -> None:
        self._configs_root = project_root.resolve() / configs_dir_name
        self._environment = environment or os.getenv(self.ENV_VAR)

    def load(self) -> ConfigBundle:
        if not self._environment:
            raise MissingConfigurationError(
                f"環境変数 '{self.ENV_VAR}' が未設定のため、設定をロードできません。"
            )

        merged: dict[str, Any] = {}
        for path in _yaml_files(self._configs_root / "base"):
            merged = _deep_merge(merged, _read_yaml(path))
        for path in _yaml_files(self._configs_root / "envs" / self._environment):
            overlay = _read_yaml(path)
            _reject_unknown_keys(merged, overlay, source=path)
            merged = _deep_merge(merged, overlay)

        try:
            validated = AppConfigModel.model_validate(merged)
        except ValidationError as exc:
            raise InvalidConfigurationError(f"設定値の検証に失敗しました: {exc}") from exc
        return ConfigBundle(root=validated.model_dump())


def load_query_definitions(bundle: ConfigBundle) -> list[QueryDefinition]:
    """
    queries セクションを QueryDefinition のリストへ変換する。

    Raises:
        MissingConfigurationError: queries セクションが存在しない場合。
        InvalidConfigurationError: クエリ定義が不正な場合。
    """

    definitions: list[QueryDefinition] = []
    for index, raw in enumerate(bundle.require_list("queries")):
        try:
            definitions.append(QueryConfigModel.model_validate(raw).to_definition())
        except (ValidationError, ValueError) as exc:
            raise InvalidConfigurationError(f"queries[{index}] の定義が不正です: {exc}") from exc
    return definitions


def _yaml_files(directory: Path) -> list[Path]:
    if not directory.is_dir():
        raise MissingConfigurationError(f"設定ディレクトリ {directory} が存在しません。")
    files = sorted(path for path in directory.rglob("*") if path.suffix in (".yaml", ".yml") and path.is_file())
    if not files:
        raise MissingConfigurationError(f"{directory} に YAML ファイルが存在しません。")
    return files


def _read_yaml(path: Path) -> Mapping[str, Any]:
    try:
        content = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise InvalidConfigurationError(f"YAML の解析に失敗しました: {path}") from exc

    if not isinstance(content, Mapping):
        kind = "空" if content is None else type(content).__name__
        raise InvalidConfigurationError(f"YAML のトップレベルが Mapping ではありません（{kind}）: {path}")
    return content


def _deep_merge(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _reject_unknown_keys(
    base: Mapping[str, Any],
    overlay: Mapping[str, Any],
    *,
    source: Path,
    prefix: str = "",
) -> None:
    for key, value in overlay.items():
        dotted = f"{prefix}{key}"
        if key not in base:
            raise InvalidConfigurationError(
                f"{source}: 設定キー '{dotted}' は configs/base に定義されていません。"
            )
        if not isinstance(value, Mapping):
            continue
        if not isinstance(base[key], Mapping):
            raise InvalidConfigurationError(
                f"{source}: 設定キー '{dotted}' は base ではスカラー・配列ですが Mapping で上書きされています。"
            )
        _reject_unknown_keys(base[key], value, source=source, prefix=f"{dotted}.")
