"""
クエリ結果行をゲージ系列へ変換するオーケストレータ。

単一次元・多次元の 2 つの戦略を ``ProcessingStrategy`` として実装し、
QuerySpec の設定に応じて選択する。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Protocol, Sequence

from domain.errors import (
    AmbiguousSingleColumnResultError,
    DataFieldNotFoundError,
    MissingDataFieldError,
    MissingDataMetricColumnError,
)
from domain.models import QuerySpec, ResultRow
from domain.services import coerce_value
from domain.value_objects import FacetKey, encode_facets, sanitize_metric_name

from .metric_registry import MetricSet

LOGGER = logging.getLogger("query_result_exporter.processor")


@dataclass
class BatchContext:
    """
    1 バッチの処理中に保持する状態。

    metric_name は多次元モードのメトリクス名上書きにより変化し得るが、
    バッチ終了とともに破棄され QuerySpec には書き戻さない。
    """

    spec: QuerySpec
    metric_set: MetricSet
    metric_name: str
    touched: set[FacetKey] = field(default_factory=set)

    def record(self, facets: Mapping[str, str], raw_value: object) -> FacetKey:
        value = coerce_value(raw_value)
        key = encode_facets(facets)
        series = self.metric_set.get_or_create(key, self.metric_name, facets)
        self.metric_set.set_value(series, value)
        self.touched.add(key)
        return key


class ProcessingStrategy(Protocol):
    """
    1 行をファセットとデータ値に分解し、BatchContext へ記録する。
    """

    def process_row(self, row: ResultRow, context: BatchContext) -> None:
        ...


class SingleDimensionalStrategy(ProcessingStrategy):
    """
    data_field 以外の全カラムをファセットとし、1 行につき 1 系列を生成する。
    """

    def process_row(self, row: ResultRow, context: BatchContext) -> None:
        spec = context.spec
        multi_column = len(row) > 1
        if multi_column and not spec.data_field:
            raise MissingDataFieldError(spec.name)

        data_field = spec.normalized_data_field
        facets: dict[str, str] = {}
        data_value: object = None
        data_found = False
        for column, value in row.items():
            name = column.lower()
            if multi_column and name != data_field:
                facets[name] = _label_value(value)
            else:
                data_value = value
                data_found = True

        if not data_found:
            raise DataFieldNotFoundError(spec.name, spec.data_field)

        context.record(facets, data_value)


class MultiDimensionalStrategy(ProcessingStrategy):
    """
    data_labels をファセットとし、残りのカラムごとに 1 系列を生成する。

    各系列には data_label_name ラベルで値の出自カラム名を付与する。
    data_metric_column に一致するカラムはメトリクス名の上書きに用い、
    その行以降の新規系列に適用する。
    """

    def process_row(self, row: ResultRow, context: BatchContext) -> None:
        spec = context.spec
        if len(row) > 1 and not spec.data_metric_column:
            raise MissingDataMetricColumnError(spec.name)

        label_names = spec.normalized_data_labels
        metric_column = spec.normalized_data_metric_column
        facets: dict[str, str] = {}
        data_columns: list[tuple[str, object]] = []
        for column, value in row.items():
            name = column.lower()
            if name in label_names:
                facets[name] = _label_value(value)
            elif metric_column and name == metric_column:
                context.metric_name = sanitize_metric_name(value)
            else:
                data_columns.append((name, value))

        data_label_name = spec.data_label_name.lower()
        for name, value in data_columns:
            series_facets = dict(facets)
            series_facets[data_label_name] = name
            context.record(series_facets, value)


class ResultProcessor:
    """
    バッチ（1 回のクエリ実行結果）を処理し、更新した系列のキー集合を返す。
    """

    def __init__(
        self,
        *,
        single_dimensional: ProcessingStrategy | None = None,
        multi_dimensional: ProcessingStrategy | None = None,
    ) -> None:
        self._single = single_dimensional or SingleDimensionalStrategy()
        self._multi = multi_dimensional or MultiDimensionalStrategy()

    def strategy_for(self, spec: QuerySpec) -> ProcessingStrategy:
        return self._multi if spec.multi_dimensional else self._single

    def process(self, spec: QuerySpec, rows: Sequence[ResultRow], metric_set: MetricSet) -> frozenset[FacetKey]:
        """
        全行を処理して系列を登録・更新する。

        途中で失敗した場合は残りの行を処理せず例外を送出する。
        それまでに登録された系列はロールバックしない。

        Raises:
            ResultProcessingError: 行をファセットと値に分解できない場合。
            MetricRegistrationError: ゲージの登録に失敗した場合。
        """

        if len(rows) > 1 and len(rows[0]) == 1:
            raise AmbiguousSingleColumnResultError(len(rows))

        strategy = self.strategy_for(spec)
        context = BatchContext(spec=spec, metric_set=metric_set, metric_name=spec.name)
        for row in rows:
            strategy.process_row(row, context)

        LOGGER.debug(
            "Processed batch. query=%s rows=%d series=%d",
            spec.name,
            len(rows),
            len(context.touched),
        )
        return frozenset(context.touched)


def _label_value(value: object) -> str:
    return str(value).lower()
