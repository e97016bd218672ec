"""
クエリ定義の SQL を PostgreSQL で実行し、結果行を取得する。
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Mapping, Sequence

import psycopg
from psycopg.rows import dict_row

from domain.models import QueryDefinition, ResultRow

from .postgres import PostgresConnectionProvider

LOGGER = logging.getLogger("query_result_exporter.postgres")


class QueryExecutionError(RuntimeError):
    """クエリの実行に失敗した際に送出される例外。"""


class PostgresQueryExecutor:
    """
    読み取り専用のクエリを実行し、カラム名 → 値のマッピング列を返す。
    """

    def __init__(self, connection_provider: PostgresConnectionProvider) -> None:
        self._connection_provider = connection_provider

    def fetch(self, definition: QueryDefinition) -> Sequence[ResultRow]:
        LOGGER.debug("Executing query %s", definition.name)
        try:
            with self._connection_provider.connection() as conn:
                with conn.cursor(row_factory=dict_row) as cursor:
                    cursor.execute(definition.sql)
                    records = cursor.fetchall()
                conn.rollback()
        except psycopg.Error as exc:
            raise QueryExecutionError(f"クエリ '{definition.name}' の実行に失敗しました: {exc}") from exc

        return [_normalize_row(record) for record in records]


def _normalize_row(record: Mapping[str, Any]) -> dict[str, Any]:
    """
    NUMERIC 型 (Decimal) を float に揃える。その他の値はそのまま返し、
    未対応の型は数値変換時に UnsupportedValueTypeError となる。
    """

    return {
        str(column): float(value) if isinstance(value, Decimal) else value
        for column, value in record.items()
    }
