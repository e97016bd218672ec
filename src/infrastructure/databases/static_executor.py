"""
事前に用意した結果行を返す QueryExecutor。

データベースに接続せずにメトリクス変換結果を確認する用途（CLI の
``run-once --rows``）で利用する。
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping, Sequence

from domain.models import QueryDefinition, ResultRow

from .query_executor import QueryExecutionError


class StaticQueryExecutor:
    def __init__(self, rows_by_query: Mapping[str, Sequence[ResultRow]]) -> None:
        self._rows_by_query = {name: list(rows) for name, rows in rows_by_query.items()}

    @classmethod
    def from_json_file(cls, path: Path) -> "StaticQueryExecutor":
        """
        ``{"<query name>": [{"column": value, ...}, ...]}`` 形式の JSON を読み込む。
        """

        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ValueError(f"結果行ファイルを読み込めません: {path}") from exc

        if not isinstance(payload, dict):
            raise ValueError("結果行ファイルのトップレベルはオブジェクトである必要があります。")
        for name, rows in payload.items():
            if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
                raise ValueError(f"クエリ '{name}' の結果行はオブジェクトの配列である必要があります。")
        return cls(payload)

    def fetch(self, definition: QueryDefinition) -> Sequence[ResultRow]:
        try:
            return self._rows_by_query[definition.name]
        except KeyError as exc:
            raise QueryExecutionError(f"クエリ '{definition.name}' の結果行が用意されていません。") from exc
