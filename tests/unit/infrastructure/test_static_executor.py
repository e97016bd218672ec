from __future__ import annotations

import json
from pathlib import Path

import pytest

from domain.models import QueryDefinition, QuerySpec
from infrastructure.databases import QueryExecutionError, StaticQueryExecutor


def make_definition(name: str) -> QueryDefinition:
    return QueryDefinition(spec=QuerySpec(name=name, data_field="value"), sql="SELECT 1")


def test_from_json_file_serves_rows_per_query(tmp_path: Path) -> None:
    path = tmp_path / "rows.json"
    path.write_text(json.dumps({"hosts": [{"host": "a", "value": 1.5}]}), encoding="utf-8")

    executor = StaticQueryExecutor.from_json_file(path)

    assert executor.fetch(make_definition("hosts")) == [{"host": "a", "value": 1.5}]


def test_missing_query_raises_execution_error() -> None:
    executor = StaticQueryExecutor({"hosts": []})

    with pytest.raises(QueryExecutionError):
        executor.fetch(make_definition("disks"))


@pytest.mark.parametrize(
    "content",
    [
        "not json",
        json.dumps([{"host": "a"}]),
        json.dumps({"hosts": {"host": "a"}}),
        json.dumps({"hosts": [1, 2]}),
    ],
)
def test_from_json_file_rejects_malformed_content(tmp_path: Path, content: str) -> None:
    path = tmp_path / "rows.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ValueError):
        StaticQueryExecutor.from_json_file(path)


def test_from_json_file_rejects_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        StaticQueryExecutor.from_json_file(tmp_path / "missing.json")
