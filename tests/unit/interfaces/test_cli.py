from __future__ import annotations

import json
from pathlib import Path
from typing import Callable

import pytest
from typer.testing import CliRunner

from interfaces.cli.app import create_cli

runner = CliRunner()


@pytest.fixture()
def rows_file(tmp_path: Path) -> Path:
    data = {
        "hosts": [{"host": "a", "value": "1.5"}, {"host": "b", "value": 2}],
        "usage": [{"region": "EU", "cpu": 10, "mem": 20}],
    }
    target = tmp_path / "rows.json"
    target.write_text(json.dumps(data), encoding="utf-8")
    return target


def test_ping() -> None:
    result = runner.invoke(create_cli(), ["diagnostics", "ping"])

    assert result.exit_code == 0
    assert "システム診断: OK" in result.output


def test_list_queries(write_configs: Callable[..., Path]) -> None:
    root = write_configs()

    result = runner.invoke(create_cli(), ["diagnostics", "list-queries", "--env", "test", "--root", str(root)])

    assert result.exit_code == 0, result.output
    assert "hosts\tmode=single\tinterval=15s" in result.output
    assert "usage\tmode=multi\tinterval=60s" in result.output


def test_list_queries_reports_configuration_errors(tmp_path: Path) -> None:
    result = runner.invoke(create_cli(), ["diagnostics", "list-queries", "--env", "test", "--root", str(tmp_path)])

    assert result.exit_code == 1


def test_run_once_prints_exposition(write_configs: Callable[..., Path], rows_file: Path) -> None:
    root = write_configs()

    result = runner.invoke(
        create_cli(),
        ["run-once", "--env", "test", "--root", str(root), "--rows", str(rows_file)],
    )

    assert result.exit_code == 0, result.output
    assert 'query_result_hosts{host="a"} 1.5' in result.output
    assert 'query_result_hosts{host="b"} 2.0' in result.output
    assert 'query_result_usage{metric="cpu",region="eu"} 10.0' in result.output
    assert 'query_result_usage{metric="mem",region="eu"} 20.0' in result.output


def test_run_once_selects_queries(write_configs: Callable[..., Path], rows_file: Path) -> None:
    root = write_configs()

    result = runner.invoke(
        create_cli(),
        ["run-once", "--env", "test", "--root", str(root), "--rows", str(rows_file), "-q", "hosts"],
    )

    assert result.exit_code == 0, result.output
    assert "query_result_hosts" in result.output
    assert "query_result_usage" not in result.output


def test_run_once_exits_non_zero_when_a_query_fails(write_configs: Callable[..., Path], tmp_path: Path) -> None:
    root = write_configs()
    rows = tmp_path / "partial.json"
    rows.write_text(json.dumps({"hosts": [{"host": "a", "value": "oops"}], "usage": []}), encoding="utf-8")

    result = runner.invoke(create_cli(), ["run-once", "--env", "test", "--root", str(root), "--rows", str(rows)])

    assert result.exit_code == 1
    assert "query_result_hosts" not in result.output


def test_run_once_rejects_unknown_query(write_configs: Callable[..., Path], rows_file: Path) -> None:
    root = write_configs()

    result = runner.invoke(
        create_cli(),
        ["run-once", "--env", "test", "--root", str(root), "--rows", str(rows_file), "-q", "missing"],
    )

    assert result.exit_code == 2


def test_run_once_rejects_malformed_rows_file(write_configs: Callable[..., Path], tmp_path: Path) -> None:
    root = write_configs()
    rows = tmp_path / "broken.json"
    rows.write_text("[", encoding="utf-8")

    result = runner.invoke(create_cli(), ["run-once", "--env", "test", "--root", str(root), "--rows", str(rows)])

    assert result.exit_code == 2
