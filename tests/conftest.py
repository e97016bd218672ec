from __future__ import annotations

import copy
from pathlib import Path
from typing import Callable, Iterator

import pytest
import yaml

from application.observability import reset_observability
from infrastructure.metrics import MetricsRecorder

ConfigWriter = Callable[..., Path]

_BASE_CONFIG: dict[str, object] = {
    "logging": {
        "version": 1,
        "handlers": {"null": {"class": "logging.NullHandler"}},
        "root": {"level": "WARNING", "handlers": ["null"]},
    },
    "metrics": {"provider": "noop", "options": {"port": 0}},
    "postgres": {
        "dsn": None,
        "pool": {"min_size": 1, "max_size": 2, "timeout_seconds": 1},
    },
    "queries": [
        {"name": "hosts", "sql": "SELECT host, value FROM hosts", "data_field": "value", "interval_seconds": 15},
        {
            "name": "usage",
            "sql": "SELECT region, cpu, mem FROM usage",
            "multi_dimensional": True,
            "data_labels": ["region"],
            "data_metric_column": "metric_name",
        },
    ],
}


@pytest.fixture()
def write_configs(tmp_path: Path) -> ConfigWriter:
    """
    tmp_path 配下に configs/base と configs/envs/<env> を作成し、プロジェクトルートを返す。
    """

    def _write(
        base: dict[str, object] | None = None,
        overrides: dict[str, object] | None = None,
        *,
        env: str = "test",
    ) -> Path:
        base_dir = tmp_path / "configs" / "base"
        env_dir = tmp_path / "configs" / "envs" / env
        base_dir.mkdir(parents=True, exist_ok=True)
        env_dir.mkdir(parents=True, exist_ok=True)
        (base_dir / "app.yaml").write_text(yaml.safe_dump(base or _BASE_CONFIG), encoding="utf-8")
        (env_dir / "overrides.yaml").write_text(yaml.safe_dump(overrides or {"metrics": {}}), encoding="utf-8")
        return tmp_path

    return _write


@pytest.fixture(autouse=True)
def _reset_observability() -> Iterator[None]:
    yield
    reset_observability()
    MetricsRecorder.reset()


@pytest.fixture()
def base_config() -> dict[str, object]:
    return copy.deepcopy(_BASE_CONFIG)
