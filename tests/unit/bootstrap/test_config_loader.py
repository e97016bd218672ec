from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from bootstrap import (
    ConfigBundle,
    InvalidConfigurationError,
    MissingConfigurationError,
    YamlConfigLoader,
    load_query_definitions,
)


def test_loader_merges_environment_overrides(write_configs: Callable[..., Path]) -> None:
    root = write_configs(overrides={"metrics": {"options": {"port": 9300}}, "postgres": {"dsn": "postgresql://db"}})

    bundle = YamlConfigLoader(root, environment="test").load()

    assert bundle.require_value("metrics", "provider") == "noop"
    assert bundle.require_section("metrics")["options"]["port"] == 9300
    assert bundle.require_value("postgres", "dsn") == "postgresql://db"
    assert bundle.require_value("postgres", "pool")["max_size"] == 2


def test_loader_uses_service_env_variable(write_configs: Callable[..., Path], monkeypatch: pytest.MonkeyPatch) -> None:
    root = write_configs(env="staging")
    monkeypatch.setenv("SERVICE_ENV", "staging")

    bundle = YamlConfigLoader(root).load()

    assert len(bundle.require_list("queries")) == 2


def test_loader_requires_environment(write_configs: Callable[..., Path], monkeypatch: pytest.MonkeyPatch) -> None:
    root = write_configs()
    monkeypatch.delenv("SERVICE_ENV", raising=False)

    with pytest.raises(MissingConfigurationError):
        YamlConfigLoader(root).load()


def test_loader_rejects_unknown_environment(write_configs: Callable[..., Path]) -> None:
    root = write_configs()

    with pytest.raises(MissingConfigurationError):
        YamlConfigLoader(root, environment="missing").load()


def test_loader_rejects_override_keys_absent_from_base(write_configs: Callable[..., Path]) -> None:
    root = write_configs(overrides={"metrics": {"exporter": "statsd"}})

    with pytest.raises(InvalidConfigurationError, match="metrics.exporter"):
        YamlConfigLoader(root, environment="test").load()


def test_loader_rejects_duplicate_query_names(write_configs: Callable[..., Path], base_config: dict[str, object]) -> None:
    base_config["queries"] = [
        {"name": "hosts", "sql": "SELECT 1"},
        {"name": "hosts", "sql": "SELECT 2"},
    ]
    root = write_configs(base=base_config)

    with pytest.raises(InvalidConfigurationError, match="hosts"):
        YamlConfigLoader(root, environment="test").load()


def test_loader_rejects_unknown_query_fields(write_configs: Callable[..., Path], base_config: dict[str, object]) -> None:
    base_config["queries"] = [{"name": "hosts", "sql": "SELECT 1", "datafield": "value"}]
    root = write_configs(base=base_config)

    with pytest.raises(InvalidConfigurationError):
        YamlConfigLoader(root, environment="test").load()


def test_loader_rejects_empty_yaml(write_configs: Callable[..., Path]) -> None:
    root = write_configs()
    (root / "configs" / "base" / "empty.yaml").write_text("", encoding="utf-8")

    with pytest.raises(InvalidConfigurationError):
        YamlConfigLoader(root, environment="test").load()


def test_load_query_definitions_builds_specs(write_configs: Callable[..., Path]) -> None:
    root = write_configs()
    bundle = YamlConfigLoader(root, environment="test").load()

    hosts, usage = load_query_definitions(bundle)

    assert hosts.name == "hosts"
    assert hosts.interval_seconds == 15
    assert hosts.spec.data_field == "value"
    assert hosts.spec.multi_dimensional is False
    assert usage.interval_seconds == 60.0
    assert usage.spec.multi_dimensional is True
    assert usage.spec.data_labels == ("region",)
    assert usage.spec.data_label_name == "metric"
    assert usage.spec.data_metric_column == "metric_name"


def test_load_query_definitions_rejects_invalid_entries() -> None:
    bundle = ConfigBundle(root={"queries": [{"name": "hosts", "sql": "SELECT 1", "interval_seconds": 0}]})

    with pytest.raises(InvalidConfigurationError, match=r"queries\[0\]"):
        load_query_definitions(bundle)


def test_load_query_definitions_rejects_label_overlap() -> None:
    bundle = ConfigBundle(
        root={
            "queries": [
                {
                    "name": "usage",
                    "sql": "SELECT 1",
                    "multi_dimensional": True,
                    "data_labels": ["metric"],
                    "data_label_name": "metric",
                    "data_metric_column": "x",
                }
            ]
        }
    )

    with pytest.raises(InvalidConfigurationError, match=r"queries\[0\]"):
        load_query_definitions(bundle)


def test_config_bundle_reports_missing_sections() -> None:
    bundle = ConfigBundle(root={"metrics": {"provider": "noop"}, "queries": {}})

    with pytest.raises(MissingConfigurationError):
        bundle.require_section("logging")
    with pytest.raises(MissingConfigurationError):
        bundle.require_value("metrics", "options")
    with pytest.raises(InvalidConfigurationError):
        bundle.require_list("queries")
