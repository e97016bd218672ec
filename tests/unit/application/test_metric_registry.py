from __future__ import annotations

import threading
from typing import Mapping

import pytest
from prometheus_client import CollectorRegistry

from application.services import GAUGE_DOCUMENTATION, MetricRegistry
from domain.errors import MetricRegistrationError
from domain.models import QuerySpec
from domain.value_objects import encode_facets
from infrastructure.metrics import PrometheusSeriesBackend


class RecordingGauge:
    def __init__(self) -> None:
        self.values: list[float] = []

    def set(self, value: float) -> None:
        self.values.append(value)


class RecordingBackend:
    def __init__(self) -> None:
        self.registry: MetricRegistry | None = None
        self.registered: list[tuple[str, str, dict[str, str]]] = []
        self.unregistered: list[RecordingGauge] = []
        self.lock_held_during_calls: list[bool] = []

    def register_gauge(self, name: str, documentation: str, labels: Mapping[str, str]) -> RecordingGauge:
        self._record_lock_state()
        self.registered.append((name, documentation, dict(labels)))
        return RecordingGauge()

    def unregister_gauge(self, handle: RecordingGauge) -> None:
        self._record_lock_state()
        self.unregistered.append(handle)

    def _record_lock_state(self) -> None:
        if self.registry is not None:
            self.lock_held_during_calls.append(self.registry.lock.locked())


def make_registry() -> tuple[MetricRegistry, RecordingBackend]:
    backend = RecordingBackend()
    registry = MetricRegistry(backend)
    backend.registry = registry
    return registry, backend


def test_metric_set_is_created_once_per_query() -> None:
    registry, _ = make_registry()
    spec = QuerySpec(name="hosts", data_field="value")

    first = registry.metric_set(spec)
    second = registry.metric_set(spec)
    other = registry.metric_set(QuerySpec(name="other"))

    assert first is second
    assert first is not other


def test_get_or_create_registers_once_per_key() -> None:
    registry, backend = make_registry()
    metric_set = registry.metric_set(QuerySpec(name="hosts", data_field="value"))
    facets = {"host": "a"}
    key = encode_facets(facets)

    first = metric_set.get_or_create(key, "hosts", facets)
    second = metric_set.get_or_create(key, "renamed", facets)

    assert first is second
    assert first.metric_name == "query_result_hosts"
    assert backend.registered == [("query_result_hosts", GAUGE_DOCUMENTATION, {"host": "a"})]
    assert metric_set.known_keys() == frozenset({key})
    assert key in metric_set
    assert len(metric_set) == 1


def test_set_value_overwrites_gauge() -> None:
    registry, _ = make_registry()
    metric_set = registry.metric_set(QuerySpec(name="hosts", data_field="value"))
    key = encode_facets({"host": "a"})
    series = metric_set.get_or_create(key, "hosts", {"host": "a"})

    metric_set.set_value(series, 1.0)
    metric_set.set_value(series, 3.0)

    assert series.handle.values == [1.0, 3.0]  # type: ignore[attr-defined]


def test_unregister_removes_series() -> None:
    registry, backend = make_registry()
    metric_set = registry.metric_set(QuerySpec(name="hosts", data_field="value"))
    key = encode_facets({"host": "a"})
    series = metric_set.get_or_create(key, "hosts", {"host": "a"})

    metric_set.unregister(key)

    assert backend.unregistered == [series.handle]
    assert metric_set.known_keys() == frozenset()
    assert metric_set.get(key) is None


def test_unregister_unknown_key_raises() -> None:
    registry, backend = make_registry()
    metric_set = registry.metric_set(QuerySpec(name="hosts", data_field="value"))

    with pytest.raises(KeyError):
        metric_set.unregister(encode_facets({"host": "missing"}))
    assert backend.unregistered == []


def test_backend_calls_are_serialized_by_registry_lock() -> None:
    registry, backend = make_registry()
    metric_set = registry.metric_set(QuerySpec(name="hosts", data_field="value"))
    key = encode_facets({"host": "a"})

    metric_set.get_or_create(key, "hosts", {"host": "a"})
    metric_set.unregister(key)

    assert backend.lock_held_during_calls == [True, True]


def test_concurrent_get_or_create_registers_single_series() -> None:
    registry, backend = make_registry()
    metric_set = registry.metric_set(QuerySpec(name="hosts", data_field="value"))
    key = encode_facets({"host": "a"})
    barrier = threading.Barrier(8)
    results = []

    def worker() -> None:
        barrier.wait()
        results.append(metric_set.get_or_create(key, "hosts", {"host": "a"}))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(backend.registered) == 1
    assert all(series is results[0] for series in results)


def test_same_series_from_two_metric_sets_is_rejected() -> None:
    registry = MetricRegistry(PrometheusSeriesBackend(registry=CollectorRegistry()))
    hosts = registry.metric_set(QuerySpec(name="hosts", data_field="value"))
    renamed = registry.metric_set(QuerySpec(name="renamed_hosts", data_field="value"))
    facets = {"host": "a"}
    key = encode_facets(facets)
    hosts.get_or_create(key, "hosts", facets)

    with pytest.raises(MetricRegistrationError):
        renamed.get_or_create(key, "hosts", facets)
    assert key not in renamed
