"""
クエリ結果の系列を prometheus-client のゲージとして公開する ExpositionBackend。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from prometheus_client import CollectorRegistry, Gauge as PrometheusGauge

from domain.errors import MetricRegistrationError
from domain.services.interfaces import ExpositionBackend, GaugeHandle

FamilyKey = tuple[str, tuple[str, ...]]


class _SeriesHandle(GaugeHandle):
    def __init__(self, family_key: FamilyKey, label_values: tuple[str, ...], child: PrometheusGauge) -> None:
        self.family_key = family_key
        self.label_values = label_values
        self._child = child

    def set(self, value: float) -> None:
        self._child.set(value)


@dataclass
class PrometheusSeriesBackend(ExpositionBackend):
    """
    (メトリクス名, ラベル名集合) ごとに 1 つのラベル付き Gauge を持ち、
    各系列をその子として登録する。

    同じ名前で異なるラベル名集合を登録しようとした場合や、同一系列を重複登録した
    場合は MetricRegistrationError を送出する。最後の系列が解除されたゲージは
    CollectorRegistry からも取り除く。
    """

    registry: CollectorRegistry

    _families: dict[FamilyKey, PrometheusGauge] = field(default_factory=dict, init=False)
    _members: dict[FamilyKey, set[tuple[str, ...]]] = field(default_factory=dict, init=False)

    def register_gauge(self, name: str, documentation: str, labels: Mapping[str, str]) -> GaugeHandle:
        label_names = tuple(sorted(labels))
        label_values = tuple(labels[label] for label in label_names)
        family_key = (name, label_names)

        family = self._families.get(family_key)
        if family is None:
            try:
                family = PrometheusGauge(name, documentation, labelnames=label_names, registry=self.registry)
            except ValueError as exc:
                raise MetricRegistrationError(
                    f"ゲージ '{name}' (labels={list(label_names)}) を登録できません: {exc}"
                ) from exc
            self._families[family_key] = family
            self._members[family_key] = set()

        members = self._members[family_key]
        if label_values in members:
            raise MetricRegistrationError(f"ゲージ '{name}' の系列 {dict(labels)} は既に登録されています。")

        child = family.labels(*label_values) if label_names else family
        members.add(label_values)
        return _SeriesHandle(family_key, label_values, child)

    def unregister_gauge(self, handle: GaugeHandle) -> None:
        if not isinstance(handle, _SeriesHandle):
            raise MetricRegistrationError("PrometheusSeriesBackend 以外で生成されたハンドルは解除できません。")

        members = self._members.get(handle.family_key)
        if members is None or handle.label_values not in members:
            raise MetricRegistrationError(f"ゲージ '{handle.family_key[0]}' の系列は登録されていません。")

        family = self._families[handle.family_key]
        members.discard(handle.label_values)
        if handle.label_values:
            family.remove(*handle.label_values)
        if not members:
            self.registry.unregister(family)
            del self._families[handle.family_key]
            del self._members[handle.family_key]
