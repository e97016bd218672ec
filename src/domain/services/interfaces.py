"""
ドメインサービスが依存する外部機能のインターフェース定義。
"""

from __future__ import annotations

from typing import Mapping, Protocol


class GaugeHandle(Protocol):
    """
    登録済みゲージ 1 系列への参照。
    """

    def set(self, value: float) -> None:
        ...


class ExpositionBackend(Protocol):
    """
    ゲージの生成・登録・解除を行うメトリクス公開基盤。

    実装はスレッドセーフである必要はない。呼び出し側の MetricRegistry が
    登録・解除を単一ロックで直列化する。
    """

    def register_gauge(self, name: str, documentation: str, labels: Mapping[str, str]) -> GaugeHandle:
        ...

    def unregister_gauge(self, handle: GaugeHandle) -> None:
        ...
