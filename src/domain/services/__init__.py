"""
ドメインサービスの公開API。
"""

from .interfaces import ExpositionBackend, GaugeHandle
from .value_coercer import coerce_value

__all__ = [
    "ExpositionBackend",
    "GaugeHandle",
    "coerce_value",
]
