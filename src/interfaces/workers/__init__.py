"""
ワーカーエントリポイント。
"""

from .query_scheduler import QueryScheduler, QuerySchedulerConfig

__all__ = [
    "QueryScheduler",
    "QuerySchedulerConfig",
]
