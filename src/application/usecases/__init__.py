"""
ユースケース層の公開API。
"""

from .refresh import QueryExecutor, QueryRefreshService, QueryRefreshUseCase, RefreshResult

__all__ = [
    "QueryExecutor",
    "QueryRefreshService",
    "QueryRefreshUseCase",
    "RefreshResult",
]
