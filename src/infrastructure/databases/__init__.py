"""
データベース接続ユーティリティ。
"""

from .postgres import PostgresConfig, PostgresConnectionProvider, PostgresPoolConfig
from .query_executor import PostgresQueryExecutor, QueryExecutionError
from .static_executor import StaticQueryExecutor

__all__ = [
    "PostgresConfig",
    "PostgresConnectionProvider",
    "PostgresPoolConfig",
    "PostgresQueryExecutor",
    "QueryExecutionError",
    "StaticQueryExecutor",
]
