"""
ドメインエンティティの公開API。
"""

from .query_spec import QueryDefinition, QuerySpec, ResultRow, ScalarValue

__all__ = [
    "QueryDefinition",
    "QuerySpec",
    "ResultRow",
    "ScalarValue",
]
