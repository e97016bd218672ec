"""
値オブジェクトの公開API。
"""

from .facet_key import FacetKey, encode_facets
from .metric_name import METRIC_NAME_PREFIX, exposed_metric_name, sanitize_metric_name

__all__ = [
    "FacetKey",
    "encode_facets",
    "METRIC_NAME_PREFIX",
    "exposed_metric_name",
    "sanitize_metric_name",
]
