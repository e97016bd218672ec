"""
ドメイン層のパッケージ初期化。
"""

from .errors import (
    AmbiguousSingleColumnResultError,
    DataFieldNotFoundError,
    InvalidMetricNameError,
    InvalidNumericTextError,
    MetricRegistrationError,
    MissingDataFieldError,
    MissingDataMetricColumnError,
    ResultProcessingError,
    ResultShapeError,
    UnsupportedValueTypeError,
    ValueCoercionError,
)
from .models import QueryDefinition, QuerySpec, ResultRow, ScalarValue
from .value_objects import FacetKey, encode_facets, sanitize_metric_name

__all__ = [
    "AmbiguousSingleColumnResultError",
    "DataFieldNotFoundError",
    "InvalidMetricNameError",
    "InvalidNumericTextError",
    "MetricRegistrationError",
    "MissingDataFieldError",
    "MissingDataMetricColumnError",
    "ResultProcessingError",
    "ResultShapeError",
    "UnsupportedValueTypeError",
    "ValueCoercionError",
    "QueryDefinition",
    "QuerySpec",
    "ResultRow",
    "ScalarValue",
    "FacetKey",
    "encode_facets",
    "sanitize_metric_name",
]
