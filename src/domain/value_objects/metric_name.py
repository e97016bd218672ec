"""
結果値からメトリクス名を組み立てるためのサニタイズ処理。
"""

from __future__ import annotations

import re

from ..errors import InvalidMetricNameError

_IGNORED_CHARS = re.compile(r"[%()]")
_INVALID_CHARS = re.compile(r"[^a-zA-Z0-9_]")

METRIC_NAME_PREFIX = "query_result_"


def sanitize_metric_name(raw: object) -> str:
    """
    任意の値をメトリクス名として利用できる識別子へ変換する。

    ``%`` と括弧を除去して前後の空白を取り除いた後、``[A-Za-z0-9_]`` 以外の
    文字を ``_`` に置換する。例: ``"CPU Usage (%)"`` → ``"CPU_Usage"``。

    Raises:
        InvalidMetricNameError: 変換結果が空文字列になる場合。
    """

    stripped = _IGNORED_CHARS.sub("", str(raw)).strip()
    sanitized = _INVALID_CHARS.sub("_", stripped)
    if not sanitized:
        raise InvalidMetricNameError(raw)
    return sanitized


def exposed_metric_name(name: str) -> str:
    return f"{METRIC_NAME_PREFIX}{name}"
