"""
ファセット（ラベル名 → ラベル値）から系列の識別子を生成する。
"""

from __future__ import annotations

import json
from typing import Mapping, NewType

FacetKey = NewType("FacetKey", str)


def encode_facets(facets: Mapping[str, str]) -> FacetKey:
    """
    ファセットを正規化された JSON 文字列へ変換する。

    キーをソートして直列化するため、挿入順序に依存せず同じ組み合わせは
    常に同じキーになる。大文字小文字の正規化は呼び出し側の責務とする。
    """

    encoded = json.dumps(
        {key: facets[key] for key in sorted(facets)},
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return FacetKey(encoded)
