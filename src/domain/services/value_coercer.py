"""
結果行の値を float へ変換する。
"""

from __future__ import annotations

from ..errors import InvalidNumericTextError, UnsupportedValueTypeError


def coerce_value(value: object) -> float:
    """
    text / integer / floating point の値を float に変換する。

    bool は int のサブクラスだが数値とはみなさない。

    Raises:
        InvalidNumericTextError: 文字列が数値として解釈できない場合。
        UnsupportedValueTypeError: 上記以外の型の場合。
    """

    if isinstance(value, bool):
        raise UnsupportedValueTypeError(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as exc:
            raise InvalidNumericTextError(value) from exc
    if isinstance(value, int):
        return float(value)
    if isinstance(value, float):
        return value
    raise UnsupportedValueTypeError(value)
