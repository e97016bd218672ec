"""
クエリ結果の分解・数値変換で発生するドメイン例外。

いずれもバッチ単位のエラーであり、プロセスを停止させるものではない。
呼び出し側は次回のスケジュールでクエリ全体を再実行する。
"""

from __future__ import annotations


class ResultProcessingError(ValueError):
    """結果行の処理に失敗した場合の基底例外。"""


class ResultShapeError(ResultProcessingError):
    """結果セットの形状からファセットとデータ値を分離できない。"""


class AmbiguousSingleColumnResultError(ResultShapeError):
    """単一カラムの結果が複数行返された。"""

    def __init__(self, row_count: int) -> None:
        super().__init__(f"単一カラムの結果が {row_count} 行返されました。ファセットと値を区別できません。")
        self.row_count = row_count


class MissingDataFieldError(ResultShapeError):
    """複数カラムのクエリに data_field が設定されていない。"""

    def __init__(self, query_name: str) -> None:
        super().__init__(f"クエリ '{query_name}' は複数カラムを返しますが data_field が未設定です。")
        self.query_name = query_name


class DataFieldNotFoundError(ResultShapeError):
    """data_field に一致するカラムが結果行に存在しない。"""

    def __init__(self, query_name: str, data_field: str) -> None:
        super().__init__(f"クエリ '{query_name}' の結果に data_field '{data_field}' が存在しません。")
        self.query_name = query_name
        self.data_field = data_field


class MissingDataMetricColumnError(ResultShapeError):
    """多次元クエリにメトリクス名カラムが設定されていない。"""

    def __init__(self, query_name: str) -> None:
        super().__init__(f"多次元クエリ '{query_name}' は複数カラムを返しますが data_metric_column が未設定です。")
        self.query_name = query_name


class ValueCoercionError(ResultProcessingError):
    """データ値を float に変換できない。"""


class InvalidNumericTextError(ValueCoercionError):
    """文字列値を数値として解釈できない。"""

    def __init__(self, text: str) -> None:
        super().__init__(f"文字列 {text!r} を数値に変換できません。")
        self.text = text


class UnsupportedValueTypeError(ValueCoercionError):
    """データ値の型がサポート対象外。"""

    def __init__(self, value: object) -> None:
        type_name = type(value).__name__
        super().__init__(f"未対応の値の型です: {type_name}")
        self.type_name = type_name


class InvalidMetricNameError(ResultProcessingError):
    """サニタイズ後のメトリクス名が空になった。"""

    def __init__(self, raw: object) -> None:
        super().__init__(f"メトリクス名として利用できない値です: {raw!r}")
        self.raw = raw


class MetricRegistrationError(RuntimeError):
    """エクスポジション層へのゲージ登録・解除に失敗した。"""
