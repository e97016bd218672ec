"""
クエリごとの周期リフレッシュを行うワーカー。
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Iterable, Sequence

from application.usecases import QueryRefreshUseCase, RefreshResult
from domain.errors import MetricRegistrationError, ResultProcessingError
from domain.models import QueryDefinition
from infrastructure.databases import QueryExecutionError

LOGGER = logging.getLogger("query_result_exporter.scheduler")

RECOVERABLE_ERRORS: tuple[type[Exception], ...] = (
    ResultProcessingError,
    MetricRegistrationError,
    QueryExecutionError,
)


@dataclass(frozen=True)
class QuerySchedulerConfig:
    """
    スケジューラの設定。
    """

    join_timeout_seconds: float = 5.0


class QueryScheduler:
    """
    クエリ定義ごとにスレッドを起動し、interval_seconds 間隔でリフレッシュする。

    失敗したバッチは警告ログを出して次回の周期で再実行する。
    """

    def __init__(
        self,
        *,
        definitions: Sequence[QueryDefinition],
        refresh_usecase: QueryRefreshUseCase,
        config: QuerySchedulerConfig | None = None,
    ) -> None:
        self._definitions = list(definitions)
        self._refresh_usecase = refresh_usecase
        self._config = config or QuerySchedulerConfig()
        self._stop = threading.Event()
        self._threads: list[threading.Thread] = []

    @property
    def running(self) -> bool:
        return any(thread.is_alive() for thread in self._threads)

    def start(self) -> None:
        """
        全クエリのリフレッシュスレッドを起動する。
        """

        if self._threads:
            raise RuntimeError("QueryScheduler は既に起動しています。")

        self._stop.clear()
        for definition in self._definitions:
            thread = threading.Thread(
                target=self._run_loop,
                args=(definition,),
                name=f"query-refresh-{definition.name}",
                daemon=True,
            )
            self._threads.append(thread)
            thread.start()
        LOGGER.info("Started query scheduler with %d queries", len(self._threads))

    def stop(self) -> None:
        LOGGER.info("Stopping query scheduler")
        self._stop.set()
        for thread in self._threads:
            thread.join(timeout=self._config.join_timeout_seconds)
        self._threads = []

    def wait(self, timeout: float | None = None) -> bool:
        """
        stop() が呼ばれるまで待機する。timeout 経過時は False を返す。
        """

        return self._stop.wait(timeout)

    def run_once(self, names: Iterable[str] | None = None) -> list[RefreshResult]:
        """
        指定したクエリ（省略時は全て）を 1 回ずつリフレッシュする。

        Raises:
            KeyError: 未定義のクエリ名が指定された場合。
        """

        selected = self._select(names)
        results: list[RefreshResult] = []
        for definition in selected:
            result = self._refresh_safely(definition)
            if result is not None:
                results.append(result)
        return results

    def _select(self, names: Iterable[str] | None) -> list[QueryDefinition]:
        if names is None:
            return list(self._definitions)
        by_name = {definition.name: definition for definition in self._definitions}
        selected: list[QueryDefinition] = []
        for name in names:
            if name not in by_name:
                raise KeyError(f"クエリ '{name}' は定義されていません。")
            selected.append(by_name[name])
        return selected

    def _run_loop(self, definition: QueryDefinition) -> None:
        while not self._stop.is_set():
            self._refresh_safely(definition)
            if self._stop.wait(definition.interval_seconds):
                break

    def _refresh_safely(self, definition: QueryDefinition) -> RefreshResult | None:
        try:
            return self._refresh_usecase.refresh(definition)
        except RECOVERABLE_ERRORS as exc:
            LOGGER.warning(
                "Query %s failed, retrying in %.1f seconds: %s",
                definition.name,
                definition.interval_seconds,
                exc,
            )
            return None
