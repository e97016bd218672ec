"""
クエリ実行用の PostgreSQL 接続設定とコネクションプール。

エクスポータは参照系のクエリのみを発行するため、プールから払い出す接続は
既定で読み取り専用トランザクションに設定する。
"""

from __future__ import annotations

from typing import Any, Callable, ContextManager, Mapping, TypeVar

from psycopg import sql
from psycopg_pool import ConnectionPool
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

DEFAULT_APPLICATION_NAME = "query-result-exporter"

_ModelT = TypeVar("_ModelT", bound=BaseModel)


class PostgresPoolConfig(BaseModel):
    """
    コネクションプール設定。

    クエリごとにワーカースレッドが 1 本走るため、max_size はクエリ数を目安にする。
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    min_size: int = Field(default=1, gt=0)
    max_size: int = Field(default=4, gt=0)
    timeout_seconds: float = Field(default=5.0, gt=0)
    max_idle_seconds: float = Field(default=600.0, gt=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> "PostgresPoolConfig":
        if self.min_size > self.max_size:
            raise ValueError("pool.min_size は pool.max_size 以下である必要があります。")
        return self

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, object]) -> "PostgresPoolConfig":
        return _validate(cls, mapping, section="postgres.pool")


class PostgresConfig(BaseModel):
    """
    postgres セクションの検証済み設定。
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    dsn: str = Field(min_length=1)
    pool: PostgresPoolConfig = Field(default_factory=PostgresPoolConfig)
    statement_timeout_ms: int = Field(default=30000, gt=0)
    search_path: tuple[str, ...] = ("public",)
    application_name: str = DEFAULT_APPLICATION_NAME
    read_only: bool = True

    @field_validator("search_path")
    @classmethod
    def _require_schema(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("search_path は少なくとも1つのスキーマを指定する必要があります。")
        return value

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, object]) -> "PostgresConfig":
        """
        Raises:
            ValueError: dsn が未設定、または値が不正な場合。
        """

        if mapping.get("dsn") in (None, ""):
            raise ValueError("postgres.dsn は環境設定で必須です。")
        return _validate(cls, mapping, section="postgres")


class PostgresConnectionProvider:
    """
    psycopg の ConnectionPool をラップした接続プロバイダ。
    """

    def __init__(
        self,
        config: PostgresConfig,
        *,
        pool_factory: Callable[[PostgresConfig], ConnectionPool] | None = None,
    ) -> None:
        self._config = config
        self._pool = (pool_factory or open_connection_pool)(config)

    @property
    def config(self) -> PostgresConfig:
        return self._config

    def connection(self) -> ContextManager[Any]:
        return self._pool.connection()

    def close(self) -> None:
        self._pool.close()


def open_connection_pool(config: PostgresConfig) -> ConnectionPool:
    """
    セッション設定（search_path・statement_timeout・読み取り専用）を適用する
    ConnectionPool を生成する。
    """

    def _prepare_session(conn: Any) -> None:
        schemas = sql.SQL(", ").join(sql.Identifier(schema) for schema in config.search_path)
        conn.execute(sql.SQL("SET search_path TO {}").format(schemas))
        conn.execute("SELECT set_config('statement_timeout', %s, false)", (f"{config.statement_timeout_ms}ms",))
        if config.read_only:
            conn.execute("SET default_transaction_read_only TO on")
        conn.commit()

    return ConnectionPool(
        conninfo=config.dsn,
        kwargs={"application_name": config.application_name},
        min_size=config.pool.min_size,
        max_size=config.pool.max_size,
        timeout=config.pool.timeout_seconds,
        max_idle=config.pool.max_idle_seconds,
        configure=_prepare_session,
        name=config.application_name,
        open=True,
    )


def _validate(model: type[_ModelT], mapping: Mapping[str, object], *, section: str) -> _ModelT:
    try:
        return model.model_validate(dict(mapping))
    except ValidationError as exc:
        messages = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or section}: {error['msg']}" for error in exc.errors()
        )
        raise ValueError(f"{section} 設定が不正です: {messages}") from exc
