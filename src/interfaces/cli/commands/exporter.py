"""
エクスポータ本体の CLI コマンド。
"""

from __future__ import annotations

from pathlib import Path

import typer
from prometheus_client import generate_latest

from infrastructure.databases import StaticQueryExecutor
from interfaces.workers import QueryScheduler
from runtime import bootstrap, build_exporter_components, resolve_project_root


def serve(
    *,
    env: str | None = typer.Option(None, "--env", help="SERVICE_ENV (未指定時は環境変数を利用)"),
    root: Path | None = typer.Option(None, "--root", help="configs/ を含むプロジェクトルート"),
) -> None:
    """
    全クエリを周期実行し、結果を `/metrics` で公開する。
    """

    context = bootstrap(root or resolve_project_root(), environment=env)
    components = build_exporter_components(context)
    scheduler = QueryScheduler(
        definitions=components.definitions,
        refresh_usecase=components.refresh_service,
    )
    scheduler.start()
    typer.echo(f"{len(components.definitions)} 件のクエリをスケジュールしました。Ctrl+C で停止します。")
    try:
        while not scheduler.wait(timeout=1.0):
            pass
    except KeyboardInterrupt:
        typer.echo("停止しています...")
    finally:
        scheduler.stop()
        components.close()


def run_once(
    *,
    env: str | None = typer.Option(None, "--env", help="SERVICE_ENV (未指定時は環境変数を利用)"),
    root: Path | None = typer.Option(None, "--root", help="configs/ を含むプロジェクトルート"),
    query: list[str] | None = typer.Option(None, "--query", "-q", help="実行するクエリ名（複数指定可）"),
    rows: Path | None = typer.Option(
        None,
        "--rows",
        help="データベースの代わりに使う結果行 JSON ({クエリ名: [行, ...]})",
    ),
) -> None:
    """
    クエリを 1 回ずつ実行し、公開されるメトリクスを標準出力へ書き出す。
    """

    executor = None
    if rows is not None:
        try:
            executor = StaticQueryExecutor.from_json_file(rows)
        except ValueError as exc:
            raise typer.BadParameter(str(exc)) from exc

    context = bootstrap(root or resolve_project_root(), environment=env)
    components = build_exporter_components(context, executor=executor)
    scheduler = QueryScheduler(
        definitions=components.definitions,
        refresh_usecase=components.refresh_service,
    )
    try:
        results = scheduler.run_once(query or None)
    except KeyError as exc:
        raise typer.BadParameter(str(exc.args[0])) from exc
    finally:
        components.close()

    typer.echo(generate_latest(context.collector_registry).decode("utf-8"), nl=False)
    selected = len(query) if query else len(components.definitions)
    if len(results) < selected:
        typer.echo(f"{selected - len(results)} 件のクエリが失敗しました。", err=True)
        raise typer.Exit(code=1)
