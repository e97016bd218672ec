"""
診断用 CLI コマンド。
"""

from __future__ import annotations

from pathlib import Path

import typer

from bootstrap import BootstrapError, YamlConfigLoader, load_query_definitions
from runtime import resolve_project_root

app = typer.Typer(help="診断・ヘルスチェックコマンド")


@app.command("ping")
def ping() -> None:
    typer.echo("システム診断: OK")


@app.command("list-queries")
def list_queries(
    env: str | None = typer.Option(None, "--env", help="SERVICE_ENV (未指定時は環境変数を利用)"),
    root: Path | None = typer.Option(None, "--root", help="configs/ を含むプロジェクトルート"),
) -> None:
    """
    設定済みのクエリ定義を検証し、一覧を表示する。
    """

    try:
        bundle = YamlConfigLoader(root or resolve_project_root(), environment=env).load()
        definitions = load_query_definitions(bundle)
    except BootstrapError as exc:
        typer.echo(f"設定エラー: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    for definition in definitions:
        spec = definition.spec
        mode = "multi" if spec.multi_dimensional else "single"
        typer.echo(f"{spec.name}\tmode={mode}\tinterval={definition.interval_seconds:g}s")
