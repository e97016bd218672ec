"""
Typer ベースの CLI エントリポイント。
"""

from __future__ import annotations

import typer

from .commands import diagnostics, exporter


def create_cli() -> typer.Typer:
    app = typer.Typer(help="query-result-exporter CLI")
    app.command("serve")(exporter.serve)
    app.command("run-once")(exporter.run_once)
    app.add_typer(diagnostics.app, name="diagnostics")
    return app


def main() -> None:
    create_cli()()
