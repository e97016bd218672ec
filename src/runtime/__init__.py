"""
runtime パッケージ公開 API。
"""

from .dependencies import (
    ExporterComponents,
    bootstrap,
    build_exporter_components,
    build_postgres_executor,
    resolve_project_root,
)

__all__ = [
    "ExporterComponents",
    "bootstrap",
    "build_exporter_components",
    "build_postgres_executor",
    "resolve_project_root",
]
