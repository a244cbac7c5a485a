#!/usr/bin/env python3
"""
Command-line batch import.

Runs the same import pipeline as the HTTP endpoints against a CSV on local
disk. The file is copied into the temporary upload store first, so the
source file itself is never touched.

Usage:
    python -m supplyhub.console schools ./schools.csv
    python -m supplyhub.console products ./catalog.csv --log-level DEBUG
"""
import argparse
import sys
from dataclasses import dataclass
from typing import BinaryIO, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .core.config import settings
from .core.logging_config import configure_logging
from .core.security import init_auth_tables
from .db.models import create_entity_tables
from .db.session import get_engine, get_session_local
from .domain.imports.entities import EntityKind, validate_mapping_tables
from .domain.imports.errors import ImportPipelineError
from .domain.imports.orchestrator import ImportRequest, ImportSummary, run_import
from .domain.imports.uploads import TemporaryFileStore


@dataclass
class LocalUpload:
    filename: Optional[str]
    file: BinaryIO


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Import procurement records from a CSV file.")
    parser.add_argument("kind", choices=[kind.value for kind in EntityKind], help="Entity kind to import")
    parser.add_argument("path", help="Path to the CSV file")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level (default: %(default)s)")
    return parser.parse_args(argv)


def render_summary(console: Console, summary: ImportSummary) -> None:
    outcome = summary.outcome
    style = "green" if not outcome.failures else "yellow"
    console.print(
        Panel(
            f"[{style}]{summary.message}[/{style}]\n"
            f"[dim]{summary.file_name} - {summary.duration_seconds:.2f}s[/dim]",
            title=f"Import {summary.kind}",
            border_style=style,
        )
    )

    if not outcome.failures:
        return

    table = Table(title="Rows not imported")
    table.add_column("Row", style="cyan", justify="right")
    table.add_column("Stage", style="magenta")
    table.add_column("Field", style="white")
    table.add_column("Reason", style="red")
    for failure in outcome.failures:
        row = f"{failure.count} rows" if failure.is_aggregate else str(failure.index)
        table.add_row(row, failure.stage, failure.field or "", failure.reason)
    console.print(table)


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)
    console = Console()

    validate_mapping_tables()
    engine = get_engine()
    init_auth_tables(engine)
    create_entity_tables(engine)

    store = TemporaryFileStore(
        upload_dir=settings.upload_dir,
        max_bytes=settings.upload_max_file_size_mb * 1024 * 1024,
    )
    session = get_session_local()()
    try:
        with open(args.path, "rb") as handle:
            upload = LocalUpload(filename=args.path, file=handle)
            summary = run_import(ImportRequest(kind=args.kind, upload=upload), session, store)
    except FileNotFoundError:
        console.print(f"[red]❌ File not found:[/red] {args.path}")
        return 1
    except ImportPipelineError as e:
        console.print(Panel(f"[red]❌ {e.message}[/red]", title="Import failed", border_style="red"))
        return 1
    finally:
        session.close()

    render_summary(console, summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
