"""Command-line interface for the editing-time estimator."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer

from .config import GOOGLE_DOCS_MIME_TYPE, ReportSettings
from .paths import get_db_path

app = typer.Typer(help="Estimate active editing time per document.")

logger = logging.getLogger(__name__)


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@app.command()
def report(
    db_path: Optional[Path] = typer.Option(
        None,
        "--db",
        path_type=Path,
        help="Location of the local activity cache.",
    ),
    source: str = typer.Option(
        "local",
        "--source",
        help="Where documents and activity come from: 'local' or 'drive'.",
    ),
    token: Optional[str] = typer.Option(
        None,
        "--token",
        envvar="EDIT_TIME_DRIVE_TOKEN",
        help="OAuth access token sent as-is to Google APIs (drive source only).",
    ),
    mime_type: str = typer.Option(
        GOOGLE_DOCS_MIME_TYPE, "--mime-type", help="Document MIME type to include."
    ),
    days: float = typer.Option(
        30.0, "--days", help="Only include documents modified within this many days."
    ),
    gap_minutes: float = typer.Option(
        5.0, "--gap-minutes", help="Inactivity gap that starts a new session."
    ),
    min_minutes: int = typer.Option(
        1, "--min-minutes", help="Minimum minutes credited to any session."
    ),
    workers: int = typer.Option(
        1, "--workers", min=1, help="Documents fetched concurrently (one HTTP session per worker)."
    ),
    csv_path: Optional[Path] = typer.Option(
        None, "--csv", path_type=Path, help="Also write the report as CSV."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON."),
) -> None:
    """Build the editing-time report for matching documents."""
    from .reporting import ReportPrinter, report_to_payload, run_report, write_csv

    try:
        settings = ReportSettings.from_options(
            days=days,
            gap_minutes=gap_minutes,
            min_minutes=min_minutes,
            mime_type=mime_type,
        )
    except (ValueError, OverflowError) as exc:
        raise typer.BadParameter(str(exc)) from exc

    if source == "local":
        from .sources import SQLiteActivitySource, SQLiteDocumentSource

        resolved = db_path or get_db_path()
        document_source = SQLiteDocumentSource(resolved)
        activity_source = SQLiteActivitySource(resolved)
    elif source == "drive":
        if not token:
            raise typer.BadParameter("--token is required for the drive source.")
        import requests

        from .drive import DriveActivitySource, DriveDocumentSource

        def make_session() -> requests.Session:
            session = requests.Session()
            session.headers["Authorization"] = f"Bearer {token}"
            return session

        document_source = DriveDocumentSource(make_session())
        activity_source = DriveActivitySource(session_factory=make_session)
    else:
        raise typer.BadParameter("source must be 'local' or 'drive'.")

    result = run_report(
        document_source, activity_source, settings, max_workers=workers
    )

    if as_json:
        typer.echo(json.dumps(report_to_payload(result), indent=2))
    else:
        ReportPrinter().print_report(result)
    if csv_path is not None:
        write_csv(result, csv_path)
        logger.info("Wrote CSV report to %s", csv_path)


@app.command("import-activity")
def import_activity(
    export_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON export to load."),
    db_path: Optional[Path] = typer.Option(
        None,
        "--db",
        path_type=Path,
        help="Location of the local activity cache.",
    ),
) -> None:
    """Load documents and raw activity records into the local cache."""
    from .db import database_connection
    from .importer import import_export, load_export

    try:
        export = load_export(export_path)
    except ValueError as exc:
        typer.echo(f"Could not read {export_path}: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    with database_connection(db_path or get_db_path()) as conn:
        documents, records = import_export(conn, export)
    typer.echo(f"Imported {documents} documents and {records} activity records.")


@app.command()
def documents(
    db_path: Optional[Path] = typer.Option(
        None,
        "--db",
        path_type=Path,
        help="Location of the local activity cache.",
    ),
) -> None:
    """List documents held in the local cache."""
    from .db import database_connection, fetch_documents, row_to_document

    with database_connection(db_path or get_db_path()) as conn:
        rows = fetch_documents(conn)
    if not rows:
        typer.echo("No documents cached.")
        return
    for row in rows:
        document = row_to_document(row)
        typer.echo(
            f"{document.document_id:<24} {document.modified_time:%Y-%m-%d %H:%M}  {document.name}"
        )


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the API."),
    port: int = typer.Option(
        8765, "--port", min=1, max=65535, help="TCP port for the API."
    ),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the local activity cache."
    ),
    days: float = typer.Option(30.0, "--days", help="Default look-back window in days."),
    gap_minutes: float = typer.Option(
        5.0, "--gap-minutes", help="Default inactivity gap that starts a new session."
    ),
) -> None:
    """Serve reports over a local HTTP API."""
    from .server_runner import run_server

    try:
        settings = ReportSettings.from_options(days=days, gap_minutes=gap_minutes)
    except (ValueError, OverflowError) as exc:
        raise typer.BadParameter(str(exc)) from exc
    run_server(host=host, port=port, db_path=db_path or get_db_path(), settings=settings)
